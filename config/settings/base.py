"""
Base settings for the air quality service.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / '.env')

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'insecure-development-key')

DEBUG = os.environ.get('DJANGO_DEBUG', 'False').lower() == 'true'

ALLOWED_HOSTS = [h for h in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'apps.core',
    'apps.location',
    'apps.adapters',
    'apps.api',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'config.urls'

WSGI_APPLICATION = 'config.wsgi.application'

# Nothing is persisted
DATABASES = {}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = False
USE_TZ = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'EXCEPTION_HANDLER': 'apps.api.exceptions.custom_exception_handler',
}

# API keys for external services
API_KEYS = {
    'airvisual': os.environ.get('AIRVISUAL_API_KEY', ''),
}

AIR_QUALITY_SETTINGS = {
    'AIRVISUAL_BASE_URL': os.environ.get('AIRVISUAL_BASE_URL', 'https://api.airvisual.com/v2/'),
    'REQUEST_TIMEOUT': 10,  # seconds
    # Single attempt; a new refresh is the only retry
    'MAX_RETRIES': 0,
    'RETRY_BACKOFF_FACTOR': 0,
    'DISPLAY_TIME_ZONE': os.environ.get('AIR_QUALITY_DISPLAY_TIME_ZONE', 'Asia/Seoul'),
    'GEOCODER_USER_AGENT': 'airquality-now/1.0',
    'GEOCODER_MAX_RESULTS': 7,
    'GEOCODER_TIMEOUT': 5,  # seconds
    # (lat, lon) used when no device location source is supplied
    'DEFAULT_LOCATION': None,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {threadName} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
