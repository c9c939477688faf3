"""
Test settings: no network credentials, quiet logs.
"""
from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

API_KEYS = {
    'airvisual': 'test-key',
}

AIR_QUALITY_SETTINGS = dict(AIR_QUALITY_SETTINGS)
AIR_QUALITY_SETTINGS.update({
    'AIRVISUAL_BASE_URL': 'https://api.airvisual.test/v2/',
    'DISPLAY_TIME_ZONE': 'Asia/Seoul',
    'REQUEST_TIMEOUT': 2,
})

LOGGING['root']['level'] = 'WARNING'
LOGGING['loggers']['apps']['level'] = 'WARNING'
