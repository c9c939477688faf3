"""
URL Configuration for the air quality service.
"""
from django.urls import path, include

urlpatterns = [
    path('api/v1/', include('apps.api.urls')),
]
