"""
URL routing for API endpoints.
"""
from django.urls import path
from .views import AirQualityView

app_name = 'api'

urlpatterns = [
    path('air-quality/', AirQualityView.as_view(), name='air-quality'),
]
