"""
DRF serializers for API responses.
"""
from rest_framework import serializers


class CoordinateSerializer(serializers.Serializer):
    lat = serializers.FloatField(source='latitude')
    lon = serializers.FloatField(source='longitude')


class AddressSerializer(serializers.Serializer):
    thoroughfare = serializers.CharField(allow_blank=True)
    country_name = serializers.CharField(allow_blank=True)
    admin_area = serializers.CharField(allow_blank=True)


class AirQualityReportSerializer(serializers.Serializer):
    """Screen contents for a successful refresh."""
    title = serializers.CharField(allow_blank=True)
    subtitle = serializers.CharField(allow_blank=True)
    count = serializers.IntegerField()
    checked_at = serializers.CharField()
    tier = serializers.CharField(source='tier.value')
    label = serializers.CharField()
    background = serializers.CharField()
    location = CoordinateSerializer(source='coordinate')
    address = AddressSerializer(allow_null=True)


class RunResultSerializer(serializers.Serializer):
    """Main response serializer for a successful run."""
    message = serializers.CharField()
    report = AirQualityReportSerializer()
    notices = serializers.ListField(child=serializers.CharField())


class ErrorSerializer(serializers.Serializer):
    """Serializer for failed runs."""
    error = serializers.CharField(source='message')
    reason = serializers.CharField(source='reason.value')
    notices = serializers.ListField(child=serializers.CharField())
