"""
Utility functions for classifying and presenting air quality readings.
"""
import logging
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

from django.utils import timezone

from .constants import SEVERITY_TIERS, CHECKED_AT_FORMAT
from .types import SeverityTier

logger = logging.getLogger(__name__)


def classify_aqi(aqius):
    """
    Map a US AQI value to its severity tier.

    Args:
        aqius: AQI value as reported by the provider

    Returns:
        SeverityTier: GOOD, MODERATE, UNHEALTHY or HAZARDOUS
    """
    for tier in SEVERITY_TIERS:
        if tier['min_value'] is None:
            continue
        if tier['min_value'] <= aqius <= tier['max_value']:
            return tier['tier']

    if aqius < 0:
        logger.warning(f"Negative AQI value {aqius}, classifying as hazardous")

    return SeverityTier.HAZARDOUS


def get_tier_info(tier):
    """Return the presentation entry (label, background) for a tier."""
    for entry in SEVERITY_TIERS:
        if entry['tier'] == tier:
            return entry
    raise KeyError(tier)


def parse_timestamp(value):
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    A trailing 'Z' is accepted; naive timestamps are taken as UTC.

    Raises:
        ValueError: if value is not a valid ISO-8601 string
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")

    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if not timezone.is_aware(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def format_checked_at(value, tz_name):
    """
    Format a provider timestamp for display in the given time zone.

    Args:
        value: ISO-8601 timestamp string
        tz_name: IANA zone name, e.g. 'Asia/Seoul'

    Returns:
        str: 'YYYY-MM-DD HH:MM' in the target zone
    """
    local = timezone.localtime(parse_timestamp(value), ZoneInfo(tz_name))
    return local.strftime(CHECKED_AT_FORMAT)


def validate_coordinates(lat, lon):
    """
    Validate latitude and longitude values.

    Args:
        lat: latitude value
        lon: longitude value

    Returns:
        tuple: (is_valid, error_message)
    """
    try:
        lat = float(lat)
        lon = float(lon)

        if not (-90 <= lat <= 90):
            return False, "Latitude must be between -90 and 90"

        if not (-180 <= lon <= 180):
            return False, "Longitude must be between -180 and 180"

        return True, None

    except (TypeError, ValueError):
        return False, "Invalid coordinate format"
