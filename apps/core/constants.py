"""
Constants and lookup data for the air quality screen.
"""
from .types import SeverityTier

# Severity tiers on the US AQI (aqius) scale. Bounds are inclusive.
# HAZARDOUS has no bounds: it is the catch-all for anything above 200 and
# for values no other tier accepts.
SEVERITY_TIERS = [
    {
        'tier': SeverityTier.GOOD,
        'min_value': 0,
        'max_value': 50,
        'label': 'Good',
        'background': 'bg_good',
    },
    {
        'tier': SeverityTier.MODERATE,
        'min_value': 51,
        'max_value': 150,
        'label': 'Moderate',
        'background': 'bg_soso',
    },
    {
        'tier': SeverityTier.UNHEALTHY,
        'min_value': 151,
        'max_value': 200,
        'label': 'Unhealthy',
        'background': 'bg_bad',
    },
    {
        'tier': SeverityTier.HAZARDOUS,
        'min_value': None,
        'max_value': None,
        'label': 'Very unhealthy',
        'background': 'bg_worst',
    },
]

# Checked-at timestamps are shown in this format.
CHECKED_AT_FORMAT = '%Y-%m-%d %H:%M'

# User-facing messages
MESSAGES = {
    'ready': 'Air quality updated.',
    'fetch_failed': 'Update failed.',
    'geocode_error': 'Address lookup failed.',
    'no_fix': 'Unable to get latitude/longitude. Press refresh.',
    'location_services_disabled': 'Location services are unavailable. Enable GPS and try again.',
    'cancelled': 'Superseded by a newer refresh.',
}
