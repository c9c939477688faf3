"""
Pytest configuration for the air quality service.

Points Django at the test settings and provides shared fixtures.
"""
import os

import django
import pytest

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

from apps.core.types import Coordinate  # noqa: E402


@pytest.fixture
def seoul():
    """A fix in central Seoul."""
    return Coordinate(latitude=37.5665, longitude=126.978)


@pytest.fixture
def airvisual_payload():
    """Factory for nearest_city responses."""
    def make(aqius=42, ts="2023-01-01T00:00:00.000Z", status="success"):
        return {
            "status": status,
            "data": {
                "city": "Seoul",
                "country": "South Korea",
                "current": {
                    "pollution": {"ts": ts, "aqius": aqius, "mainus": "p2"},
                    "weather": {"ts": ts, "tp": 3},
                },
            },
        }
    return make
