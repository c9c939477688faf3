"""
Device location and reverse geocoding services.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from django.conf import settings
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from apps.core.exceptions import (
    GeocodeError,
    GeocodeInvalidArgument,
    GeocodeNotFound,
    GeocodeUnavailable,
)
from apps.core.types import Address, Coordinate
from apps.core.utils import validate_coordinates

logger = logging.getLogger(__name__)


class LocationSource(ABC):
    """
    Snapshot read of the device's last-known position.
    Never waits for a fresh fix.
    """

    @abstractmethod
    def get_last_location(self) -> Optional[Coordinate]:
        """Return the last-known fix, or None when there is none."""


class StaticLocationSource(LocationSource):
    """Always reports the same fix."""

    def __init__(self, latitude=0.0, longitude=0.0):
        self.latitude = latitude
        self.longitude = longitude

    def get_last_location(self) -> Optional[Coordinate]:
        return Coordinate.from_fix(self.latitude, self.longitude)


class QueryLocationSource(LocationSource):
    """
    Last-known fix forwarded by the device as 'lat' and 'lon' query parameters.
    """

    def __init__(self, params):
        self.params = params

    def get_last_location(self) -> Optional[Coordinate]:
        lat = self.params.get('lat')
        lon = self.params.get('lon')
        if lat is None or lon is None:
            return None

        is_valid, error = validate_coordinates(lat, lon)
        if not is_valid:
            logger.info(f"Ignoring device fix ({lat}, {lon}): {error}")
            return None

        return Coordinate.from_fix(lat, lon)


class LocationCapability:
    """
    Whether the platform can currently provide a location: at least one
    provider (GPS or network) is enabled and runtime permission is granted.

    Each argument is a bool or a zero-argument callable returning one.
    """

    def __init__(self, services_enabled=True, permission_granted=True):
        self.services_enabled = services_enabled
        self.permission_granted = permission_granted

    @staticmethod
    def _check(value) -> bool:
        return bool(value() if callable(value) else value)

    def is_available(self) -> bool:
        return self._check(self.services_enabled) and self._check(self.permission_granted)


class ReverseGeocoder:
    """
    Resolves coordinates to a street-level address.
    Failures are reported through `notify` and degrade to None.
    """

    def __init__(
        self,
        geocoder=None,
        max_results: int = None,
        notify: Optional[Callable[[GeocodeError], None]] = None,
    ):
        air_settings = getattr(settings, 'AIR_QUALITY_SETTINGS', {})
        self.geocoder = geocoder or Nominatim(
            user_agent=air_settings.get('GEOCODER_USER_AGENT', 'airquality-now/1.0')
        )
        self.max_results = max_results or air_settings.get('GEOCODER_MAX_RESULTS', 7)
        self.timeout = air_settings.get('GEOCODER_TIMEOUT', 5)
        self.notify = notify

    def resolve(self, coordinate: Coordinate, notify=None) -> Optional[Address]:
        """
        Reverse geocode a coordinate.

        Args:
            coordinate: device fix
            notify: overrides the instance callback for this call

        Returns:
            Address of the first-ranked candidate, or None on any failure
        """
        try:
            return self._fetch_address(coordinate)
        except GeocodeError as e:
            logger.warning(f"Geocoding failed for {coordinate}: {e.message}")
            callback = notify or self.notify
            if callback:
                callback(e)
            return None

    def _fetch_address(self, coordinate: Coordinate) -> Address:
        try:
            is_valid, error = validate_coordinates(coordinate.latitude, coordinate.longitude)
            if not is_valid:
                raise ValueError(error)

            locations = self.geocoder.reverse(
                (coordinate.latitude, coordinate.longitude),
                exactly_one=False,
                timeout=self.timeout,
            )
        except ValueError as e:
            raise GeocodeInvalidArgument() from e
        except GeopyError as e:
            raise GeocodeUnavailable() from e

        candidates = list(locations or [])[:self.max_results]
        if not candidates:
            raise GeocodeNotFound()

        address = candidates[0].raw.get('address', {})

        return Address(
            thoroughfare=self._extract_thoroughfare(address),
            country_name=address.get('country', ''),
            admin_area=self._extract_region(address),
        )

    def _extract_thoroughfare(self, address):
        """Extract street name from address components."""
        return (
            address.get('road') or
            address.get('pedestrian') or
            address.get('street') or
            address.get('suburb') or
            ''
        )

    def _extract_region(self, address):
        """Extract region (state/province) from address components."""
        return (
            address.get('state') or
            address.get('province') or
            address.get('region') or
            ''
        )
