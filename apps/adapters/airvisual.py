"""
AirVisual (IQAir) adapter for current air quality at a coordinate.
"""
import logging
from typing import Dict, Optional

from django.conf import settings

from apps.core.exceptions import FetchFailed
from apps.core.types import AirQualityReading, Coordinate
from apps.core.utils import parse_timestamp

from .base import BaseAdapter

logger = logging.getLogger(__name__)


class AirVisualAdapter(BaseAdapter):
    """
    Adapter for AirVisual (IQAir) API.
    Uses the nearest_city endpoint, which picks the closest monitored city.
    """

    SOURCE_NAME = "AirVisual"
    SOURCE_CODE = "AIRVISUAL"
    API_BASE_URL = "https://api.airvisual.com/v2/"
    REQUIRES_API_KEY = True

    def __init__(self, api_key: Optional[str] = None, session=None):
        base_url = settings.AIR_QUALITY_SETTINGS.get('AIRVISUAL_BASE_URL')
        if base_url:
            self.API_BASE_URL = base_url
        super().__init__(api_key=api_key, session=session)

    def _add_api_key(self, params: Dict, headers: Dict, api_key: Optional[str]):
        """AirVisual uses 'key' parameter."""
        if api_key:
            params['key'] = api_key

    def fetch_current(self, coordinate: Coordinate, api_key: Optional[str] = None) -> AirQualityReading:
        raw_data = self._make_request('nearest_city', params=coordinate.as_query(), api_key=api_key)

        if not isinstance(raw_data, dict):
            logger.error(f"AirVisual returned a {type(raw_data).__name__} body")
            raise FetchFailed()

        # A 2xx body is trusted unless the provider explicitly flags it
        status = raw_data.get('status')
        if status is not None and status != 'success':
            logger.error(f"AirVisual returned status {status!r}")
            raise FetchFailed()

        return self.normalize_data(raw_data)

    def normalize_data(self, raw_data: Dict) -> AirQualityReading:
        """
        Extract data.current.pollution.{aqius, ts}.
        """
        try:
            pollution = raw_data['data']['current']['pollution']
            aqius = pollution['aqius']
            ts = pollution['ts']
        except (KeyError, TypeError) as e:
            logger.error(f"Error parsing AirVisual data: missing {e}")
            raise FetchFailed() from e

        # bool is an int subclass; reject it along with floats and strings
        if not isinstance(aqius, int) or isinstance(aqius, bool):
            logger.error(f"Error parsing AirVisual data: aqius={aqius!r}")
            raise FetchFailed()

        try:
            parse_timestamp(ts)
        except ValueError as e:
            logger.error(f"Error parsing AirVisual data: ts={ts!r}")
            raise FetchFailed() from e

        return AirQualityReading(aqius=aqius, timestamp_utc=ts)
