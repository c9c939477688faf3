"""
Base adapter class for air quality data sources.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from apps.core.exceptions import FetchFailed
from apps.core.types import AirQualityReading, Coordinate

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """
    Abstract base class for data source adapters.
    Provides the HTTP session, request timing and error mapping.
    """

    # Subclasses must define these
    SOURCE_NAME = None
    SOURCE_CODE = None
    API_BASE_URL = None
    REQUIRES_API_KEY = True

    def __init__(self, api_key: Optional[str] = None, session: requests.Session = None):
        if not all([self.SOURCE_NAME, self.SOURCE_CODE, self.API_BASE_URL]):
            raise ValueError("Adapter must define SOURCE_NAME, SOURCE_CODE, and API_BASE_URL")

        self.settings = settings.AIR_QUALITY_SETTINGS
        self.api_key = api_key or self._get_api_key()
        self.session = session or self._create_session()

    def _get_api_key(self) -> Optional[str]:
        """Get API key from settings."""
        if not self.REQUIRES_API_KEY:
            return None

        api_key = settings.API_KEYS.get(self.SOURCE_CODE.lower())
        if not api_key:
            logger.warning(f"No API key found for {self.SOURCE_NAME}")

        return api_key

    def _create_session(self) -> requests.Session:
        """Create requests session. Retries stay off unless MAX_RETRIES is set."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.settings.get('MAX_RETRIES', 0),
            backoff_factor=self.settings.get('RETRY_BACKOFF_FACTOR', 0),
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def _make_request(
        self,
        endpoint: str,
        params: Dict = None,
        headers: Dict = None,
        api_key: Optional[str] = None,
    ) -> Dict:
        """
        Make a single GET request and decode the JSON body.

        Args:
            endpoint: API endpoint path
            params: Query parameters
            headers: HTTP headers
            api_key: Overrides the configured key for this call

        Returns:
            Response data as dict

        Raises:
            FetchFailed: on transport errors, non-2xx status or an undecodable body
        """
        url = f"{self.API_BASE_URL.rstrip('/')}/{endpoint.lstrip('/')}"
        params = dict(params or {})
        headers = dict(headers or {})

        start_time = time.time()

        try:
            self._add_api_key(params, headers, api_key or self.api_key)

            timeout = self.settings.get('REQUEST_TIMEOUT', 10)
            response = self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=timeout,
            )

            response_time_ms = int((time.time() - start_time) * 1000)
            logger.debug(
                f"{self.SOURCE_NAME} {endpoint} [{response.status_code}] in {response_time_ms}ms"
            )

            response.raise_for_status()

            return response.json()

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(f"{self.SOURCE_NAME} API error: {e}")
            raise FetchFailed(status_code=status_code) from e

        except ValueError as e:
            # requests' JSONDecodeError is a ValueError
            logger.error(f"{self.SOURCE_NAME} returned a non-JSON body: {e}")
            raise FetchFailed() from e

        except requests.exceptions.RequestException as e:
            logger.error(f"{self.SOURCE_NAME} API error: {e}")
            raise FetchFailed() from e

    def _add_api_key(self, params: Dict, headers: Dict, api_key: Optional[str]):
        """
        Add API key to request. Override in subclass if needed.
        Default: adds to query params as 'api_key'.
        """
        if self.REQUIRES_API_KEY and api_key:
            params['api_key'] = api_key

    @abstractmethod
    def normalize_data(self, raw_data: Dict) -> AirQualityReading:
        """
        Normalize raw API response to a reading.

        Raises:
            FetchFailed: if the payload lacks the expected fields
        """

    @abstractmethod
    def fetch_current(self, coordinate: Coordinate, api_key: Optional[str] = None) -> AirQualityReading:
        """
        Fetch current air quality for a coordinate.

        Args:
            coordinate: Device fix
            api_key: Overrides the configured key for this call

        Returns:
            AirQualityReading

        Raises:
            FetchFailed: on any failure
        """
