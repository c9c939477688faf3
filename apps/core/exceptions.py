"""
Error taxonomy for the air quality workflow.
"""


class AirQualityError(Exception):
    """Base class for all workflow errors."""
    message = 'Air quality error'

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class FetchFailed(AirQualityError):
    """
    The air quality provider could not be reached or returned an unusable
    response. Transport failures and non-2xx statuses are not distinguished.
    """
    message = 'Update failed.'

    def __init__(self, message: str = None, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class GeocodeError(AirQualityError):
    """Reverse geocoding failed. Never fatal to a run."""
    message = 'Address lookup failed.'


class GeocodeUnavailable(GeocodeError):
    message = 'Geocoder service unavailable.'


class GeocodeInvalidArgument(GeocodeError):
    message = 'Invalid latitude/longitude.'


class GeocodeNotFound(GeocodeError):
    message = 'No address found.'
