"""
Request-scoped value types shared by the location, adapter and api apps.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SeverityTier(str, Enum):
    GOOD = 'GOOD'
    MODERATE = 'MODERATE'
    UNHEALTHY = 'UNHEALTHY'
    HAZARDOUS = 'HAZARDOUS'


class FailureReason(str, Enum):
    LOCATION_SERVICES_DISABLED = 'LOCATION_SERVICES_DISABLED'
    NO_FIX = 'NO_FIX'
    GEOCODE_ERROR = 'GEOCODE_ERROR'
    FETCH_FAILED = 'FETCH_FAILED'


class RunState(str, Enum):
    IDLE = 'IDLE'
    LOCATING_DEVICE = 'LOCATING_DEVICE'
    RESOLVING_ADDRESS = 'RESOLVING_ADDRESS'
    FETCHING_AIR_QUALITY = 'FETCHING_AIR_QUALITY'
    READY = 'READY'
    FAILED = 'FAILED'
    CANCELLED = 'CANCELLED'


@dataclass(frozen=True)
class Coordinate:
    """A usable device fix in decimal degrees."""
    latitude: float
    longitude: float

    @classmethod
    def from_fix(cls, latitude, longitude) -> Optional['Coordinate']:
        """
        Build a coordinate from a raw platform fix.

        Platform location providers report 0.0 for a component they could not
        determine, so a fix with either component at zero means "no fix".
        """
        try:
            latitude = float(latitude)
            longitude = float(longitude)
        except (TypeError, ValueError):
            return None

        if latitude == 0.0 or longitude == 0.0:
            return None

        return cls(latitude=latitude, longitude=longitude)

    def as_query(self) -> dict:
        """Decimal-degree strings as sent to the provider."""
        return {'lat': str(self.latitude), 'lon': str(self.longitude)}


@dataclass(frozen=True)
class Address:
    thoroughfare: str = ''
    country_name: str = ''
    admin_area: str = ''

    @property
    def title(self) -> str:
        return self.thoroughfare

    @property
    def subtitle(self) -> str:
        return f"{self.country_name} {self.admin_area}".strip()


@dataclass(frozen=True)
class AirQualityReading:
    """US AQI value and its ISO-8601 measurement time as reported by the provider."""
    aqius: int
    timestamp_utc: str


@dataclass(frozen=True)
class AirQualityReport:
    """Everything the screen needs to render a successful run."""
    title: str
    subtitle: str
    count: int
    checked_at: str
    tier: SeverityTier
    label: str
    background: str
    coordinate: Coordinate
    address: Optional[Address] = None


@dataclass(frozen=True)
class RunResult:
    """Terminal outcome of one orchestration run."""
    run_id: int
    state: RunState
    message: str
    reason: Optional[FailureReason] = None
    report: Optional[AirQualityReport] = None
    notices: List[str] = field(default_factory=list)
    history: List[RunState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == RunState.READY

    def same_outcome(self, other: 'RunResult') -> bool:
        """Compare two runs ignoring their ids."""
        return (
            self.state == other.state and
            self.message == other.message and
            self.reason == other.reason and
            self.report == other.report and
            self.notices == other.notices and
            self.history == other.history
        )
