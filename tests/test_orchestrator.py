"""
Tests for AirQualityOrchestrator.

Tests cover:
- Decision paths: capability off, no fix, ready, fetch failed
- Best-effort geocoding: address failures never block the fetch
- Reporting: exactly one report per finished run, none for cancelled runs
- Concurrency: overlapping refreshes are coalesced or superseded
- Idempotence: identical inputs give identical outcomes
"""

import threading
from unittest.mock import Mock

import pytest
import requests

from apps.adapters.airvisual import AirVisualAdapter
from apps.api.orchestrator import AirQualityOrchestrator
from apps.api.reporting import CollectingReporter, Reporter
from apps.core.constants import MESSAGES
from apps.core.exceptions import FetchFailed
from apps.core.types import (
    Address,
    AirQualityReading,
    FailureReason,
    RunState,
    SeverityTier,
)
from apps.location.services import LocationCapability, ReverseGeocoder, StaticLocationSource

READING = AirQualityReading(aqius=42, timestamp_utc="2023-01-01T00:00:00Z")
ADDRESS = Address('Sejong-daero', 'South Korea', 'Seoul')


class TestAirQualityOrchestrator:
    """Test suite for the orchestrator."""

    @pytest.fixture
    def adapter(self):
        adapter = Mock(spec=AirVisualAdapter)
        adapter.fetch_current.return_value = READING
        return adapter

    @pytest.fixture
    def geocoder(self):
        geocoder = Mock(spec=ReverseGeocoder)
        geocoder.resolve.return_value = ADDRESS
        return geocoder

    @pytest.fixture
    def reporter(self):
        return CollectingReporter()

    @pytest.fixture
    def make_orchestrator(self, adapter, geocoder, reporter):
        created = []

        def make(location=(37.5665, 126.978), capability=None, **kwargs):
            kwargs.setdefault('geocoder', geocoder)
            kwargs.setdefault('adapter', adapter)
            kwargs.setdefault('reporter', reporter)
            kwargs.setdefault('location_source', StaticLocationSource(*location))
            orchestrator = AirQualityOrchestrator(
                capability=capability or LocationCapability(),
                display_time_zone='Asia/Seoul',
                **kwargs
            )
            created.append(orchestrator)
            return orchestrator

        yield make

        for orchestrator in created:
            orchestrator.shutdown()

    # ==================== Decision Paths ====================

    def test_ready(self, make_orchestrator, adapter, reporter):
        result = make_orchestrator().run(timeout=5)

        assert result.state == RunState.READY
        assert result.ok
        assert result.message == 'Air quality updated.'
        report = result.report
        assert report.count == 42
        assert report.tier == SeverityTier.GOOD
        assert report.label == 'Good'
        assert report.background == 'bg_good'
        assert report.checked_at == '2023-01-01 09:00'
        assert report.title == 'Sejong-daero'
        assert report.subtitle == 'South Korea Seoul'
        assert result.history == [
            RunState.IDLE,
            RunState.LOCATING_DEVICE,
            RunState.RESOLVING_ADDRESS,
            RunState.FETCHING_AIR_QUALITY,
            RunState.READY,
        ]
        assert reporter.results == [result]

    @pytest.mark.parametrize("aqius,tier", [
        (150, SeverityTier.MODERATE),
        (200, SeverityTier.UNHEALTHY),
        (201, SeverityTier.HAZARDOUS),
    ])
    def test_tier_follows_reading(self, make_orchestrator, adapter, aqius, tier):
        adapter.fetch_current.return_value = AirQualityReading(aqius, "2023-01-01T00:00:00Z")

        assert make_orchestrator().run(timeout=5).report.tier == tier

    def test_no_fix(self, make_orchestrator, adapter, geocoder, reporter):
        result = make_orchestrator(location=(0.0, 0.0)).run(timeout=5)

        assert result.state == RunState.FAILED
        assert result.reason == FailureReason.NO_FIX
        assert result.message == 'Unable to get latitude/longitude. Press refresh.'
        assert result.history == [RunState.IDLE, RunState.LOCATING_DEVICE, RunState.FAILED]
        geocoder.resolve.assert_not_called()
        adapter.fetch_current.assert_not_called()
        assert reporter.results == [result]

    def test_no_fix_regardless_of_provider(self, make_orchestrator, adapter):
        adapter.fetch_current.side_effect = FetchFailed(status_code=500)

        result = make_orchestrator(location=(0.0, 0.0)).run(timeout=5)

        assert result.reason == FailureReason.NO_FIX

    def test_location_services_disabled(self, make_orchestrator, adapter, reporter):
        capability = LocationCapability(services_enabled=False)

        result = make_orchestrator(capability=capability).run(timeout=5)

        assert result.reason == FailureReason.LOCATION_SERVICES_DISABLED
        assert result.history == [RunState.IDLE, RunState.FAILED]
        adapter.fetch_current.assert_not_called()
        assert len(reporter.results) == 1

    @pytest.mark.parametrize("error", [
        FetchFailed(status_code=500),
        FetchFailed("read timed out"),
        RuntimeError("unexpected"),
    ])
    def test_fetch_failed(self, make_orchestrator, adapter, reporter, error):
        adapter.fetch_current.side_effect = error

        result = make_orchestrator().run(timeout=5)

        assert result.state == RunState.FAILED
        assert result.reason == FailureReason.FETCH_FAILED
        assert result.message == 'Update failed.'
        assert adapter.fetch_current.call_count == 1
        assert reporter.results == [result]

    def test_api_key_is_passed_to_adapter(self, make_orchestrator, adapter):
        make_orchestrator(api_key='device-key').run(timeout=5)

        coordinate, api_key = adapter.fetch_current.call_args.args
        assert coordinate.latitude == 37.5665
        assert api_key == 'device-key'

    # ==================== Best-effort Geocoding ====================

    def test_geocode_not_found_still_fetches(self, make_orchestrator, adapter, reporter):
        geopy_geocoder = Mock()
        geopy_geocoder.reverse.return_value = []
        orchestrator = make_orchestrator(geocoder=ReverseGeocoder(geocoder=geopy_geocoder))

        result = orchestrator.run(timeout=5)

        assert result.state == RunState.READY
        assert RunState.FETCHING_AIR_QUALITY in result.history
        assert result.report.address is None
        assert result.report.title == ''
        assert result.report.subtitle == ''
        assert result.notices == ['No address found.']
        assert reporter.notices == ['No address found.']
        adapter.fetch_current.assert_called_once()

    def test_geocoder_raising_becomes_a_notice(self, make_orchestrator, geocoder, adapter):
        geocoder.resolve.side_effect = RuntimeError("geocoder crashed")

        result = make_orchestrator().run(timeout=5)

        assert result.state == RunState.READY
        assert result.report.address is None
        assert result.notices == ['Geocoder service unavailable.']
        adapter.fetch_current.assert_called_once()

    # ==================== Provider Body ====================

    def test_provider_body_through_real_adapter(self, make_orchestrator):
        response = Mock(spec=requests.Response)
        response.status_code = 200
        response.raise_for_status.return_value = None
        response.json.return_value = {
            "data": {"current": {"pollution": {"aqius": 42, "ts": "2023-01-01T00:00:00Z"}}}
        }
        session = Mock(spec=requests.Session)
        session.get.return_value = response

        result = make_orchestrator(adapter=AirVisualAdapter(session=session)).run(timeout=5)

        assert result.state == RunState.READY
        assert result.report.tier == SeverityTier.GOOD
        assert result.report.checked_at == '2023-01-01 09:00'

    # ==================== Collaborator Errors ====================

    def test_location_error_releases_slot(self, make_orchestrator, reporter, seoul):
        location_source = Mock(spec=StaticLocationSource)
        location_source.get_last_location.side_effect = [OSError("provider glitch"), seoul]
        orchestrator = make_orchestrator(location_source=location_source)

        first = orchestrator.run(timeout=5)

        assert first.state == RunState.FAILED
        assert first.reason == FailureReason.NO_FIX
        assert not orchestrator.in_flight

        second = orchestrator.run(timeout=5)

        assert second.state == RunState.READY
        assert reporter.results == [first, second]

    def test_capability_error(self, make_orchestrator, adapter):
        capability = Mock(spec=LocationCapability)
        capability.is_available.side_effect = PermissionError("denied")
        orchestrator = make_orchestrator(capability=capability)

        result = orchestrator.run(timeout=5)

        assert result.reason == FailureReason.LOCATION_SERVICES_DISABLED
        assert not orchestrator.in_flight
        adapter.fetch_current.assert_not_called()

    def test_reporter_error_still_resolves_run(self, make_orchestrator):
        reporter = Mock(spec=CollectingReporter)
        reporter.report_ready.side_effect = RuntimeError("ui gone")
        orchestrator = make_orchestrator(reporter=reporter)

        result = orchestrator.run(timeout=5)

        assert result.state == RunState.READY
        reporter.report_ready.assert_called_once_with(result)
        assert not orchestrator.in_flight

    def test_reporter_error_on_failure_still_resolves_run(self, make_orchestrator):
        reporter = Mock(spec=CollectingReporter)
        reporter.report_failure.side_effect = RuntimeError("ui gone")

        result = make_orchestrator(location=(0.0, 0.0), reporter=reporter).run(timeout=5)

        assert result.reason == FailureReason.NO_FIX

    def test_every_failure_reason_has_a_message(self):
        for reason in FailureReason:
            assert MESSAGES[reason.value.lower()]

    def test_reporter_is_abstract(self):
        with pytest.raises(TypeError):
            Reporter()

    # ==================== Idempotence ====================

    def test_repeated_runs_are_identical(self, make_orchestrator):
        orchestrator = make_orchestrator()

        first = orchestrator.run(timeout=5)
        second = orchestrator.run(timeout=5)

        assert second.run_id == first.run_id + 1
        assert first.same_outcome(second)

    # ==================== Concurrency ====================

    def _block_fetch(self, adapter):
        release = threading.Event()

        def fetch(coordinate, api_key):
            release.wait(5)
            return READING

        adapter.fetch_current.side_effect = fetch
        return release

    def test_overlapping_refresh_is_coalesced(self, make_orchestrator, adapter, reporter):
        release = self._block_fetch(adapter)
        orchestrator = make_orchestrator()

        first = orchestrator.refresh()
        second = orchestrator.refresh()
        assert orchestrator.in_flight
        release.set()

        assert second is first
        assert first.result(timeout=5).state == RunState.READY
        assert adapter.fetch_current.call_count == 1
        assert len(reporter.results) == 1
        assert not orchestrator.in_flight

    def test_superseded_run_is_cancelled_and_never_reported(self, make_orchestrator, adapter, reporter):
        release = self._block_fetch(adapter)
        orchestrator = make_orchestrator()

        stale = orchestrator.refresh()
        fresh = orchestrator.refresh(supersede=True)

        assert stale.done()
        assert stale.result().state == RunState.CANCELLED
        assert stale.result().history[-1] == RunState.CANCELLED

        release.set()
        result = fresh.result(timeout=5)
        orchestrator.shutdown()

        assert result.state == RunState.READY
        assert reporter.results == [result]

    def test_cancel(self, make_orchestrator, adapter, reporter):
        release = self._block_fetch(adapter)
        orchestrator = make_orchestrator()

        future = orchestrator.refresh()
        assert orchestrator.cancel() is True
        assert orchestrator.cancel() is False

        release.set()
        orchestrator.shutdown()

        assert future.result().state == RunState.CANCELLED
        assert future.result().message == 'Superseded by a newer refresh.'
        assert reporter.results == []

    def test_cancel_without_run(self, make_orchestrator):
        assert make_orchestrator().cancel() is False

    def test_result_future_cannot_be_cancelled_by_caller(self, make_orchestrator, adapter):
        release = self._block_fetch(adapter)
        orchestrator = make_orchestrator()

        future = orchestrator.refresh()
        assert future.cancel() is False
        release.set()

        assert future.result(timeout=5).state == RunState.READY
