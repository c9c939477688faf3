"""
Orchestrator that sequences one air quality refresh for the device's location.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Optional

from django.conf import settings

from apps.adapters.airvisual import AirVisualAdapter
from apps.core.constants import MESSAGES
from apps.core.exceptions import FetchFailed, GeocodeUnavailable
from apps.core.types import (
    AirQualityReport,
    FailureReason,
    RunResult,
    RunState,
)
from apps.core.utils import classify_aqi, format_checked_at, get_tier_info
from apps.location.services import (
    LocationCapability,
    ReverseGeocoder,
    StaticLocationSource,
)

from .reporting import LoggingReporter

logger = logging.getLogger(__name__)


class _Run:
    """Mutable bookkeeping for one run. Owned by the orchestrator."""

    def __init__(self, run_id: int):
        self.run_id = run_id
        self.history = [RunState.IDLE]
        self.notices = []
        self.finished = False
        self.fetch_future: Optional[Future] = None
        self.future = Future()
        # Callers cannot cancel the result future; use orchestrator.cancel()
        self.future.set_running_or_notify_cancel()

    def enter(self, state: RunState):
        logger.debug(f"Run {self.run_id}: {self.history[-1].value} -> {state.value}")
        self.history.append(state)


class AirQualityOrchestrator:
    """
    Coordinates one refresh:
    1. Location capability check
    2. Last-known device fix
    3. Reverse geocoding (best effort)
    4. Air quality fetch (on a worker thread)
    5. Classification and report

    At most one run is in flight per instance. Overlapping refreshes are
    coalesced onto the outstanding run unless they supersede it.
    """

    # Failure reported when a collaborator raises during a synchronous stage
    _STAGE_FAILURES = {
        RunState.IDLE: FailureReason.LOCATION_SERVICES_DISABLED,
        RunState.LOCATING_DEVICE: FailureReason.NO_FIX,
    }

    def __init__(
        self,
        location_source=None,
        capability=None,
        geocoder=None,
        adapter=None,
        reporter=None,
        api_key: Optional[str] = None,
        display_time_zone: Optional[str] = None,
        executor=None,
    ):
        air_settings = settings.AIR_QUALITY_SETTINGS

        self.location_source = location_source or self._default_location_source(air_settings)
        self.capability = capability or LocationCapability()
        self.geocoder = geocoder or ReverseGeocoder()
        self.adapter = adapter or AirVisualAdapter()
        self.reporter = reporter or LoggingReporter()
        self.api_key = api_key
        self.display_time_zone = display_time_zone or air_settings.get('DISPLAY_TIME_ZONE', 'Asia/Seoul')

        self._owns_executor = executor is None
        # Two workers so a superseding fetch does not queue behind a stale one
        self.executor = executor or ThreadPoolExecutor(
            max_workers=2,
            thread_name_prefix='airquality-fetch',
        )

        self._lock = threading.Lock()
        self._run_counter = 0
        self._inflight: Optional[_Run] = None

    @staticmethod
    def _default_location_source(air_settings):
        default = air_settings.get('DEFAULT_LOCATION')
        if default:
            return StaticLocationSource(*default)
        return StaticLocationSource()

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def refresh(self, supersede: bool = False) -> Future:
        """
        Start a run triggered by app start or a manual refresh.

        Args:
            supersede: cancel an outstanding run instead of joining it

        Returns:
            Future resolving to the run's RunResult
        """
        cancelled = None

        with self._lock:
            current = self._inflight
            if current is not None:
                if not supersede:
                    logger.info(f"Refresh ignored, run {current.run_id} still in flight")
                    return current.future
                cancelled = self._claim(current)

            self._run_counter += 1
            run = _Run(self._run_counter)
            self._inflight = run

        if cancelled is not None:
            self._resolve_cancelled(cancelled)

        self._start(run)
        return run.future

    def run(self, timeout: Optional[float] = None) -> RunResult:
        """Refresh and wait for the outcome."""
        return self.refresh().result(timeout=timeout)

    def cancel(self) -> bool:
        """
        Cancel the outstanding run. It resolves to CANCELLED and is never
        reported; a response that arrives later is discarded.

        Returns:
            True if a run was cancelled
        """
        with self._lock:
            run = self._inflight
            if run is None:
                return False
            self._claim(run)

        self._resolve_cancelled(run)
        return True

    def shutdown(self, wait: bool = True):
        if self._owns_executor:
            self.executor.shutdown(wait=wait)

    def _start(self, run: _Run):
        try:
            self._advance(run)
        except Exception as e:
            stage = run.history[-1]
            logger.error(f"Run {run.run_id}: unexpected error while {stage.value}: {e}", exc_info=True)
            self._fail(run, self._STAGE_FAILURES.get(stage, FailureReason.FETCH_FAILED))

    def _advance(self, run: _Run):
        if not self.capability.is_available():
            self._fail(run, FailureReason.LOCATION_SERVICES_DISABLED)
            return

        run.enter(RunState.LOCATING_DEVICE)
        coordinate = self.location_source.get_last_location()
        if coordinate is None:
            self._fail(run, FailureReason.NO_FIX)
            return

        run.enter(RunState.RESOLVING_ADDRESS)
        try:
            address = self.geocoder.resolve(coordinate, notify=partial(self._on_notice, run))
        except Exception as e:
            logger.error(f"Run {run.run_id}: geocoder raised: {e}", exc_info=True)
            self._on_notice(run, GeocodeUnavailable())
            address = None
        if run.finished:
            return

        run.enter(RunState.FETCHING_AIR_QUALITY)
        try:
            fetch = self.executor.submit(self.adapter.fetch_current, coordinate, self.api_key)
        except RuntimeError as e:
            logger.error(f"Run {run.run_id}: could not schedule fetch: {e}")
            self._fail(run, FailureReason.FETCH_FAILED)
            return

        run.fetch_future = fetch
        fetch.add_done_callback(partial(self._on_fetch_done, run, coordinate, address))

    def _on_notice(self, run: _Run, error):
        run.notices.append(error.message)
        try:
            self.reporter.notify(error.message)
        except Exception as e:
            logger.error(f"Run {run.run_id}: reporter failed on notice: {e}", exc_info=True)

    def _on_fetch_done(self, run: _Run, coordinate, address, fetch: Future):
        if fetch.cancelled():
            return

        try:
            reading = fetch.result()
        except FetchFailed as e:
            logger.warning(f"Run {run.run_id}: fetch failed: {e.message}")
            self._fail(run, FailureReason.FETCH_FAILED)
            return
        except Exception as e:
            logger.error(f"Run {run.run_id}: unexpected fetch error: {e}", exc_info=True)
            self._fail(run, FailureReason.FETCH_FAILED)
            return

        try:
            report = self._build_report(coordinate, address, reading)
        except Exception as e:
            logger.error(f"Run {run.run_id}: could not present reading {reading}: {e}")
            self._fail(run, FailureReason.FETCH_FAILED)
            return

        self._finish(run, RunState.READY, MESSAGES['ready'], report=report)

    def _build_report(self, coordinate, address, reading) -> AirQualityReport:
        tier = classify_aqi(reading.aqius)
        tier_info = get_tier_info(tier)

        return AirQualityReport(
            title=address.title if address else '',
            subtitle=address.subtitle if address else '',
            count=reading.aqius,
            checked_at=format_checked_at(reading.timestamp_utc, self.display_time_zone),
            tier=tier,
            label=tier_info['label'],
            background=tier_info['background'],
            coordinate=coordinate,
            address=address,
        )

    def _fail(self, run: _Run, reason: FailureReason):
        self._finish(run, RunState.FAILED, MESSAGES[reason.value.lower()], reason=reason)

    def _finish(self, run: _Run, state: RunState, message: str, reason=None, report=None):
        with self._lock:
            if run.finished:
                logger.debug(f"Run {run.run_id}: dropping {state.value}, run already finished")
                return
            self._claim(run)

        run.enter(state)
        result = self._result(run, state, message, reason=reason, report=report)

        try:
            if state == RunState.READY:
                logger.info(f"Run {run.run_id}: ready, AQI {report.count} ({report.tier.value})")
                self.reporter.report_ready(result)
            else:
                logger.info(f"Run {run.run_id}: failed ({reason.value})")
                self.reporter.report_failure(result)
        except Exception as e:
            logger.error(f"Run {run.run_id}: reporter failed: {e}", exc_info=True)
        finally:
            run.future.set_result(result)

    def _claim(self, run: _Run) -> _Run:
        """Mark a run finished and free the in-flight slot. Caller holds the lock."""
        run.finished = True
        if self._inflight is run:
            self._inflight = None
        return run

    def _resolve_cancelled(self, run: _Run):
        logger.info(f"Run {run.run_id}: cancelled")
        if run.fetch_future is not None:
            run.fetch_future.cancel()
        run.enter(RunState.CANCELLED)
        run.future.set_result(self._result(run, RunState.CANCELLED, MESSAGES['cancelled']))

    @staticmethod
    def _result(run: _Run, state, message, reason=None, report=None) -> RunResult:
        return RunResult(
            run_id=run.run_id,
            state=state,
            message=message,
            reason=reason,
            report=report,
            notices=list(run.notices),
            history=list(run.history),
        )
