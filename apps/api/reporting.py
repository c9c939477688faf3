"""
Reporters receive the outcome of each orchestration run.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import List

from apps.core.types import RunResult

logger = logging.getLogger(__name__)


class Reporter(ABC):
    """
    Receiver for run outcomes. `report_ready` or `report_failure` is called
    exactly once per completed run; `notify` carries non-fatal notices.
    """

    def notify(self, message: str):
        """Non-fatal notice. Ignored unless overridden."""

    @abstractmethod
    def report_ready(self, result: RunResult):
        """Run finished READY."""

    @abstractmethod
    def report_failure(self, result: RunResult):
        """Run finished FAILED."""


class LoggingReporter(Reporter):
    """Writes outcomes to the log. Used when no screen is attached."""

    def notify(self, message: str):
        logger.info(f"Notice: {message}")

    def report_ready(self, result: RunResult):
        report = result.report
        logger.info(
            f"Run {result.run_id}: AQI {report.count} ({report.label}) "
            f"at {report.checked_at} {report.title} {report.subtitle}".rstrip()
        )

    def report_failure(self, result: RunResult):
        logger.warning(f"Run {result.run_id} failed ({result.reason.value}): {result.message}")


class CollectingReporter(Reporter):
    """Keeps every notice and outcome in memory, in arrival order."""

    def __init__(self):
        self._lock = threading.Lock()
        self.notices: List[str] = []
        self.results: List[RunResult] = []

    def notify(self, message: str):
        with self._lock:
            self.notices.append(message)

    def report_ready(self, result: RunResult):
        with self._lock:
            self.results.append(result)

    def report_failure(self, result: RunResult):
        with self._lock:
            self.results.append(result)
