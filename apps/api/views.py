"""
API views.
"""
import logging
from concurrent.futures import TimeoutError as FuturesTimeoutError

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.constants import MESSAGES
from apps.core.types import FailureReason, RunResult, RunState
from apps.location.services import QueryLocationSource

from .orchestrator import AirQualityOrchestrator
from .reporting import CollectingReporter
from .serializers import ErrorSerializer, RunResultSerializer

logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    FailureReason.LOCATION_SERVICES_DISABLED: status.HTTP_400_BAD_REQUEST,
    FailureReason.NO_FIX: status.HTTP_400_BAD_REQUEST,
    FailureReason.FETCH_FAILED: status.HTTP_502_BAD_GATEWAY,
}


class AirQualityView(APIView):
    """
    GET /api/v1/air-quality/?lat=<lat>&lon=<lon>

    Runs one refresh for the device's last-known fix and returns what the
    screen should show.
    """

    def get(self, request):
        orchestrator = AirQualityOrchestrator(
            location_source=QueryLocationSource(request.query_params),
            reporter=CollectingReporter(),
        )
        try:
            timeout = settings.AIR_QUALITY_SETTINGS.get('REQUEST_TIMEOUT', 10) * 2
            future = orchestrator.refresh()
            result = future.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.warning(f"Air quality refresh exceeded {timeout}s, cancelling")
            # The fetch may have finished between the timeout and the cancel
            cancelled = orchestrator.cancel()
            result = future.result()
            if cancelled:
                result = RunResult(
                    run_id=result.run_id,
                    state=RunState.FAILED,
                    message=MESSAGES['fetch_failed'],
                    reason=FailureReason.FETCH_FAILED,
                    notices=result.notices,
                    history=result.history,
                )
        finally:
            orchestrator.shutdown(wait=False)

        if result.ok:
            return Response(RunResultSerializer(result).data)

        return Response(
            ErrorSerializer(result).data,
            status=FAILURE_STATUS.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
        )
