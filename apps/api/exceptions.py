"""
Custom exception handler for the API.
"""
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.core.exceptions import AirQualityError, FetchFailed

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler for DRF.
    Logs errors and provides consistent {error, code} responses.
    """
    response = exception_handler(exc, context)

    logger.error(
        f"API Exception: {exc}",
        exc_info=True,
        extra={'view': context.get('view').__class__.__name__ if context.get('view') else None}
    )

    if response is None:
        if isinstance(exc, AirQualityError):
            code = status.HTTP_502_BAD_GATEWAY if isinstance(exc, FetchFailed) else status.HTTP_400_BAD_REQUEST
            return Response({'error': exc.message, 'code': code}, status=code)

        return Response(
            {
                'error': 'Internal server error',
                'detail': str(exc) if settings.DEBUG else 'An error occurred',
                'code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(response.data, dict):
        response.data = {
            'error': response.data.get('detail', 'Error'),
            'code': response.status_code
        }

    return response
