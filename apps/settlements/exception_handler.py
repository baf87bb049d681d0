"""
DRF exception handler that renders every failure as ``{"error": "..."}``.

Registered as ``REST_FRAMEWORK['EXCEPTION_HANDLER']``.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.settlements.services.exceptions import SettlementServiceError

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Pull the first human-readable message out of DRF error detail."""
    if isinstance(detail, dict):
        if not detail:
            return 'Invalid request.'
        key, value = next(iter(detail.items()))
        message = _first_message(value)
        if key in ('detail', 'non_field_errors'):
            return message
        return f"{key}: {message}"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid request.'
    return str(detail)


def settlement_exception_handler(exc, context):
    if isinstance(exc, SettlementServiceError):
        return Response({'error': str(exc)}, status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        response.data = {'error': _first_message(response.data)}
        return response

    view = context.get('view')
    logger.error(
        "Unhandled error in %s",
        view.__class__.__name__ if view is not None else "view",
        exc_info=exc,
    )
    return Response(
        {'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
