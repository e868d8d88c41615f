"""
Domain errors and the unified API exception handler.

Service functions raise these DRF exception types directly so the
HTTP layer can render them without translation.  Each carries a
distinct ``default_code`` that ends up in the response envelope.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)

# Re-exported so callers import every error kind from one place.
ValidationError = exceptions.ValidationError


class NotFound(exceptions.NotFound):
    default_detail = 'Not found.'
    default_code = 'not_found'


class InvalidState(exceptions.APIException):
    """The operation is not legal for the requisition's current status."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation not allowed in the current state.'
    default_code = 'invalid_state'


class InsufficientStock(exceptions.APIException):
    """Requested issue quantity exceeds the on-hand quantity of a stock record."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock. Available: {available}, Requested: {requested}")


def _error_code(exc) -> str:
    if isinstance(exc, exceptions.ValidationError):
        return 'invalid'
    return getattr(exc, 'default_code', None) or 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled error in %s", context.get('view'))
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=500,
        )
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response(
        {'ok': False, 'error': {'code': _error_code(exc), 'message': detail}},
        status=resp.status_code,
    )
