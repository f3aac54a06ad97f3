"""
Domain errors shared by the projects and accounts apps, and the DRF
exception handler that turns them into HTTP responses.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors raised below the HTTP layer.

    Only ``message`` reaches the client; ``cause`` keeps the underlying
    exception for logs.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Internal server error'

    def __init__(self, message=None, cause=None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Conflict'


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input'


class PersistenceError(ServiceError):
    default_message = 'Storage failure'


class InternalError(ServiceError):
    pass


class ExternalServiceError(ServiceError):
    default_message = 'External service failure'


def service_exception_handler(exc, context):
    """
    Map ServiceError subclasses to ``{"success": false, "message": ...}``
    responses; anything else goes through DRF's default handler.
    """
    if isinstance(exc, ServiceError):
        if exc.status_code >= 500:
            view = context.get('view')
            logger.error(
                "%s in %s: %s (cause: %r)",
                type(exc).__name__, type(view).__name__ if view else 'unknown view',
                exc.message, exc.cause,
            )
        return Response({'success': False, 'message': exc.message}, status=exc.status_code)
    return exception_handler(exc, context)
