"""
Domain errors shared by every app and the DRF handler that renders them.

All errors are terminal: the operation is aborted and the message is returned
to the caller as {"error": "<message>"}.
"""
from rest_framework import status
from rest_framework import exceptions as drf_exceptions
import logging

logger = logging.getLogger(__name__)


class Unauthenticated(drf_exceptions.NotAuthenticated):
    """No identity attached to the request."""
    default_detail = 'Unauthorized'


class PermissionDenied(drf_exceptions.PermissionDenied):
    """Identity present but role or ownership is insufficient."""
    default_detail = 'Permission denied'


class NotFound(drf_exceptions.NotFound):
    default_detail = 'Not found'


class ValidationFailed(drf_exceptions.APIException):
    """Business rule rejected the request (bad score, attempts exhausted, ...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Validation failed'
    default_code = 'validation_failed'


def lms_exception_handler(exc, context):
    """
    Render every API error as {"error": message}.

    Serializer validation errors keep their field details under "details".
    """
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {'error': 'Invalid request data', 'details': exc.detail}
        return response

    if isinstance(exc, drf_exceptions.NotAuthenticated):
        response.data = {'error': Unauthenticated.default_detail}
        return response

    detail = getattr(exc, 'detail', None)
    message = str(detail) if detail is not None else str(exc)
    if response.status_code >= 500:
        logger.error(f"API error: {message}")
    response.data = {'error': message}
    return response
