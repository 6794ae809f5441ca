import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidState(APIException):
    """The operation is not legal for the entity's current status."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This operation is not allowed in the current state."
    default_code = 'invalid_state'


class InvalidArgument(APIException):
    """Malformed or out-of-range input (self-conversation, rating outside 1-5, ...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid argument."
    default_code = 'invalid_argument'


ERROR_KINDS = (
    (InvalidState, 'invalid_state'),
    (InvalidArgument, 'invalid_argument'),
    (ValidationError, 'invalid_argument'),
    (PermissionDenied, 'forbidden'),
    (NotFound, 'not_found'),
    (NotAuthenticated, 'unauthorized'),
    (AuthenticationFailed, 'unauthorized'),
)


def error_kind(exc):
    for exc_class, kind in ERROR_KINDS:
        if isinstance(exc, exc_class):
            return kind
    return getattr(exc, 'default_code', 'error')


def api_exception_handler(exc, context):
    """
    Render every error as {"detail": ..., "kind": ...}.

    DRF's default handler converts Http404 and Django's PermissionDenied into
    their DRF counterparts before we see the response, so the kind is derived
    from the status code in those cases.
    """
    response = exception_handler(exc, context)

    if response is None:
        if isinstance(exc, DatabaseError):
            view = context.get('view')
            logger.exception("Database failure in %s", view.__class__.__name__ if view else 'unknown view')
            return Response(
                {'detail': "Internal server error.", 'kind': 'internal'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return None

    if isinstance(exc, APIException):
        kind = error_kind(exc)
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        kind = 'not_found'
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        kind = 'forbidden'
    else:
        kind = 'error'

    data = response.data
    if not isinstance(data, dict) or set(data) - {'detail'}:
        data = {'detail': data}
    data['kind'] = kind
    response.data = data
    return response
