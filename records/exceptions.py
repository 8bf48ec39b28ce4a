"""
API error kinds and the unified exception handler.

Every failure leaves the API as
``{'ok': False, 'error': {'code': <kind>, 'message': <text>}}`` with a
stable ``code``.  Service code raises the domain exceptions below; DRF
and Django built-ins are mapped onto the same kinds here.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ApiError(exceptions.APIException):
    """Base class for errors that carry their own stable kind."""
    kind = 'ApiError'


class InvalidCredentials(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials'
    kind = 'InvalidCredentials'


class AccountPending(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = ('Your account is pending approval. '
                      'Please wait for the system owner to approve your hospital.')
    kind = 'AccountPending'


class NotFound(ApiError):
    """Missing record, or a record owned by another tenant (never 403)."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    kind = 'NotFound'


class DuplicateHospitalEmail(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Hospital with this email already exists'
    kind = 'DuplicateHospitalEmail'


class DuplicateAdminEmail(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'User with this email already exists'
    kind = 'DuplicateAdminEmail'


class TokenNotFound(ApiError):
    # Same text for every miss so the response says nothing about the token.
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Invalid QR code.'
    kind = 'TokenNotFound'


# Order matters: subclasses before their bases.
KIND_BY_EXCEPTION = (
    (exceptions.NotAuthenticated, 'Unauthenticated'),
    (exceptions.AuthenticationFailed, 'Unauthenticated'),
    (exceptions.PermissionDenied, 'Forbidden'),
    (exceptions.NotFound, 'NotFound'),
    (exceptions.ValidationError, 'ValidationError'),
    (exceptions.ParseError, 'ValidationError'),
    (exceptions.MethodNotAllowed, 'MethodNotAllowed'),
    (exceptions.Throttled, 'Throttled'),
)


def error_kind(exc) -> str:
    if isinstance(exc, ApiError):
        return exc.kind
    for cls, kind in KIND_BY_EXCEPTION:
        if isinstance(exc, cls):
            return kind
    return 'ApiError'


def _message(data) -> str:
    if isinstance(data, dict):
        detail = data.get('detail')
        if detail is not None:
            return str(detail)
        return 'Invalid input.'
    if isinstance(data, list):
        return ' '.join(str(x) for x in data) or 'Invalid input.'
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled API error in %s', type(context.get('view')).__name__)
        return Response(
            {'ok': False, 'error': {'code': 'ServerError', 'message': 'Internal server error'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    error = {'code': error_kind(exc), 'message': _message(resp.data)}
    if isinstance(exc, exceptions.ValidationError) and isinstance(resp.data, dict):
        error['fields'] = resp.data
    resp.data = {'ok': False, 'error': error}
    return resp
