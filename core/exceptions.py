"""
Domain errors and the project-wide DRF exception handler.

Services raise :class:`ClinicError` subclasses carrying an HTTP status;
views let them propagate and the handler renders every failure as
``{"ok": false, "error": {"code": ..., "message": ...}}``.
"""
from __future__ import annotations

import logging

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    status = 400

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class BookingError(ClinicError):
    pass


class DispenseError(ClinicError):
    pass


class CertificateError(ClinicError):
    pass


class AccountError(ClinicError):
    pass


def _error(code: str, message, status: int) -> Response:
    return Response({'ok': False, 'error': {'code': code, 'message': message}}, status=status)


def _flatten(data):
    if isinstance(data, dict):
        for v in data.values():
            yield from _flatten(v)
    elif isinstance(data, (list, tuple)):
        for v in data:
            yield from _flatten(v)
    else:
        yield str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, ClinicError):
        return _error('clinic_error', exc.message, exc.status)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view') if context else None
        logger.exception('unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        return _error('server_error', 'Internal server error', 500)

    if isinstance(exc, drf_exceptions.ValidationError):
        # one distinct message is sent as a plain string
        messages = list(dict.fromkeys(_flatten(resp.data)))
        message = messages[0] if len(messages) == 1 else resp.data
        return _error('invalid', message, resp.status_code)

    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        code = 'not_authenticated'
    elif isinstance(exc, drf_exceptions.PermissionDenied):
        code = 'forbidden'
    elif isinstance(exc, (drf_exceptions.NotFound, Http404)):
        code = 'not_found'
    elif isinstance(exc, drf_exceptions.Throttled):
        code = 'throttled'
    else:
        code = 'api_error'
    detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
    return _error(code, str(detail) if detail is not None else code, resp.status_code)
