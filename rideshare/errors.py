"""
Error types shared by every app and the translation of failures into
user-facing messages.

Internal messages (database errors, ledger failures) are never sent to
clients as-is: ``sanitize_error`` maps them onto a small fixed set of
strings and falls back to a generic message.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'An error occurred. Please try again.'

# First match wins; needles are compared against the lower-cased internal message.
ERROR_MESSAGES = [
    (('duplicate key', 'already exists', 'unique constraint'), 'This record already exists.'),
    (('foreign key',), 'A referenced item was not found.'),
    (('not-null constraint', 'not null constraint', 'required'), 'A required field is missing.'),
    (('check constraint',), 'Invalid data provided.'),
    (('not enough seats',), 'Not enough seats available for this ride.'),
    (('ride is not available',), 'This ride is no longer available for booking.'),
    (('ride not found',), 'The ride could not be found.'),
    (('unauthorized', 'permission'), 'You do not have permission for this action.'),
    (('invalid login', 'invalid email or password'), 'Invalid email or password.'),
    (('email not confirmed',), 'Please confirm your email address before signing in.'),
    (('user already registered',), 'An account with this email already exists.'),
]


class ServiceError(Exception):
    """Base class for domain failures raised by service functions.

    ``message`` is internal; ``user_message`` (when set) is already safe to
    show and is used when no known pattern matches.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'error'
    user_message = None

    def __init__(self, message=None):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


def sanitize_error(error) -> str:
    """Return the user-facing message for ``error`` (an exception or a string)."""
    if isinstance(error, str):
        raw = error
    else:
        raw = getattr(error, 'message', None) or str(error)
    message = (raw or '').lower()

    for needles, friendly in ERROR_MESSAGES:
        if any(needle in message for needle in needles):
            return friendly

    user_message = getattr(error, 'user_message', None)
    if user_message:
        return user_message

    return GENERIC_ERROR_MESSAGE


def api_exception_handler(exc, context):
    """DRF exception handler producing ``{"error": ...}`` bodies."""
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if isinstance(exc, ServiceError):
        logger.info("%s rejected in %s: %s", exc.__class__.__name__, view_name, exc.message)
        return Response({'error': sanitize_error(exc), 'code': exc.code}, status=exc.status_code)

    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error in %s: %s", view_name, exc)
        return Response({'error': sanitize_error(exc)}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'error_dict'):
            return Response({'errors': exc.message_dict}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'error': ' '.join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (Http404, exceptions.NotFound)):
        response.data = {'error': 'The requested item could not be found.'}
    elif isinstance(response.data, dict) and 'detail' in response.data:
        body = {'error': str(response.data['detail'])}
        codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
        if isinstance(codes, str):
            body['code'] = codes
        response.data = body
    return response
