# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError
from django.db import IntegrityError
import logging
from django.conf import settings

from availability.validators import ScheduleValidationError

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    400: 'Validation error',
    401: 'Authentication required',
    403: 'Permission denied',
    404: 'Resource not found',
}


def envelope(message, details, status_code):
    """The error body every back office client expects"""
    return {
        'error': True,
        'message': message,
        'details': details,
        'status_code': status_code,
    }


def error_response(message, details, status_code):
    return Response(envelope(message, details, status_code), status=status_code)


def custom_exception_handler(exc, context):
    """
    Wrap every API error in the back office error envelope
    """
    # DRF handles its own exceptions (ValidationError, NotFound, auth) first
    response = exception_handler(exc, context)
    if response is not None:
        message = STATUS_MESSAGES.get(response.status_code, 'An error occurred')
        # Keep the response itself so headers such as WWW-Authenticate survive
        response.data = envelope(message, response.data, response.status_code)
        return response

    # Schedule rejected by the availability engine outside a serializer
    if isinstance(exc, ScheduleValidationError):
        logger.warning(f"Schedule rejected: {exc}")
        return error_response('Invalid schedule', {
            'schedule': exc.messages,
            'days': {str(day): errors for day, errors in exc.day_errors.items()},
        }, status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, ValidationError):
        logger.error(f"Validation Error: {exc}")
        return error_response('Validation error', {'non_field_errors': exc.messages},
                              status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, IntegrityError):
        logger.error(f"Integrity Error: {exc}")
        return error_response('Database integrity error',
                              {'error': 'This operation violates database constraints'},
                              status.HTTP_400_BAD_REQUEST)

    logger.exception(f"Unexpected Error: {exc}")
    return error_response('An unexpected error occurred',
                          {'error': str(exc)} if settings.DEBUG else {},
                          status.HTTP_500_INTERNAL_SERVER_ERROR)
