"""
Error handling for the API.

Handlers raise AppError with a message and an HTTP status. The DRF exception
handler below turns AppError, serializer validation errors and framework errors
(auth, 404, method not allowed) into one body shape:

    {"success": false, "message": ..., "error": ..., "statusCode": ...}
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class AppError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal Server Error'

    def __init__(self, message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(detail=message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        return self.message


def flatten_errors(detail):
    """Collapse a DRF error detail (dict/list/str) into one readable line"""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            text = flatten_errors(value)
            parts.append(text if field == 'non_field_errors' else f"{field}: {text}")
        return '; '.join(parts)
    if isinstance(detail, list):
        return ', '.join(flatten_errors(item) for item in detail)
    return str(detail)


def error_body(message, status_code, error=None):
    return {
        'success': False,
        'message': message,
        'error': error if error is not None else message,
        'statusCode': status_code,
    }


def api_exception_handler(exc, context):
    if isinstance(exc, AppError):
        set_rollback()
        return Response(error_body(exc.message, exc.status_code), status=exc.status_code)

    if isinstance(exc, ValidationError):
        set_rollback()
        body = error_body('Validation failed', status.HTTP_400_BAD_REQUEST, flatten_errors(exc.detail))
        body['errors'] = exc.detail
        return Response(body, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is not None:
        data = response.data
        if isinstance(data, dict) and 'detail' in data:
            message = str(data['detail'])
        else:
            message = flatten_errors(data)
        response.data = error_body(message, response.status_code)
        return response

    view = context.get('view')
    logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
    set_rollback()
    return Response(
        error_body('Internal Server Error', status.HTTP_500_INTERNAL_SERVER_ERROR),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def not_found(message):
    """Shortcut used where a referenced record is missing"""
    return AppError(message, status.HTTP_404_NOT_FOUND)
