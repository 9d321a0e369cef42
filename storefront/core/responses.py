from rest_framework import status
from rest_framework.response import Response


def success_response(data=None, message='', status_code=status.HTTP_200_OK, pagination=None):
    """Wrap a payload in the {success, message, data, pagination} envelope"""
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    if pagination is not None:
        body['pagination'] = pagination
    return Response(body, status=status_code)


def created_response(data, message):
    return success_response(data, message, status.HTTP_201_CREATED)
