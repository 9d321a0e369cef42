"""Shiprocket shipping API: auth and pickup locations"""
import logging

import requests
from django.conf import settings
from rest_framework import status

from storefront.core.exceptions import AppError

logger = logging.getLogger('storefront.integrations')

LOGIN = '/auth/login'
LOGOUT = '/auth/logout'
ADD_PICKUP = '/settings/company/addpickup'
LIST_PICKUP = '/settings/company/pickup'


def _carrier_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.reason or 'Unknown error'
    if isinstance(body, dict):
        return body.get('message') or response.reason or 'Unknown error'
    return response.reason or 'Unknown error'


def _raise_for_response(response, endpoint):
    code = response.status_code
    message = _carrier_message(response)
    if code == 401:
        if endpoint == LOGIN:
            raise AppError('Invalid Shiprocket credentials', status.HTTP_401_UNAUTHORIZED)
        raise AppError('Invalid or expired token', status.HTTP_401_UNAUTHORIZED)
    if code == 422:
        raise AppError(f'Validation error: {message}', status.HTTP_422_UNPROCESSABLE_ENTITY)
    if code >= 500:
        raise AppError('Shiprocket service unavailable', status.HTTP_503_SERVICE_UNAVAILABLE)
    raise AppError(f'Shiprocket API error: {message}', code)


def call(method, endpoint, token=None, payload=None):
    """Send one request to Shiprocket and return the decoded JSON body"""
    url = f"{settings.SHIPROCKET_BASE_URL}{endpoint}"
    headers = {'Content-Type': 'application/json'}
    if token:
        headers['Authorization'] = f'Bearer {token}'
    try:
        response = requests.request(method, url, headers=headers, json=payload, timeout=settings.SHIPROCKET_TIMEOUT)
    except requests.RequestException as exc:
        logger.error(f"Shiprocket {method} {url} failed: {exc}")
        raise AppError('Unable to connect to Shiprocket service', status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.info(f"Shiprocket {method} {url} -> {response.status_code}")
    if response.status_code >= 400:
        _raise_for_response(response, endpoint)
    if not response.content:
        return {}
    return response.json()


def bearer_token(request):
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        token = header[len('Bearer '):].strip()
        if token:
            return token
    raise AppError('Authorization token is required', status.HTTP_401_UNAUTHORIZED)


def login(email, password):
    return call('POST', LOGIN, payload={'email': email, 'password': password})


def logout(token):
    return call('POST', LOGOUT, token=token)


def add_pickup(token, data):
    return call('POST', ADD_PICKUP, token=token, payload=data)


def list_pickups(token):
    return call('GET', LIST_PICKUP, token=token)
