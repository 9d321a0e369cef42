"""
Thin client for the Cashfree payment gateway (PG API).

Gateway failures surface as AppError so views can let them propagate to the
API exception handler like any other error.
"""
import logging

import requests
from django.conf import settings
from rest_framework import status

from storefront.core.exceptions import AppError

logger = logging.getLogger('storefront.integrations')

SANDBOX_URL = 'https://sandbox.cashfree.com/pg'
PRODUCTION_URL = 'https://api.cashfree.com/pg'


def _gateway_message(response, fallback):
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get('message'):
        return body['message']
    return fallback


class CashfreeClient:
    def __init__(self):
        self.app_id = settings.CASHFREE_APP_ID
        self.secret_key = settings.CASHFREE_SECRET_KEY
        self.api_version = settings.CASHFREE_API_VERSION
        self.timeout = settings.CASHFREE_TIMEOUT
        self.base_url = PRODUCTION_URL if settings.CASHFREE_ENV == 'production' else SANDBOX_URL

    def _headers(self):
        return {
            'x-client-id': self.app_id,
            'x-client-secret': self.secret_key,
            'x-api-version': self.api_version,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def _request(self, method, path, fallback_message, payload=None):
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, headers=self._headers(), json=payload, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error(f"Cashfree {method} {url} failed: {exc}")
            raise AppError('Payment gateway unavailable', status.HTTP_503_SERVICE_UNAVAILABLE)

        logger.info(f"Cashfree {method} {url} -> {response.status_code}")
        if response.status_code >= 400:
            raise AppError(_gateway_message(response, fallback_message), response.status_code)
        return response.json()

    def create_order(self, order_id, amount, customer_id, customer_phone, return_url=None):
        payload = {
            'order_amount': float(amount),
            'order_currency': 'INR',
            'order_id': str(order_id),
            'customer_details': {
                'customer_id': str(customer_id),
                'customer_phone': customer_phone,
            },
            'order_meta': {
                'return_url': return_url or f"{settings.FRONTEND_URL}/payment/callback?order_id={order_id}",
            },
        }
        return self._request('POST', '/orders', 'Failed to create payment order', payload)

    def get_order(self, order_id):
        return self._request('GET', f'/orders/{order_id}', 'Failed to fetch order status')
