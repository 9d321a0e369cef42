"""
Tests for the Cashfree and Shiprocket integrations; HTTP calls are mocked
"""
from decimal import Decimal
from unittest.mock import patch, MagicMock

import requests
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Order


def fake_response(status_code=200, body=None, reason='OK'):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = body if body is not None else {}
    response.content = b'{}' if body is None else b'body'
    return response


@override_settings(CASHFREE_APP_ID='app-id', CASHFREE_SECRET_KEY='secret', CASHFREE_ENV='sandbox',
                   FRONTEND_URL='https://shop.example.com')
class CashfreeTests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _order(self, quantity=1):
        address = TestDataFactory.create_address(self.user)
        inventory = TestDataFactory.create_inventory(stock=5, price=Decimal('100.00'))
        response = self.client.post('/api/orders/', {
            'items': [{'inventory_id': inventory.id, 'quantity': quantity}],
            'shipping_address_id': address.id,
        }, format='json')
        return Order.objects.get(pk=response.data['data']['id'])

    @patch('storefront.integrations.cashfree.requests.request')
    def test_create_payment_order(self, mock_request):
        mock_request.return_value = fake_response(200, {'order_id': 'ORD000001', 'payment_session_id': 'sess'})
        response = self.client.post('/api/cashfree/create-order/', {
            'order_id': 'ORD000001', 'amount': '100.00', 'customer_id': '7', 'customer_phone': '9876543210'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Payment order created successfully')

        method, url = mock_request.call_args.args
        kwargs = mock_request.call_args.kwargs
        self.assertEqual(method, 'POST')
        self.assertEqual(url, 'https://sandbox.cashfree.com/pg/orders')
        self.assertEqual(kwargs['headers']['x-client-id'], 'app-id')
        self.assertEqual(kwargs['json']['order_currency'], 'INR')
        self.assertEqual(kwargs['json']['customer_details']['customer_phone'], '9876543210')
        self.assertEqual(
            kwargs['json']['order_meta']['return_url'],
            'https://shop.example.com/payment/callback?order_id=ORD000001'
        )

    def test_create_payment_order_validation(self):
        response = self.client.post('/api/cashfree/create-order/', {
            'order_id': 'ORD000001', 'amount': '0', 'customer_id': '7', 'customer_phone': '123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data['errors'])
        self.assertIn('customer_phone', response.data['errors'])

    @patch('storefront.integrations.cashfree.requests.request')
    def test_gateway_error_is_relayed(self, mock_request):
        mock_request.return_value = fake_response(401, {'message': 'authentication Failed'})
        response = self.client.get('/api/cashfree/order/ORD000001/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'authentication Failed')

    @patch('storefront.integrations.cashfree.requests.request')
    def test_gateway_timeout(self, mock_request):
        mock_request.side_effect = requests.Timeout('timed out')
        response = self.client.get('/api/cashfree/order/ORD000001/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_webhook_marks_paid(self):
        order = self._order()
        response = self.client.post('/api/cashfree/webhook/', {
            'orderId': order.order_no, 'orderAmount': '100.00', 'paymentStatus': 'SUCCESS', 'transactionId': 'CF-1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {'orderId': order.order_no, 'paymentStatus': 'paid'})
        order.refresh_from_db()
        self.assertEqual(order.payment_status, 'paid')
        self.assertEqual(order.payment_gateway, 'cashfree')
        self.assertEqual(order.transaction_id, 'CF-1')
        self.assertIsNotNone(order.paid_at)

    def test_webhook_by_primary_key_and_failed(self):
        order = self._order()
        self.client.logout()
        response = self.client.post('/api/cashfree/webhook/', {
            'orderId': str(order.id), 'orderAmount': '100.00', 'paymentStatus': 'FAILED'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, 'failed')

    def test_webhook_missing_fields(self):
        response = self.client.post('/api/cashfree/webhook/', {'orderId': 'ORD000001'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_webhook_unknown_order(self):
        response = self.client.post('/api/cashfree/webhook/', {
            'orderId': 'ORD999999', 'orderAmount': '1.00', 'paymentStatus': 'SUCCESS'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


@override_settings(SHIPROCKET_BASE_URL='https://shiprocket.test/v1/external')
class ShiprocketTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def _pickup(self, **overrides):
        data = {
            'pickup_location': 'Warehouse-1',
            'name': 'Store Ops',
            'email': 'ops@example.com',
            'phone': '9876543210',
            'address': '14 Industrial Estate, Phase 2',
            'city': 'Pune',
            'state': 'Maharashtra',
            'country': 'India',
            'pin_code': '411019',
        }
        data.update(overrides)
        return data

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_login(self, mock_request):
        mock_request.return_value = fake_response(200, {'token': 'sr-token'})
        response = self.client.post('/api/shiprocket/auth/login/', {
            'email': 'ops@example.com', 'password': 'pw'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['token'], 'sr-token')
        self.assertEqual(mock_request.call_args.args[1], 'https://shiprocket.test/v1/external/auth/login')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_login_bad_credentials(self, mock_request):
        mock_request.return_value = fake_response(401, {'message': 'Invalid'}, reason='Unauthorized')
        response = self.client.post('/api/shiprocket/auth/login/', {
            'email': 'ops@example.com', 'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid Shiprocket credentials')

    def test_logout_requires_token(self):
        response = self.client.post('/api/shiprocket/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Authorization token is required')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_add_pickup_forwards_token(self, mock_request):
        mock_request.return_value = fake_response(200, {'success': True, 'pickup_id': 42})
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        response = self.client.post('/api/shiprocket/pickup/add/', self._pickup(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Pickup address added successfully')
        self.assertEqual(mock_request.call_args.kwargs['headers']['Authorization'], 'Bearer sr-token')
        self.assertEqual(mock_request.call_args.kwargs['json']['pin_code'], '411019')

    def test_add_pickup_missing_field(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        data = self._pickup()
        del data['city']
        response = self.client.post('/api/shiprocket/pickup/add/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('city', response.data['errors'])

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_carrier_validation_error(self, mock_request):
        mock_request.return_value = fake_response(422, {'message': 'Address is too short'})
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        response = self.client.post('/api/shiprocket/pickup/add/', self._pickup(), format='json')
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data['message'], 'Validation error: Address is too short')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_expired_token(self, mock_request):
        mock_request.return_value = fake_response(401, {'message': 'Token expired'})
        self.client.credentials(HTTP_AUTHORIZATION='Bearer old-token')
        response = self.client.get('/api/shiprocket/pickup/list/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid or expired token')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_carrier_down(self, mock_request):
        mock_request.return_value = fake_response(502, {'message': 'Bad gateway'})
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        response = self.client.get('/api/shiprocket/pickup/list/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['message'], 'Shiprocket service unavailable')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.ConnectionError('refused')
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        response = self.client.get('/api/shiprocket/pickup/list/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['message'], 'Unable to connect to Shiprocket service')

    @patch('storefront.integrations.shiprocket.requests.request')
    def test_list_pickups(self, mock_request):
        mock_request.return_value = fake_response(200, {'data': {'shipping_address': []}})
        self.client.credentials(HTTP_AUTHORIZATION='Bearer sr-token')
        response = self.client.get('/api/shiprocket/pickup/list/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(mock_request.call_args.args[0], 'GET')
