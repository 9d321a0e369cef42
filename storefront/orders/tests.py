"""
Tests for shipping addresses and customer orders, including stock effects
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.cart.models import CartItem
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders import views
from storefront.orders.models import Order, ShippingAddress


class ShippingAddressAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _payload(self, **overrides):
        data = {
            'full_name': 'Asha Rao',
            'phone': '9876543210',
            'address_line1': '221 Residency Road',
            'city': 'Bengaluru',
            'state': 'Karnataka',
            'pin_code': '560025',
        }
        data.update(overrides)
        return data

    def test_create_address(self):
        response = self.client.post('/api/shipping-addresses/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['country'], 'India')

    def test_invalid_phone_and_pin(self):
        response = self.client.post('/api/shipping-addresses/', self._payload(phone='12345', pin_code='012345'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data['errors'])
        self.assertIn('pin_code', response.data['errors'])

    def test_only_one_default(self):
        first = TestDataFactory.create_address(self.user, is_default=True)
        response = self.client.post('/api/shipping-addresses/', self._payload(is_default=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first.refresh_from_db()
        self.assertFalse(first.is_default)

    def test_other_users_address_is_hidden(self):
        address = TestDataFactory.create_address(TestDataFactory.create_user())
        response = self.client.get(f'/api/shipping-addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_address_used_by_order_cannot_be_deleted(self):
        address = TestDataFactory.create_address(self.user)
        inventory = TestDataFactory.create_inventory(stock=5)
        self.client.post('/api/orders/', {
            'items': [{'inventory_id': inventory.id, 'quantity': 1}],
            'shipping_address_id': address.id,
        }, format='json')
        response = self.client.delete(f'/api/shipping-addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(ShippingAddress.objects.filter(pk=address.id).exists())


class OrderAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.address = TestDataFactory.create_address(self.user)
        self.inventory = TestDataFactory.create_inventory(stock=5, price=Decimal('250.00'))

    def _place_order(self, quantity=2, **extra):
        data = {
            'items': [{'inventory_id': self.inventory.id, 'quantity': quantity}],
            'shipping_address_id': self.address.id,
        }
        data.update(extra)
        return self.client.post('/api/orders/', data, format='json')

    def test_create_order_decrements_stock(self):
        response = self._place_order(quantity=2, delivery_type='express')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['order_no'], 'ORD000001')
        self.assertEqual(Decimal(data['total_amount']), Decimal('500.00'))
        self.assertEqual(data['items'][0]['price'], '250.00')
        self.assertEqual(data['billing_address']['id'], self.address.id)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 3)

    def test_order_numbers_increase(self):
        self._place_order(quantity=1)
        response = self._place_order(quantity=1)
        self.assertEqual(response.data['data']['order_no'], 'ORD000002')

    def test_order_number_taken_concurrently(self):
        self._place_order(quantity=1)
        # The first number handed out was already used by another checkout
        with mock.patch.object(Order, 'next_order_no', side_effect=['ORD000001', 'ORD000002']):
            response = self._place_order(quantity=1)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['order_no'], 'ORD000002')
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 3)

    def test_insufficient_stock_writes_nothing(self):
        response = self._place_order(quantity=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', response.data['message'])
        self.assertEqual(Order.objects.count(), 0)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_discount_cannot_exceed_total(self):
        response = self._place_order(quantity=1, discount='300.00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid discount amount')

    def test_price_snapshot(self):
        response = self._place_order(quantity=1)
        self.inventory.price = Decimal('999.00')
        self.inventory.save()
        order = self.client.get(f"/api/orders/{response.data['data']['id']}/")
        self.assertEqual(order.data['data']['items'][0]['price'], '250.00')

    def test_clear_cart_after_order(self):
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 1}, format='json')
        self._place_order(quantity=1, clear_cart=True)
        self.assertFalse(CartItem.objects.filter(cart__user=self.user).exists())

    def test_unknown_address(self):
        response = self.client.post('/api/orders/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 1}],
            'shipping_address_id': TestDataFactory.create_address(self.admin).id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_restores_stock(self):
        order_id = self._place_order(quantity=2).data['data']['id']
        response = self.client.patch(f'/api/orders/{order_id}/cancel/', {'reason': 'Changed my mind'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')
        self.assertIsNotNone(response.data['data']['cancelled_at'])
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)
        self.assertTrue(AuditLog.objects.filter(action='order_cancel').exists())

    def test_cancel_with_post(self):
        order_id = self._place_order(quantity=2).data['data']['id']
        response = self.client.post(f'/api/orders/{order_id}/cancel', {'reason': 'Ordered twice'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_cancel_twice(self):
        order_id = self._place_order(quantity=2).data['data']['id']
        self.client.patch(f'/api/orders/{order_id}/cancel/', {}, format='json')
        response = self.client.patch(f'/api/orders/{order_id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_cannot_cancel_shipped_order(self):
        order = Order.objects.get(pk=self._place_order().data['data']['id'])
        order.status = Order.STATUS_SHIPPED
        order.save()
        response = self.client.patch(f'/api/orders/{order.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Order cannot be cancelled. Current status: shipped')

    def test_cancel_paid_order_marks_refunded(self):
        order = Order.objects.get(pk=self._place_order().data['data']['id'])
        order.payment_status = Order.PAYMENT_PAID
        order.save()
        response = self.client.patch(f'/api/orders/{order.id}/cancel/', {}, format='json')
        self.assertEqual(response.data['data']['payment_status'], 'refunded')

    def test_other_user_cannot_view_order(self):
        order_id = self._place_order().data['data']['id']
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_only_own_orders_unless_admin(self):
        self._place_order(quantity=1)
        other = TestDataFactory.create_user()
        self.client.authenticate_user(other)
        self.assertEqual(self.client.get('/api/orders/').data['pagination']['total'], 0)
        self.client.authenticate_user(self.admin)
        self.assertEqual(self.client.get('/api/orders/').data['pagination']['total'], 1)

    def test_filter_by_status(self):
        self._place_order(quantity=1)
        order_id = self._place_order(quantity=1).data['data']['id']
        self.client.patch(f'/api/orders/{order_id}/cancel/', {}, format='json')
        response = self.client.get('/api/orders/?status=cancelled')
        self.assertEqual([row['id'] for row in response.data['data']], [order_id])


class OrderAdminTests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        address = TestDataFactory.create_address(self.user)
        self.inventory = TestDataFactory.create_inventory(stock=5)
        response = self.client.post('/api/orders/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 2}],
            'shipping_address_id': address.id,
        }, format='json')
        self.order_id = response.data['data']['id']
        self.client.authenticate_user(self.admin)

    def test_status_update_requires_admin(self):
        self.client.authenticate_user(self.user)
        response = self.client.put(f'/api/orders/{self.order_id}/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delivered_stamps_date(self):
        response = self.client.put(f'/api/orders/{self.order_id}/status/', {
            'status': 'delivered', 'tracking_number': 'TRK123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['data']['actual_delivery_date'])
        self.assertEqual(response.data['data']['tracking_number'], 'TRK123')

    def test_admin_cancel_restores_stock(self):
        self.client.put(f'/api/orders/{self.order_id}/status/', {'status': 'cancelled'}, format='json')
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_cancelled_order_cannot_be_reopened(self):
        self.client.put(f'/api/orders/{self.order_id}/status/', {'status': 'cancelled'}, format='json')
        response = self.client.put(f'/api/orders/{self.order_id}/status/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_restores_stock(self):
        response = self.client.delete(f'/api/orders/{self.order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.filter(pk=self.order_id).exists())
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def _cancel_after_fetch(self):
        """Let a cancel commit right after the view has read the order"""
        real_get = views.get_object_or_404
        cancelled = []

        def fetch(*args, **kwargs):
            found = real_get(*args, **kwargs)
            if not cancelled:
                cancelled.append(self.order_id)
                views.cancel_order(Order.objects.get(pk=self.order_id), None, 'Cancelled elsewhere')
            return found

        return mock.patch('storefront.orders.views.get_object_or_404', side_effect=fetch)

    def test_delete_racing_cancel_restores_stock_once(self):
        with self._cancel_after_fetch():
            response = self.client.delete(f'/api/orders/{self.order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_payment_update_racing_cancel_keeps_cancelled_status(self):
        with self._cancel_after_fetch():
            response = self.client.put(f'/api/orders/{self.order_id}/payment/', {'payment_status': 'failed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order = Order.objects.get(pk=self.order_id)
        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(order.payment_status, Order.PAYMENT_FAILED)

    def test_payment_update(self):
        response = self.client.put(f'/api/orders/{self.order_id}/payment/', {
            'payment_status': 'paid', 'transaction_id': 'TXN-1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['payment_status'], 'paid')
        self.assertEqual(response.data['data']['transaction_id'], 'TXN-1')

    def test_stats(self):
        response = self.client.get('/api/orders/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'][0]['status'], 'pending')
        self.assertEqual(response.data['data'][0]['count'], 1)
