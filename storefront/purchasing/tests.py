"""
Tests for purchase orders: totals, delivery into stock and guarded deletes
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.db import transaction
from django.test import TestCase
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.inventory import services
from storefront.purchasing import views
from storefront.purchasing.models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderModelTests(TestCase):
    def test_subtotal_and_total(self):
        order = PurchaseOrder.objects.create(
            user=TestDataFactory.create_user(),
            supplier=TestDataFactory.create_supplier(),
            discount=Decimal('20.00'),
        )
        inventory = TestDataFactory.create_inventory()
        PurchaseOrderItem.objects.create(purchase_order=order, inventory=inventory, quantity=10, price=Decimal('10.00'))
        PurchaseOrderItem.objects.create(purchase_order=order, inventory=inventory, quantity=5, price=Decimal('4.00'))
        self.assertEqual(order.get_subtotal(), Decimal('120.00'))
        self.assertEqual(order.recalculate_total(), Decimal('100.00'))
        self.assertTrue(order.order_number.startswith('PO-'))


class PurchaseOrderAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier()
        self.inventory = TestDataFactory.create_inventory(stock=2)

    def _create(self, quantity=10, **extra):
        data = {
            'supplier_id': self.supplier.id,
            'items': [{'inventory_id': self.inventory.id, 'quantity': quantity, 'price': '80.00'}],
        }
        data.update(extra)
        return self.client.post('/api/purchase-orders/', data, format='json')

    def _stock(self):
        self.inventory.refresh_from_db()
        return self.inventory.stock

    def test_create_pending_leaves_stock(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['status'], 'pending')
        self.assertFalse(response.data['data']['stock_received'])
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('800.00'))
        self.assertEqual(self._stock(), 2)

    def test_create_delivered_adds_stock(self):
        response = self._create(status='delivered')
        self.assertTrue(response.data['data']['stock_received'])
        self.assertEqual(self._stock(), 12)

    def test_delivery_adds_stock_once(self):
        order_id = self._create().data['data']['id']
        response = self.client.patch(f'/api/purchase-orders/{order_id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._stock(), 12)

        response = self.client.patch(f'/api/purchase-orders/{order_id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._stock(), 12)
        self.assertTrue(AuditLog.objects.filter(action='status_change', model_name='PurchaseOrder').exists())

    def test_received_order_cannot_leave_delivered(self):
        order_id = self._create(status='delivered').data['data']['id']
        response = self.client.patch(f'/api/purchase-orders/{order_id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._stock(), 12)

    def test_delivered_items_cannot_change(self):
        order_id = self._create(status='delivered').data['data']['id']
        response = self.client.patch(f'/api/purchase-orders/{order_id}/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 1, 'price': '80.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot modify items of a delivered purchase order')

    def test_update_pending_items_recalculates_total(self):
        order_id = self._create().data['data']['id']
        response = self.client.patch(f'/api/purchase-orders/{order_id}/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 3, 'price': '50.00'}],
            'discount': '10.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('140.00'))
        self.assertEqual(self._stock(), 2)

    def test_delete_delivered_order_removes_stock(self):
        order_id = self._create(status='delivered').data['data']['id']
        response = self.client.delete(f'/api/purchase-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._stock(), 2)

    def test_delete_after_received_stock_was_sold(self):
        order_id = self._create(status='delivered').data['data']['id']
        services.decrement_stock(self.inventory.id, 11)
        response = self.client.delete(f'/api/purchase-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(PurchaseOrder.objects.filter(pk=order_id).exists())
        self.assertEqual(self._stock(), 1)

    def test_delete_pending_order_leaves_stock(self):
        order_id = self._create().data['data']['id']
        self.client.delete(f'/api/purchase-orders/{order_id}/')
        self.assertEqual(self._stock(), 2)

    def _deliver_after_fetch(self):
        """Let a delivery commit right after the view has read the purchase order"""
        real_get = views._get_purchase_order
        delivered = []

        def fetch(user, pk):
            purchase_order = real_get(user, pk)
            if not delivered:
                delivered.append(pk)
                with transaction.atomic():
                    views.apply_status(real_get(user, pk), PurchaseOrder.STATUS_DELIVERED, None)
            return purchase_order

        return mock.patch('storefront.purchasing.views._get_purchase_order', side_effect=fetch)

    def test_cancel_racing_delivery_is_rejected(self):
        order_id = self._create().data['data']['id']
        with self._deliver_after_fetch():
            response = self.client.patch(f'/api/purchase-orders/{order_id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        order = PurchaseOrder.objects.get(pk=order_id)
        self.assertEqual(order.status, PurchaseOrder.STATUS_DELIVERED)
        self.assertTrue(order.stock_received)
        self.assertEqual(self._stock(), 12)

        response = self.client.patch(f'/api/purchase-orders/{order_id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._stock(), 12)

    def test_items_update_racing_delivery_is_rejected(self):
        order_id = self._create().data['data']['id']
        with self._deliver_after_fetch():
            response = self.client.patch(f'/api/purchase-orders/{order_id}/', {
                'items': [{'inventory_id': self.inventory.id, 'quantity': 1, 'price': '80.00'}],
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(PurchaseOrderItem.objects.get(purchase_order_id=order_id).quantity, 10)
        self.assertEqual(self._stock(), 12)

    def test_delete_racing_delivery_removes_received_stock(self):
        order_id = self._create().data['data']['id']
        with self._deliver_after_fetch():
            response = self.client.delete(f'/api/purchase-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(PurchaseOrder.objects.filter(pk=order_id).exists())
        self.assertEqual(self._stock(), 2)

    def test_unknown_inventory(self):
        response = self.client.post('/api/purchase-orders/', {
            'supplier_id': self.supplier.id,
            'items': [{'inventory_id': 999999, 'quantity': 1, 'price': '1.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_empty_items(self):
        response = self._create(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_status_and_stats(self):
        self._create()
        self._create(status='delivered')
        response = self.client.get('/api/purchase-orders/?status=delivered')
        self.assertEqual(response.data['pagination']['total'], 1)

        stats = self.client.get('/api/purchase-orders/stats/').data['data']
        self.assertEqual(stats['totalOrders'], 2)
        self.assertEqual(Decimal(stats['totalAmount']), Decimal('1600.00'))
        self.assertEqual({row['status'] for row in stats['byStatus']}, {'pending', 'delivered'})
