"""
Tests for back-office sales orders and their stock movements
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.inventory import services
from storefront.sales import views
from storefront.sales.models import SalesOrder, SalesOrderItem


class SalesOrderAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.inventory = TestDataFactory.create_inventory(stock=5)

    def _create(self, quantity=2, price='150.00', **extra):
        data = {
            'customer_id': self.customer.id,
            'items': [{'inventory_id': self.inventory.id, 'quantity': quantity, 'price': price}],
        }
        data.update(extra)
        return self.client.post('/api/sales-orders/', data, format='json')

    def test_create_decrements_stock(self):
        response = self._create(quantity=2)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['order_number'].startswith('SO-'))
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 3)

    def test_delete_restores_stock(self):
        order_id = self._create(quantity=2).data['data']['id']
        response = self.client.delete(f'/api/sales-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Sales order deleted successfully and stock restored')
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_delete_restores_lines_changed_after_fetch(self):
        order_id = self._create(quantity=2).data['data']['id']
        real_get = views._get_sales_order
        changed = []

        def fetch(user, pk):
            sales_order = real_get(user, pk)
            if not changed:
                # Another request cuts the line to one unit and returns the other to stock
                changed.append(pk)
                services.increment_stock(self.inventory.id, 1)
                SalesOrderItem.objects.filter(sales_order_id=pk).update(quantity=1)
            return sales_order

        with mock.patch('storefront.sales.views._get_sales_order', side_effect=fetch):
            response = self.client.delete(f'/api/sales-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_total_with_discount(self):
        response = self._create(quantity=2, price='150.00', total_discount='50.00')
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('250.00'))

    def test_total_never_negative(self):
        response = self._create(quantity=1, price='10.00', total_discount='50.00')
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('0'))

    def test_insufficient_stock(self):
        response = self._create(quantity=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(SalesOrder.objects.count(), 0)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 5)

    def test_unknown_customer(self):
        response = self._create(customer_id=999999)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Customer not found')

    def test_update_items_moves_stock(self):
        order_id = self._create(quantity=2).data['data']['id']
        response = self.client.patch(f'/api/sales-orders/{order_id}/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 4, 'price': '150.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('600.00'))
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 1)

    def test_update_beyond_stock_keeps_old_lines(self):
        order_id = self._create(quantity=2).data['data']['id']
        response = self.client.patch(f'/api/sales-orders/{order_id}/', {
            'items': [{'inventory_id': self.inventory.id, 'quantity': 6, 'price': '150.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 3)
        self.assertEqual(SalesOrder.objects.get(pk=order_id).items.get().quantity, 2)

    def test_update_rejects_incomplete_lines(self):
        order_id = self._create(quantity=1).data['data']['id']
        response = self.client.patch(f'/api/sales-orders/{order_id}/', {
            'items': [{'inventory_id': self.inventory.id}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_orders_scoped_to_user(self):
        order_id = self._create(quantity=1).data['data']['id']
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/sales-orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_by_customer(self):
        self._create(quantity=1)
        other = TestDataFactory.create_customer()
        self._create(quantity=1, customer_id=other.id)
        response = self.client.get(f'/api/sales-orders/?customer_id={other.id}')
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_stats(self):
        self._create(quantity=1, price='100.00')
        self._create(quantity=2, price='100.00')
        response = self.client.get('/api/sales-orders/stats/')
        self.assertEqual(response.data['data']['totalOrders'], 2)
        self.assertEqual(Decimal(response.data['data']['totalRevenue']), Decimal('300.00'))
        self.assertEqual(response.data['data']['recentOrders'], 2)

    def test_customer_with_sales_cannot_be_deleted(self):
        self._create(quantity=1)
        response = self.client.delete(f'/api/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot delete customer. It is referenced in 1 sales order(s)')
