"""
Tests for inventory variants and the stock service
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.core.exceptions import AppError
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.inventory import services
from storefront.inventory.models import Inventory


class StockServiceTests(TestCase):
    def setUp(self):
        self.inventory = TestDataFactory.create_inventory(stock=10)

    def test_decrement(self):
        previous, current = services.decrement_stock(self.inventory.id, 4)
        self.assertEqual((previous, current), (10, 6))
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 6)

    def test_decrement_more_than_available_leaves_stock(self):
        with self.assertRaises(AppError) as ctx:
            services.decrement_stock(self.inventory.id, 15)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(
            ctx.exception.message,
            'Cannot decrement stock by 15. Current stock: 10. Insufficient stock.'
        )
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 10)

    def test_decrement_to_zero(self):
        services.decrement_stock(self.inventory.id, 10)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 0)

    def test_non_positive_quantity(self):
        with self.assertRaises(AppError):
            services.increment_stock(self.inventory.id, 0)
        with self.assertRaises(AppError):
            services.decrement_stock(self.inventory.id, -1)

    def test_missing_row(self):
        with self.assertRaises(AppError) as ctx:
            services.increment_stock(999999, 1)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_set_stock_rejects_negative(self):
        with self.assertRaises(AppError):
            services.set_stock(self.inventory.id, -5)

    def test_movements_are_audited(self):
        services.increment_stock(self.inventory.id, 5, reference='PO-1')
        entry = AuditLog.objects.get(action='stock_increment')
        self.assertEqual(entry.object_reference, 'PO-1')
        self.assertEqual(entry.changes, {'previous_stock': 10, 'current_stock': 15, 'delta': 5})

    def test_merge_lines(self):
        self.assertEqual(services.merge_lines([(1, 2), (2, 1), (1, 3)]), [(1, 5), (2, 1)])

    def test_reserve_is_all_or_nothing(self):
        short = TestDataFactory.create_inventory(stock=1)
        with self.assertRaises(AppError):
            services.reserve_items([(self.inventory.id, 3), (short.id, 2)])
        self.inventory.refresh_from_db()
        short.refresh_from_db()
        self.assertEqual(self.inventory.stock, 10)
        self.assertEqual(short.stock, 1)

    def test_reserve_merges_duplicate_lines(self):
        with self.assertRaises(AppError) as ctx:
            services.reserve_items([(self.inventory.id, 6), (self.inventory.id, 6)])
        self.assertIn('Available: 10, Requested: 12', ctx.exception.message)

    def test_release_items(self):
        services.release_items([(self.inventory.id, 2), (self.inventory.id, 1)])
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.stock, 13)


class InventoryAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.item = TestDataFactory.create_item()
        self.size = TestDataFactory.create_size(name='M')
        self.color = TestDataFactory.create_color(name='Black')

    def _payload(self, **overrides):
        data = {
            'item_id': self.item.id,
            'size_id': self.size.id,
            'color_id': self.color.id,
            'price': '499.00',
            'stock': 20,
            'sku': 'TEE-M-BLK',
        }
        data.update(overrides)
        return data

    def test_create_inventory(self):
        response = self.client.post('/api/inventory/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['stock'], 20)
        self.assertEqual(response.data['data']['item']['id'], self.item.id)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Inventory').exists())

    def test_duplicate_variant_rejected(self):
        self.client.post('/api/inventory/', self._payload(), format='json')
        response = self.client.post('/api/inventory/', self._payload(sku='OTHER'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data['message'],
            'Inventory item with this combination of item, size, and color already exists'
        )
        self.assertEqual(Inventory.objects.count(), 1)

    def test_unknown_size(self):
        response = self.client.post('/api/inventory/', self._payload(size_id=999999), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Size not found')

    def test_negative_price(self):
        response = self.client.post('/api/inventory/', self._payload(price='-1.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_regular_user_read_only(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(self.client.get('/api/inventory/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/inventory/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_stock_goes_through_service(self):
        inventory = TestDataFactory.create_inventory(item=self.item, size=self.size, color=self.color, stock=5)
        response = self.client.patch(f'/api/inventory/{inventory.id}/', {'stock': 8, 'price': '10.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        inventory.refresh_from_db()
        self.assertEqual(inventory.stock, 8)
        self.assertEqual(inventory.price, Decimal('10.00'))
        self.assertTrue(AuditLog.objects.filter(action='stock_set', object_id=str(inventory.id)).exists())

    def test_update_keeps_concurrent_stock_change(self):
        inventory = TestDataFactory.create_inventory(item=self.item, size=self.size, color=self.color, stock=10)

        def sell_three(*args, **kwargs):
            services.decrement_stock(inventory.id, 3)

        # A sale lands after the row was loaded for the update
        with mock.patch('storefront.inventory.views._check_variant', side_effect=sell_three):
            response = self.client.put(
                f'/api/inventory/{inventory.id}/', {'item_id': self.item.id, 'price': '12.00'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        inventory.refresh_from_db()
        self.assertEqual(inventory.stock, 7)
        self.assertEqual(inventory.price, Decimal('12.00'))

    def test_update_to_existing_combination(self):
        first = TestDataFactory.create_inventory(item=self.item, size=self.size, color=self.color)
        other_color = TestDataFactory.create_color(name='White')
        second = TestDataFactory.create_inventory(item=self.item, size=self.size, color=other_color)
        response = self.client.patch(f'/api/inventory/{second.id}/', {'color_id': first.color_id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_decrement_endpoint_insufficient(self):
        inventory = TestDataFactory.create_inventory(stock=10)
        response = self.client.patch(f'/api/inventory/{inventory.id}/stock/decrement/', {'quantity': 15}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        inventory.refresh_from_db()
        self.assertEqual(inventory.stock, 10)

    def test_increment_endpoint_message(self):
        inventory = TestDataFactory.create_inventory(stock=3)
        response = self.client.patch(f'/api/inventory/{inventory.id}/stock/increment/', {'quantity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Stock incremented by 4. Previous: 3, Current: 7')
        self.assertEqual(response.data['data']['stock'], 7)

    def test_set_stock_endpoint_admin_only(self):
        inventory = TestDataFactory.create_inventory(stock=3)
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.patch(f'/api/inventory/{inventory.id}/stock/', {'stock': 50}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_low_stock(self):
        TestDataFactory.create_inventory(stock=2)
        TestDataFactory.create_inventory(stock=0)
        TestDataFactory.create_inventory(stock=50)
        response = self.client.get('/api/inventory/low-stock/?threshold=5')
        self.assertEqual([row['stock'] for row in response.data['data']], [0, 2])

    def test_low_stock_bad_threshold(self):
        response = self.client.get('/api/inventory/low-stock/?threshold=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_by_item(self):
        TestDataFactory.create_inventory(item=self.item, size=self.size, color=self.color)
        TestDataFactory.create_inventory()
        response = self.client.get(f'/api/inventory/item/{self.item.id}/')
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_public_items_hide_out_of_stock_and_inactive(self):
        visible = TestDataFactory.create_inventory(stock=3)
        TestDataFactory.create_inventory(stock=0)
        TestDataFactory.create_inventory(stock=5, is_active=False)
        TestDataFactory.create_inventory(item=TestDataFactory.create_item(is_active=False), stock=5)

        self.client.logout()
        response = self.client.get('/api/public/items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['data']], [visible.id])

    def test_delete_inventory(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/inventory/{inventory.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Inventory.objects.filter(pk=inventory.id).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', object_id=str(inventory.id)).exists())
