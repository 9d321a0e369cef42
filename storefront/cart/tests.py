"""
Tests for the shopping cart
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.cart.models import Cart, CartItem
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CartAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.inventory = TestDataFactory.create_inventory(stock=5, price=Decimal('100.00'))

    def test_cart_created_on_first_access(self):
        response = self.client.get('/api/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['items'], [])
        self.assertTrue(Cart.objects.filter(user=self.user).exists())

    def test_add_item_and_total(self):
        response = self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['item_count'], 2)
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('200.00'))

    def test_adding_again_accumulates_quantity(self):
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 2}, format='json')
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 1}, format='json')
        line = CartItem.objects.get(cart__user=self.user, inventory=self.inventory)
        self.assertEqual(line.quantity, 3)

    def test_cannot_exceed_stock(self):
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 4}, format='json')
        response = self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Only 5 items available in stock')
        self.assertEqual(CartItem.objects.get(cart__user=self.user).quantity, 4)

    def test_inactive_inventory(self):
        inactive = TestDataFactory.create_inventory(stock=5, is_active=False)
        response = self.client.post('/api/cart/add/', {'inventory_id': inactive.id, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Item is not available')

    def test_unknown_inventory(self):
        response = self.client.post('/api/cart/add/', {'inventory_id': 999999, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_add_is_all_or_nothing(self):
        other = TestDataFactory.create_inventory(stock=1)
        response = self.client.post('/api/cart/bulk-add/', {'items': [
            {'inventory_id': self.inventory.id, 'quantity': 1},
            {'inventory_id': other.id, 'quantity': 3},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(CartItem.objects.filter(cart__user=self.user).exists())

    def test_bulk_add(self):
        other = TestDataFactory.create_inventory(stock=3)
        response = self.client.post('/api/cart/bulk-add/', {'items': [
            {'inventory_id': self.inventory.id, 'quantity': 1},
            {'inventory_id': other.id, 'quantity': 2},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], '2 item(s) added to cart successfully')
        count = self.client.get('/api/cart/count/')
        self.assertEqual(count.data['data'], {'count': 3})

    def test_update_quantity(self):
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 1}, format='json')
        response = self.client.patch(f'/api/cart/items/{self.inventory.id}/', {'quantity': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('500.00'))

        response = self.client.patch(f'/api/cart/items/{self.inventory.id}/', {'quantity': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_missing_line(self):
        response = self.client.patch(f'/api/cart/items/{self.inventory.id}/', {'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Item not found in cart')

    def test_remove_and_clear(self):
        other = TestDataFactory.create_inventory(stock=3)
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 1}, format='json')
        self.client.post('/api/cart/add/', {'inventory_id': other.id, 'quantity': 1}, format='json')

        response = self.client.delete(f'/api/cart/items/{self.inventory.id}/')
        self.assertEqual(len(response.data['data']['items']), 1)

        response = self.client.delete('/api/cart/')
        self.assertEqual(response.data['data']['items'], [])
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('0'))

    def test_carts_are_per_user(self):
        self.client.post('/api/cart/add/', {'inventory_id': self.inventory.id, 'quantity': 1}, format='json')
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/cart/count/')
        self.assertEqual(response.data['data']['count'], 0)
