"""
Tests for customers and suppliers
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.parties.models import Customer, Supplier


class CustomerAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_customer_lowercases_email(self):
        response = self.client.post('/api/customers/', {
            'name': 'Ravi Kumar', 'email': 'Ravi@Example.com', 'phone': '9123456789'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['email'], 'ravi@example.com')

    def test_duplicate_email_conflict(self):
        TestDataFactory.create_customer(email='dup@test.com')
        response = self.client.post('/api/customers/', {
            'name': 'Other', 'email': 'DUP@test.com', 'phone': '9123456789'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Customer with this email already exists')

    def test_invalid_phone(self):
        response = self.client.post('/api/customers/', {
            'name': 'Bad Phone', 'email': 'bad@test.com', 'phone': '5123456789'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_keeps_own_email(self):
        customer = TestDataFactory.create_customer(email='same@test.com')
        response = self.client.patch(f'/api/customers/{customer.id}/', {
            'email': 'same@test.com', 'notes': 'VIP'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['notes'], 'VIP')

    def test_search(self):
        TestDataFactory.create_customer(name='Meera Nair')
        TestDataFactory.create_customer(name='John Doe')
        response = self.client.get('/api/customers/?search=meera')
        self.assertEqual([row['name'] for row in response.data['data']], ['Meera Nair'])

    def test_delete_unused_customer(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Customer.objects.filter(pk=customer.id).exists())

    def test_stats(self):
        TestDataFactory.create_customer()
        response = self.client.get('/api/customers/stats/')
        self.assertEqual(response.data['data'], {'total': 1, 'recent': 1})


class SupplierAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        response = self.client.post('/api/suppliers/', {
            'name': 'Cotton Mills', 'email': 'sales@cottonmills.in', 'phone': '9988776655'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Supplier.objects.get().user, self.user)

    def test_supplier_with_purchase_orders_cannot_be_deleted(self):
        supplier = TestDataFactory.create_supplier()
        inventory = TestDataFactory.create_inventory()
        self.client.post('/api/purchase-orders/', {
            'supplier_id': supplier.id,
            'items': [{'inventory_id': inventory.id, 'quantity': 1, 'price': '5.00'}],
        }, format='json')
        response = self.client.delete(f'/api/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Supplier.objects.filter(pk=supplier.id).exists())

    def test_stats_counts_active_suppliers(self):
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_supplier()
        inventory = TestDataFactory.create_inventory()
        self.client.post('/api/purchase-orders/', {
            'supplier_id': supplier.id,
            'items': [{'inventory_id': inventory.id, 'quantity': 1, 'price': '5.00'}],
        }, format='json')
        response = self.client.get('/api/suppliers/stats/')
        self.assertEqual(response.data['data'], {'total': 2, 'recent': 2, 'active': 1})
