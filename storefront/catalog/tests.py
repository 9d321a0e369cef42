"""
Tests for categories, items, sizes, colors and reviews
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.catalog.models import Category, Item
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CategoryAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_category_generates_slug(self):
        response = self.client.post('/api/categories/', {
            'name': 'Summer Dresses',
            'description': 'Light dresses for hot days',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'summer-dresses')

    def test_regular_user_cannot_create_category(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/categories/', {
            'name': 'Shoes', 'description': 'All kinds of shoes'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_parent(self):
        response = self.client.post('/api/categories/', {
            'name': 'Kids', 'description': 'Clothing for kids', 'parent_id': 9999
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Parent category not found')

    def test_duplicate_slug(self):
        TestDataFactory.create_category(name='Bags')
        response = self.client.post('/api/categories/', {
            'name': 'Bags', 'description': 'Another bag category'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_delete_category_with_items(self):
        item = TestDataFactory.create_item()
        response = self.client.delete(f'/api/categories/{item.category_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=item.category_id).exists())

    def test_public_categories_without_auth(self):
        TestDataFactory.create_category(name='Visible')
        hidden = TestDataFactory.create_category(name='Hidden')
        hidden.is_active = False
        hidden.save()

        self.client.logout()
        response = self.client.get('/api/public/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [row['name'] for row in response.data['data']]
        self.assertEqual(names, ['Visible'])

    def test_category_create_invalidates_public_cache(self):
        self.client.get('/api/public/categories/')
        TestDataFactory.create_category()  # bypasses the API, cache still stale
        self.client.post('/api/categories/', {
            'name': 'Fresh', 'description': 'Fresh new category'
        }, format='json')
        response = self.client.get('/api/public/categories/')
        self.assertEqual(response.data['pagination']['total'], 2)


class ItemAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.category = TestDataFactory.create_category()

    def test_create_item(self):
        response = self.client.post('/api/items/', {
            'name': 'Linen Shirt',
            'category_id': self.category.id,
            'tags': ['linen', 'summer'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'linen-shirt')
        self.assertEqual(response.data['data']['category']['id'], self.category.id)

    def test_create_item_unknown_category(self):
        response = self.client.post('/api/items/', {'name': 'Orphan', 'category_id': 9999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_item_search(self):
        TestDataFactory.create_item(name='Blue Denim Jacket', category=self.category)
        TestDataFactory.create_item(name='Red Scarf', category=self.category)
        response = self.client.get('/api/items/?search=denim')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data['data']], ['Blue Denim Jacket'])

    def test_cannot_delete_item_with_variants(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/items/{inventory.item_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Item.objects.filter(pk=inventory.item_id).exists())

    def test_items_by_category(self):
        TestDataFactory.create_item(category=self.category)
        TestDataFactory.create_item()
        response = self.client.get(f'/api/items/category/{self.category.id}/')
        self.assertEqual(response.data['pagination']['total'], 1)


class SizeColorAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_size_name_unique_case_insensitive(self):
        TestDataFactory.create_size(name='XL')
        response = self.client.post('/api/sizes/', {'name': 'xl'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Size name already exists')

    def test_invalid_hex_code(self):
        response = self.client.post('/api/colors/', {'name': 'Teal', 'hex_code': 'teal'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_color_in_use_cannot_be_deleted(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/colors/{inventory.color_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ItemReviewTests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.item = TestDataFactory.create_item()

    def test_one_review_per_user(self):
        url = f'/api/items/{self.item.id}/reviews/'
        response = self.client.post(url, {'rating': 4, 'comment': 'Nice'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rating_out_of_range(self):
        response = self.client.post(f'/api/items/{self.item.id}/reviews/', {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_average_rating(self):
        other = TestDataFactory.create_user()
        self.client.post(f'/api/items/{self.item.id}/reviews/', {'rating': 4}, format='json')
        self.client.authenticate_user(other)
        self.client.post(f'/api/items/{self.item.id}/reviews/', {'rating': 5}, format='json')
        response = self.client.get(f'/api/items/{self.item.id}/')
        self.assertEqual(response.data['data']['average_rating'], 4.5)

    def test_cannot_edit_someone_elses_review(self):
        response = self.client.post(f'/api/items/{self.item.id}/reviews/', {'rating': 3}, format='json')
        review_id = response.data['data']['id']
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.put(f'/api/items/{self.item.id}/reviews/{review_id}/', {'rating': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
