"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from storefront.catalog.models import Category, Item, Size, Color
from storefront.inventory.models import Inventory
from storefront.orders.models import ShippingAddress
from storefront.parties.models import Customer, Supplier

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', name='Test User', role=User.ROLE_USER):
        if not email:
            email = f'user_{TestDataFactory.random_string(6)}@test.com'
        return User.objects.create_user(email=email, password=password, name=name, role=role)

    @staticmethod
    def create_admin(email=None, password='testpass123'):
        return TestDataFactory.create_user(email=email, password=password, name='Admin User', role=User.ROLE_ADMIN)

    @staticmethod
    def create_category(name=None, description=None):
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test category {name}'
        )

    @staticmethod
    def create_item(name=None, category=None, is_active=True):
        if not name:
            name = f'Item {TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category()
        return Item.objects.create(
            name=name,
            description=f'Test item {name}',
            category=category,
            is_active=is_active
        )

    @staticmethod
    def create_size(name=None):
        if not name:
            name = f'S-{TestDataFactory.random_string(4)}'
        return Size.objects.create(name=name, code=name[:20])

    @staticmethod
    def create_color(name=None, hex_code='#000000'):
        if not name:
            name = f'Color {TestDataFactory.random_string(4)}'
        return Color.objects.create(name=name, hex_code=hex_code)

    @staticmethod
    def create_inventory(item=None, size=None, color=None, stock=10, price=None, is_active=True):
        """Create a variant; item/size/color are created when not given"""
        return Inventory.objects.create(
            item=item or TestDataFactory.create_item(),
            size=size or TestDataFactory.create_size(),
            color=color or TestDataFactory.create_color(),
            stock=stock,
            price=price if price is not None else Decimal('100.00'),
            sku=f'SKU-{TestDataFactory.random_string(8).upper()}',
            is_active=is_active
        )

    @staticmethod
    def create_address(user, is_default=False):
        return ShippingAddress.objects.create(
            user=user,
            full_name='Test Person',
            phone='9876543210',
            address_line1='12 Test Street',
            city='Pune',
            state='Maharashtra',
            pin_code='411001',
            is_default=is_default
        )

    @staticmethod
    def create_customer(name=None, phone=None, email=None):
        if not name:
            name = f'Customer {TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'9{random.randint(100000000, 999999999)}'
        if not email:
            email = f'customer_{TestDataFactory.random_string(6)}@test.com'
        return Customer.objects.create(name=name, phone=phone, email=email)

    @staticmethod
    def create_supplier(name=None, phone=None, email=None):
        if not name:
            name = f'Supplier {TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'9{random.randint(100000000, 999999999)}'
        if not email:
            email = f'supplier_{TestDataFactory.random_string(6)}@test.com'
        return Supplier.objects.create(name=name, phone=phone, email=email)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        self.credentials()
