from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models

from storefront.core.validators import PHONE_VALIDATOR


class Customer(models.Model):
    """Customers sales orders are raised against"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='customers'
    )
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=10, validators=[PHONE_VALIDATOR])
    address = models.TextField(max_length=500, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']


class Supplier(models.Model):
    """Suppliers purchase orders are raised against"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='suppliers'
    )
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=10, validators=[PHONE_VALIDATOR])
    address = models.TextField(max_length=500, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['-created_at']
