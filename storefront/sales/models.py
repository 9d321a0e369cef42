from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from storefront.core.utils import generate_document_number
from storefront.inventory.models import Inventory
from storefront.parties.models import Customer


class SalesOrder(models.Model):
    """Back-office sale to a customer. Stock leaves inventory when the order is created."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sales_orders')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='sales_orders')
    order_number = models.CharField(max_length=50, unique=True, editable=False)
    sales_date = models.DateTimeField(default=timezone.now)
    total_discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))]
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def recalculate_total(self):
        """total = max(0, sum(quantity * price) - total_discount)"""
        subtotal = sum((line.quantity * line.price for line in self.items.all()), Decimal('0'))
        self.total_amount = max(Decimal('0'), subtotal - self.total_discount)
        return self.total_amount

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_document_number('SO')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'sales_orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='sales_user_created_idx'),
        ]


class SalesOrderItem(models.Model):
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.CASCADE, related_name='items')
    inventory = models.ForeignKey(Inventory, on_delete=models.PROTECT, related_name='sales_order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])

    def __str__(self):
        return f"{self.sales_order_id}: {self.inventory_id} x {self.quantity}"

    class Meta:
        db_table = 'sales_order_items'
        ordering = ['id']
