from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from storefront.inventory.models import Inventory


class Cart(models.Model):
    """One cart per user. Holding items in a cart never reserves stock."""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart of {self.user}"

    def recalculate_total(self):
        """Sum of current variant price x quantity, rounded to 2 places"""
        total = Decimal('0')
        for line in self.items.select_related('inventory'):
            total += line.inventory.price * line.quantity
        self.total_amount = total.quantize(Decimal('0.01'))
        self.save(update_fields=['total_amount', 'updated_at'])
        return self.total_amount

    class Meta:
        db_table = 'carts'


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    inventory = models.ForeignKey(Inventory, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.inventory_id} x {self.quantity}"

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'inventory'], name='unique_cart_inventory'),
        ]
