from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from storefront.catalog.models import Item, Size, Color


class Inventory(models.Model):
    """
    A size x color variant of an Item; the unit stock is tracked against.

    Stock is only changed through storefront.inventory.services so every
    movement is a guarded single-statement UPDATE with an audit entry.
    """
    item = models.ForeignKey(Item, on_delete=models.PROTECT, related_name='inventory_variants')
    size = models.ForeignKey(Size, on_delete=models.PROTECT, related_name='inventory_variants')
    color = models.ForeignKey(Color, on_delete=models.PROTECT, related_name='inventory_variants')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    compare_at_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))]
    )
    cost_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))]
    )
    stock = models.PositiveIntegerField(default=0)
    sku = models.CharField(max_length=100, blank=True, db_index=True)
    barcode = models.CharField(max_length=100, blank=True, db_index=True)
    tags = models.JSONField(default=list, blank=True)
    attributes = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.label

    @property
    def label(self):
        """SKU when set, otherwise item name with size/color"""
        if self.sku:
            return self.sku
        return f"{self.item.name} ({self.size.name}/{self.color.name})"

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['item', 'size', 'color'], name='unique_inventory_variant'),
            models.CheckConstraint(condition=Q(stock__gte=0), name='inventory_stock_non_negative'),
        ]
        indexes = [
            models.Index(fields=['is_active', 'stock'], name='inventory_active_stock_idx'),
        ]
