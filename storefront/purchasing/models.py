from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from storefront.core.utils import generate_document_number
from storefront.inventory.models import Inventory
from storefront.parties.models import Supplier


class PurchaseOrder(models.Model):
    """Order placed with a supplier. Stock is added once, when it is delivered."""
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='purchase_orders')
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchase_orders')
    order_number = models.CharField(max_length=50, unique=True, editable=False)
    purchase_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))]
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock_received = models.BooleanField(default=False)
    notes = models.TextField(max_length=1000, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def get_subtotal(self):
        """Calculate subtotal from all items"""
        return sum((item.quantity * item.price for item in self.items.all()), Decimal('0'))

    def recalculate_total(self):
        self.total_amount = max(Decimal('0'), self.get_subtotal() - self.discount)
        return self.total_amount

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_document_number('PO')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-purchase_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_po_status'),
            models.Index(fields=['supplier', 'status'], name='idx_po_supplier_status'),
            models.Index(fields=['-purchase_date', '-created_at'], name='idx_po_date_created'),
        ]


class PurchaseOrderItem(models.Model):
    """Purchase order line items"""
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    inventory = models.ForeignKey(Inventory, on_delete=models.PROTECT, related_name='purchase_order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])

    def get_line_total(self):
        return self.quantity * self.price

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']
