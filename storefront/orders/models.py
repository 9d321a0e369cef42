from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinLengthValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from storefront.core.validators import PHONE_VALIDATOR, PIN_CODE_VALIDATOR
from storefront.inventory.models import Inventory

ORDER_NO_ATTEMPTS = 5


class ShippingAddress(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='shipping_addresses')
    full_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=10, validators=[PHONE_VALIDATOR])
    email = models.EmailField(blank=True)
    address_line1 = models.CharField(max_length=200, validators=[MinLengthValidator(5)])
    address_line2 = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    pin_code = models.CharField(max_length=6, validators=[PIN_CODE_VALIDATOR])
    country = models.CharField(max_length=100, default='India')
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.full_name}, {self.city} {self.pin_code}"

    class Meta:
        db_table = 'shipping_addresses'
        ordering = ['-is_default', '-created_at']
        verbose_name_plural = 'shipping addresses'


class Order(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_PROCESSING = 'processing'
    STATUS_SHIPPED = 'shipped'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_RETURNED = 'returned'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_RETURNED, 'Returned'),
    ]
    CANCELLABLE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

    DELIVERY_CHOICES = [
        ('standard', 'Standard'),
        ('express', 'Express'),
        ('overnight', 'Overnight'),
        ('pickup', 'Pickup'),
    ]
    DELIVERY_DAYS = {'standard': 7, 'express': 3, 'overnight': 1, 'pickup': 0}

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_FAILED = 'failed'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
        ('partially_refunded', 'Partially Refunded'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('upi', 'UPI'),
        ('netbanking', 'Net Banking'),
        ('wallet', 'Wallet'),
        ('cod', 'Cash on Delivery'),
    ]

    order_no = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))]
    )
    delivery_type = models.CharField(max_length=20, choices=DELIVERY_CHOICES, default='standard')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    transaction_id = models.CharField(max_length=100, blank=True)
    payment_gateway = models.CharField(max_length=50, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True)
    shipping_address = models.ForeignKey(ShippingAddress, on_delete=models.PROTECT, related_name='orders')
    billing_address = models.ForeignKey(
        ShippingAddress, on_delete=models.PROTECT, null=True, blank=True, related_name='billed_orders'
    )
    order_date = models.DateTimeField(default=timezone.now)
    expected_delivery_date = models.DateTimeField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_no

    @property
    def final_amount(self):
        return self.total_amount - self.discount

    @classmethod
    def next_order_no(cls):
        """ORD000001, ORD000002, ... following the highest issued number"""
        last = cls.objects.order_by('-id').values_list('order_no', flat=True).first()
        number = 1
        if last:
            try:
                number = int(last.replace('ORD', '')) + 1
            except ValueError:
                number = cls.objects.count() + 1
        return f"ORD{number:06d}"

    def set_status(self, status):
        """Change status, stamping delivered/cancelled dates on the transition"""
        if status == self.STATUS_DELIVERED and not self.actual_delivery_date:
            self.actual_delivery_date = timezone.now()
        if status == self.STATUS_CANCELLED and not self.cancelled_at:
            self.cancelled_at = timezone.now()
        self.status = status

    def save(self, *args, **kwargs):
        if self._state.adding and not self.expected_delivery_date:
            days = self.DELIVERY_DAYS.get(self.delivery_type, 7)
            self.expected_delivery_date = self.order_date + timedelta(days=days)
        if self._state.adding and self.billing_address_id is None:
            self.billing_address_id = self.shipping_address_id
        if self.order_no:
            super().save(*args, **kwargs)
            return

        # A concurrent checkout can take the same number; retry with the next one
        for attempt in range(ORDER_NO_ATTEMPTS):
            self.order_no = self.next_order_no()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                taken = Order.objects.filter(order_no=self.order_no).exists()
                self.order_no = ''
                if not taken or attempt == ORDER_NO_ATTEMPTS - 1:
                    raise

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-id']
        indexes = [
            models.Index(fields=['user', 'status'], name='orders_user_status_idx'),
            models.Index(fields=['payment_status'], name='orders_payment_status_idx'),
            models.Index(fields=['-order_date'], name='orders_order_date_idx'),
        ]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    inventory = models.ForeignKey(Inventory, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])

    def __str__(self):
        return f"{self.order_id}: {self.inventory_id} x {self.quantity}"

    @property
    def line_total(self):
        return self.price * self.quantity

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
