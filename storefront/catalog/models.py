from django.conf import settings
from django.core.validators import MinLengthValidator, MinValueValidator, MaxValueValidator, RegexValidator
from django.db import models
from django.utils.text import slugify


HEX_COLOR_VALIDATOR = RegexValidator(
    regex=r'^#([0-9A-Fa-f]{3}){1,2}$',
    message='Enter a valid hex color code, e.g. #fff or #1a2b3c',
)


def make_slug(value):
    """Lowercase, whitespace to '-', non-word characters dropped"""
    return slugify(value)


class Category(models.Model):
    """Item categories, optionally nested"""
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)], db_index=True)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(validators=[MinLengthValidator(10)])
    images = models.JSONField(default=list, blank=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = make_slug(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['-created_at']


class Item(models.Model):
    """Catalog product; stock lives on its Inventory variants"""
    name = models.CharField(max_length=200, validators=[MinLengthValidator(3)], db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='items')
    image = models.CharField(max_length=500, blank=True)
    images = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    attributes = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = make_slug(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'items'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'is_active'], name='items_category_active_idx'),
        ]


class Size(models.Model):
    name = models.CharField(max_length=50, unique=True)
    code = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'sizes'
        ordering = ['name']


class Color(models.Model):
    name = models.CharField(max_length=50, unique=True)
    hex_code = models.CharField(max_length=7, blank=True, validators=[HEX_COLOR_VALIDATOR])
    rgb = models.CharField(max_length=30, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'colors'
        ordering = ['name']


class ItemReview(models.Model):
    """One rating per user per item"""
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='item_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.item} - {self.rating}"

    class Meta:
        db_table = 'item_reviews'
        ordering = ['-created_at']
        unique_together = [['item', 'user']]
