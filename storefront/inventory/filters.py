import django_filters
from django.db.models import Q

from .models import Inventory


class InventoryFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    item_id = django_filters.NumberFilter(field_name='item_id')
    size_id = django_filters.NumberFilter(field_name='size_id')
    color_id = django_filters.NumberFilter(field_name='color_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Inventory
        fields = ['search', 'item_id', 'size_id', 'color_id', 'is_active']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(sku__icontains=value) | Q(barcode__icontains=value) | Q(tags__icontains=value)
        )


class PublicItemFilter(django_filters.FilterSet):
    """Storefront listing: search over item name/description and variant sku"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category_id = django_filters.NumberFilter(field_name='item__category_id')

    class Meta:
        model = Inventory
        fields = ['search', 'category_id']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(item__name__icontains=value) | Q(item__description__icontains=value) | Q(sku__icontains=value)
        )
