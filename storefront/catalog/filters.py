import django_filters
from django.db.models import Q

from .models import Category, Item, Size, Color


class CategoryFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    parent_id = django_filters.NumberFilter(field_name='parent_id')

    class Meta:
        model = Category
        fields = ['search', 'is_active', 'parent_id']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value) | Q(slug__icontains=value)
        )


class ItemFilter(django_filters.FilterSet):
    """Search spans name, description and tags"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category_id = django_filters.NumberFilter(field_name='category_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    is_featured = django_filters.BooleanFilter(field_name='is_featured')

    class Meta:
        model = Item
        fields = ['search', 'category_id', 'is_active', 'is_featured']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value) | Q(tags__icontains=value)
        )


class NamedFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(name__icontains=value)


class SizeFilter(NamedFilter):
    class Meta:
        model = Size
        fields = ['search', 'is_active']


class ColorFilter(NamedFilter):
    class Meta:
        model = Color
        fields = ['search', 'is_active']
