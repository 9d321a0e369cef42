import django_filters
from django.db.models import Q

from .models import Customer, Supplier


class PartyFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(email__icontains=value) | Q(phone__icontains=value)
        )


class CustomerFilter(PartyFilter):
    class Meta:
        model = Customer
        fields = ['search', 'is_active']


class SupplierFilter(PartyFilter):
    class Meta:
        model = Supplier
        fields = ['search', 'is_active']
