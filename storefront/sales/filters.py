import django_filters

from .models import SalesOrder


class SalesOrderFilter(django_filters.FilterSet):
    customer_id = django_filters.NumberFilter(field_name='customer_id')
    date_from = django_filters.DateFilter(field_name='sales_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='sales_date', lookup_expr='date__lte')

    class Meta:
        model = SalesOrder
        fields = ['customer_id', 'date_from', 'date_to']
