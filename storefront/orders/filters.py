import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Order.PAYMENT_STATUS_CHOICES)
    order_no = django_filters.CharFilter(field_name='order_no', lookup_expr='icontains')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='date__lte')

    class Meta:
        model = Order
        fields = ['status', 'payment_status', 'order_no', 'date_from', 'date_to']
