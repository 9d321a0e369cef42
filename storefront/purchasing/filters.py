import django_filters

from .models import PurchaseOrder


class PurchaseOrderFilter(django_filters.FilterSet):
    supplier_id = django_filters.NumberFilter(field_name='supplier_id')
    status = django_filters.ChoiceFilter(choices=PurchaseOrder.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='purchase_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='purchase_date', lookup_expr='date__lte')

    class Meta:
        model = PurchaseOrder
        fields = ['supplier_id', 'status', 'date_from', 'date_to']
