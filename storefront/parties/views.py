from datetime import timedelta

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.exceptions import AppError
from storefront.core.pagination import paginate_queryset, apply_sorting
from storefront.core.responses import success_response, created_response
from storefront.purchasing.models import PurchaseOrder
from .filters import CustomerFilter, SupplierFilter
from .models import Customer, Supplier
from .serializers import CustomerSerializer, SupplierSerializer

PARTY_SORT_FIELDS = ['name', 'email', 'created_at', 'updated_at']
RECENT_DAYS = 30


def _check_unique_email(model, email, label, instance=None):
    existing = model.objects.filter(email=email)
    if instance is not None:
        existing = existing.exclude(pk=instance.pk)
    if existing.exists():
        raise AppError(f'{label} with this email already exists', status.HTTP_409_CONFLICT)


def _party_list_create(request, model, serializer_class, filter_class, label):
    if request.method == 'GET':
        queryset = filter_class(request.query_params, queryset=model.objects.all()).qs
        queryset = apply_sorting(request, queryset, PARTY_SORT_FIELDS)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(serializer_class(rows, many=True).data, f'{label}s retrieved successfully', pagination=pagination)

    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    _check_unique_email(model, serializer.validated_data['email'], label)
    party = serializer.save(user=request.user)
    return created_response(serializer_class(party).data, f'{label} created successfully')


def _party_detail(request, pk, model, serializer_class, label, usage_field, usage_label):
    party = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return success_response(serializer_class(party).data, f'{label} retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(party, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        if 'email' in serializer.validated_data:
            _check_unique_email(model, serializer.validated_data['email'], label, party)
        party = serializer.save()
        return success_response(serializer_class(party).data, f'{label} updated successfully')

    in_use = getattr(party, usage_field).count()
    if in_use:
        raise AppError(
            f'Cannot delete {label.lower()}. It is referenced in {in_use} {usage_label}(s)',
            status.HTTP_400_BAD_REQUEST
        )
    party.delete()
    return success_response(message=f'{label} deleted successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers (search over name/email/phone, is_active) or create one"""
    return _party_list_create(request, Customer, CustomerSerializer, CustomerFilter, 'Customer')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    return _party_detail(request, pk, Customer, CustomerSerializer, 'Customer', 'sales_orders', 'sales order')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_stats(request):
    since = timezone.now() - timedelta(days=RECENT_DAYS)
    data = {
        'total': Customer.objects.count(),
        'recent': Customer.objects.filter(created_at__gte=since).count(),
    }
    return success_response(data, 'Customer statistics retrieved successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    return _party_list_create(request, Supplier, SupplierSerializer, SupplierFilter, 'Supplier')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    return _party_detail(request, pk, Supplier, SupplierSerializer, 'Supplier', 'purchase_orders', 'purchase order')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_stats(request):
    """Totals plus suppliers with a purchase order in the last 30 days"""
    since = timezone.now() - timedelta(days=RECENT_DAYS)
    data = {
        'total': Supplier.objects.count(),
        'recent': Supplier.objects.filter(created_at__gte=since).count(),
        'active': PurchaseOrder.objects.filter(created_at__gte=since).values('supplier_id').distinct().count(),
    }
    return success_response(data, 'Supplier statistics retrieved successfully')
