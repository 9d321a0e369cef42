import logging

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.exceptions import AppError, not_found
from storefront.core.pagination import paginate_queryset, apply_sorting
from storefront.core.responses import success_response, created_response
from storefront.core.utils import create_audit_log
from storefront.inventory import services
from storefront.inventory.serializers import validate_priced_lines
from storefront.inventory.models import Inventory
from storefront.parties.models import Supplier
from .filters import PurchaseOrderFilter
from .models import PurchaseOrder, PurchaseOrderItem
from .serializers import PurchaseOrderSerializer, PurchaseOrderWriteSerializer, PurchaseOrderStatusSerializer

logger = logging.getLogger('storefront.purchasing')

PURCHASE_SORT_FIELDS = ['purchase_date', 'total_amount', 'status', 'created_at']


def _purchase_queryset(user):
    return PurchaseOrder.objects.filter(user=user).select_related('supplier').prefetch_related(
        'items__inventory__item', 'items__inventory__size', 'items__inventory__color'
    )


def _get_purchase_order(user, pk):
    purchase_order = _purchase_queryset(user).filter(pk=pk).first()
    if purchase_order is None:
        raise not_found('Purchase order not found')
    return purchase_order


def _get_supplier(supplier_id):
    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise not_found('Supplier not found')
    return supplier


def _check_inventory(items):
    ids = {line['inventory_id'] for line in items}
    found = set(Inventory.objects.filter(pk__in=ids).values_list('pk', flat=True))
    missing = sorted(ids - found)
    if missing:
        raise not_found(f'Inventory item {missing[0]} not found')


def _write_items(purchase_order, items):
    PurchaseOrderItem.objects.bulk_create([
        PurchaseOrderItem(
            purchase_order=purchase_order,
            inventory_id=line['inventory_id'],
            quantity=line['quantity'],
            price=line['price'],
        )
        for line in items
    ])


def _lines(purchase_order):
    return [(line.inventory_id, line.quantity) for line in purchase_order.items.all()]


def _lock_purchase_order(user, pk):
    purchase_order = PurchaseOrder.objects.select_for_update().filter(pk=pk, user=user).first()
    if purchase_order is None:
        raise not_found('Purchase order not found')
    return purchase_order


def apply_status(purchase_order, new_status, request):
    """
    Move a purchase order to new_status. The first move to delivered adds
    every line to stock and marks stock_received; it never happens twice.
    Must run inside a transaction. The row is re-read under a lock and the
    locked copy is returned.
    """
    purchase_order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order.pk)
    if purchase_order.status == new_status:
        return purchase_order
    if purchase_order.stock_received and new_status != PurchaseOrder.STATUS_DELIVERED:
        raise AppError(
            'Cannot change status of a delivered purchase order whose stock has been received',
            status.HTTP_400_BAD_REQUEST
        )

    previous = purchase_order.status
    if new_status == PurchaseOrder.STATUS_DELIVERED and not purchase_order.stock_received:
        lines = _lines(purchase_order)
        for inventory_id, quantity in services.merge_lines(lines):
            services.increment_stock(inventory_id, quantity, request=request, reference=purchase_order.order_number)
        purchase_order.stock_received = True
        logger.info(f"Purchase order {purchase_order.order_number} delivered, {len(lines)} line(s) added to stock")
    purchase_order.status = new_status
    purchase_order.save(update_fields=['status', 'stock_received', 'updated_at'])

    create_audit_log(
        action='status_change',
        model_name='PurchaseOrder',
        object_id=purchase_order.id,
        request=request,
        object_reference=purchase_order.order_number,
        changes={'status': {'old': previous, 'new': new_status}},
    )
    return purchase_order


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_order_list_create(request):
    """List the caller's purchase orders (supplier_id, status, date range) or create one"""
    if request.method == 'GET':
        queryset = PurchaseOrderFilter(request.query_params, queryset=_purchase_queryset(request.user)).qs
        queryset = apply_sorting(request, queryset, PURCHASE_SORT_FIELDS)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(PurchaseOrderSerializer(rows, many=True).data, 'Purchase orders retrieved successfully', pagination=pagination)

    serializer = PurchaseOrderWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    supplier = _get_supplier(data['supplier_id'])
    _check_inventory(data['items'])

    with transaction.atomic():
        purchase_order = PurchaseOrder.objects.create(
            user=request.user,
            supplier=supplier,
            discount=data['discount'],
            notes=data.get('notes', ''),
            purchase_date=data.get('purchase_date') or timezone.now(),
        )
        _write_items(purchase_order, data['items'])
        purchase_order.recalculate_total()
        purchase_order.save(update_fields=['total_amount', 'updated_at'])
        apply_status(purchase_order, data['status'], request)

    create_audit_log(
        action='create',
        model_name='PurchaseOrder',
        object_id=purchase_order.id,
        request=request,
        object_reference=purchase_order.order_number,
        changes={'total_amount': str(purchase_order.total_amount), 'status': purchase_order.status},
    )
    return created_response(
        PurchaseOrderSerializer(_get_purchase_order(request.user, purchase_order.pk)).data,
        'Purchase order created successfully'
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purchase_order_detail(request, pk):
    purchase_order = _get_purchase_order(request.user, pk)

    if request.method == 'GET':
        return success_response(PurchaseOrderSerializer(purchase_order).data, 'Purchase order retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = PurchaseOrderWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if 'items' in data:
            data['items'] = validate_priced_lines(request.data['items'])
            _check_inventory(data['items'])

        with transaction.atomic():
            purchase_order = _lock_purchase_order(request.user, pk)
            if 'items' in data and purchase_order.status == PurchaseOrder.STATUS_DELIVERED:
                raise AppError('Cannot modify items of a delivered purchase order', status.HTTP_400_BAD_REQUEST)
            if 'supplier_id' in data:
                purchase_order.supplier = _get_supplier(data['supplier_id'])
            for field in ('discount', 'notes', 'purchase_date'):
                if field in data:
                    setattr(purchase_order, field, data[field])
            if 'items' in data:
                purchase_order.items.all().delete()
                _write_items(purchase_order, data['items'])
            purchase_order.recalculate_total()
            purchase_order.save(update_fields=['supplier', 'discount', 'notes', 'purchase_date', 'total_amount', 'updated_at'])
            if 'status' in data:
                apply_status(purchase_order, data['status'], request)

        return success_response(
            PurchaseOrderSerializer(_get_purchase_order(request.user, pk)).data,
            'Purchase order updated successfully'
        )

    with transaction.atomic():
        purchase_order = _lock_purchase_order(request.user, pk)
        order_number = purchase_order.order_number
        if purchase_order.stock_received:
            # Guarded decrement: fails with 400 when the received stock has since been sold
            for inventory_id, quantity in services.merge_lines(_lines(purchase_order)):
                services.decrement_stock(inventory_id, quantity, request=request, reference=order_number)
        purchase_order.delete()
    create_audit_log(
        action='delete',
        model_name='PurchaseOrder',
        object_id=pk,
        request=request,
        object_reference=order_number,
    )
    return success_response(message='Purchase order deleted successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def purchase_order_status(request, pk):
    purchase_order = _get_purchase_order(request.user, pk)
    serializer = PurchaseOrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        apply_status(purchase_order, serializer.validated_data['status'], request)
    return success_response(
        PurchaseOrderSerializer(_get_purchase_order(request.user, pk)).data,
        'Purchase order status updated successfully'
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def purchase_order_stats(request):
    orders = PurchaseOrder.objects.filter(user=request.user)
    by_status = orders.values('status').annotate(count=Count('id'), total_amount=Sum('total_amount')).order_by('status')
    totals = orders.aggregate(count=Count('id'), total_amount=Sum('total_amount'))
    data = {
        'totalOrders': totals['count'],
        'totalAmount': str(totals['total_amount'] or 0),
        'byStatus': [
            {'status': row['status'], 'count': row['count'], 'total_amount': str(row['total_amount'] or 0)}
            for row in by_status
        ],
    }
    return success_response(data, 'Purchase order statistics retrieved successfully')
