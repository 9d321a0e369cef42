import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.exceptions import not_found
from storefront.core.pagination import paginate_queryset
from storefront.core.responses import success_response, created_response
from storefront.core.utils import create_audit_log
from storefront.inventory import services
from storefront.inventory.serializers import validate_priced_lines
from storefront.parties.models import Customer
from .filters import SalesOrderFilter
from .models import SalesOrder, SalesOrderItem
from .serializers import SalesOrderSerializer, SalesOrderWriteSerializer

logger = logging.getLogger('storefront.sales')

RECENT_DAYS = 30


def _sales_queryset(user):
    return SalesOrder.objects.filter(user=user).select_related('customer').prefetch_related(
        'items__inventory__item', 'items__inventory__size', 'items__inventory__color'
    )


def _get_sales_order(user, pk):
    sales_order = _sales_queryset(user).filter(pk=pk).first()
    if sales_order is None:
        raise not_found('Sales order not found')
    return sales_order


def _get_customer(customer_id):
    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is None:
        raise not_found('Customer not found')
    return customer


def _stock_lines(items):
    return [(line['inventory_id'], line['quantity']) for line in items]


def _write_items(sales_order, items):
    SalesOrderItem.objects.bulk_create([
        SalesOrderItem(
            sales_order=sales_order,
            inventory_id=line['inventory_id'],
            quantity=line['quantity'],
            price=line['price'],
        )
        for line in items
    ])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sales_order_list_create(request):
    """
    GET: the caller's sales orders, newest first, filterable by customer_id.
    POST: record a sale; stock for every line leaves inventory in the same transaction.
    """
    if request.method == 'GET':
        queryset = SalesOrderFilter(request.query_params, queryset=_sales_queryset(request.user)).qs
        rows, pagination = paginate_queryset(request, queryset.order_by('-created_at', '-id'))
        return success_response(SalesOrderSerializer(rows, many=True).data, 'Sales orders retrieved successfully', pagination=pagination)

    serializer = SalesOrderWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    customer = _get_customer(data['customer_id'])
    services.check_availability(_stock_lines(data['items']))

    with transaction.atomic():
        sales_order = SalesOrder.objects.create(
            user=request.user,
            customer=customer,
            total_discount=data['total_discount'],
            sales_date=data.get('sales_date') or timezone.now(),
        )
        _write_items(sales_order, data['items'])
        services.reserve_items(_stock_lines(data['items']), request=request, reference=sales_order.order_number)
        sales_order.recalculate_total()
        sales_order.save(update_fields=['total_amount', 'updated_at'])

    create_audit_log(
        action='create',
        model_name='SalesOrder',
        object_id=sales_order.id,
        request=request,
        object_reference=sales_order.order_number,
        changes={'total_amount': str(sales_order.total_amount), 'lines': len(data['items'])},
    )
    logger.info(f"Sales order {sales_order.order_number} created for customer {customer.id}")
    return created_response(
        SalesOrderSerializer(_get_sales_order(request.user, sales_order.pk)).data,
        'Sales order created successfully'
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sales_order_detail(request, pk):
    sales_order = _get_sales_order(request.user, pk)

    if request.method == 'GET':
        return success_response(SalesOrderSerializer(sales_order).data, 'Sales order retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = SalesOrderWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if 'items' in data:
            data['items'] = validate_priced_lines(request.data['items'])

        with transaction.atomic():
            sales_order = SalesOrder.objects.select_for_update().get(pk=pk)
            if 'customer_id' in data:
                sales_order.customer = _get_customer(data['customer_id'])
            if 'total_discount' in data:
                sales_order.total_discount = data['total_discount']
            if 'sales_date' in data:
                sales_order.sales_date = data['sales_date']
            if 'items' in data:
                # Put the old lines back first so they count towards availability
                old_lines = [(line.inventory_id, line.quantity) for line in sales_order.items.all()]
                services.release_items(old_lines, request=request, reference=sales_order.order_number)
                services.reserve_items(_stock_lines(data['items']), request=request, reference=sales_order.order_number)
                sales_order.items.all().delete()
                _write_items(sales_order, data['items'])
            sales_order.recalculate_total()
            sales_order.save()

        return success_response(
            SalesOrderSerializer(_get_sales_order(request.user, pk)).data,
            'Sales order updated successfully'
        )

    with transaction.atomic():
        sales_order = SalesOrder.objects.select_for_update().filter(pk=pk, user=request.user).first()
        if sales_order is None:
            raise not_found('Sales order not found')
        order_number = sales_order.order_number
        lines = [(line.inventory_id, line.quantity) for line in sales_order.items.all()]
        services.release_items(lines, request=request, reference=order_number)
        sales_order.delete()
    create_audit_log(
        action='delete',
        model_name='SalesOrder',
        object_id=pk,
        request=request,
        object_reference=order_number,
    )
    return success_response(message='Sales order deleted successfully and stock restored')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_order_stats(request):
    orders = SalesOrder.objects.filter(user=request.user)
    recent = orders.filter(created_at__gte=timezone.now() - timedelta(days=RECENT_DAYS))
    data = {
        'totalOrders': orders.count(),
        'totalRevenue': str(orders.aggregate(total=Sum('total_amount'))['total'] or Decimal('0')),
        'recentOrders': recent.count(),
        'recentRevenue': str(recent.aggregate(total=Sum('total_amount'))['total'] or Decimal('0')),
    }
    return success_response(data, 'Sales statistics retrieved successfully')
