import logging

from django.db import transaction
from django.db.models import Count, Sum, ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.cart.models import Cart
from storefront.core.exceptions import AppError, not_found
from storefront.core.pagination import paginate_queryset, apply_sorting
from storefront.core.permissions import IsAdminRole, can_access
from storefront.core.responses import success_response, created_response
from storefront.core.utils import create_audit_log
from storefront.inventory import services
from .filters import OrderFilter
from .models import ShippingAddress, Order, OrderItem
from .serializers import (
    ShippingAddressSerializer, OrderSerializer, OrderCreateSerializer, OrderCancelSerializer,
    OrderStatusSerializer, PaymentStatusSerializer
)

logger = logging.getLogger('storefront.orders')

ORDER_SORT_FIELDS = ['order_date', 'total_amount', 'status', 'created_at']


def _orders_queryset():
    return Order.objects.select_related('user', 'shipping_address', 'billing_address').prefetch_related(
        'items__inventory__item', 'items__inventory__size', 'items__inventory__color'
    )


def _order_lines(order):
    return [(line.inventory_id, line.quantity) for line in order.items.all()]


def _get_address(user, address_id, label='Shipping address'):
    address = ShippingAddress.objects.filter(pk=address_id, user=user).first()
    if address is None:
        raise not_found(f'{label} not found')
    return address


def _lock_order(pk):
    return get_object_or_404(Order.objects.select_for_update(), pk=pk)


def cancel_order(order, request, reason='', allowed_statuses=None):
    """
    Cancel an order and put its stock back; a paid order is marked refunded.
    The row is re-read under a lock, so the stock goes back exactly once.
    Returns the cancelled order.
    """
    with transaction.atomic():
        order = _lock_order(order.pk)
        if order.status == Order.STATUS_CANCELLED:
            raise AppError('Order is already cancelled', status.HTTP_400_BAD_REQUEST)
        if allowed_statuses is not None and order.status not in allowed_statuses:
            raise AppError(f'Order cannot be cancelled. Current status: {order.status}', status.HTTP_400_BAD_REQUEST)
        services.release_items(_order_lines(order), request=request, reference=order.order_no)
        order.set_status(Order.STATUS_CANCELLED)
        order.cancellation_reason = reason or 'Cancelled by user'
        if order.payment_status == Order.PAYMENT_PAID:
            order.payment_status = Order.PAYMENT_REFUNDED
        order.save()
    create_audit_log(
        action='order_cancel',
        model_name='Order',
        object_id=order.id,
        request=request,
        object_reference=order.order_no,
        changes={'reason': order.cancellation_reason, 'payment_status': order.payment_status},
    )
    logger.info(f"Order {order.order_no} cancelled, stock restored for {order.items.count()} line(s)")
    return order


def _clear_cart(user):
    cart = Cart.objects.filter(user=user).first()
    if cart is not None:
        cart.items.all().delete()
        cart.recalculate_total()


# Shipping addresses
def _clear_other_defaults(address):
    if address.is_default:
        ShippingAddress.objects.filter(user_id=address.user_id, is_default=True).exclude(pk=address.pk).update(is_default=False)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def shipping_address_list_create(request):
    if request.method == 'GET':
        queryset = ShippingAddress.objects.filter(user=request.user)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(
            ShippingAddressSerializer(rows, many=True).data,
            f'Retrieved {len(rows)} shipping addresses',
            pagination=pagination
        )

    serializer = ShippingAddressSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        address = serializer.save(user=request.user)
        _clear_other_defaults(address)
    return created_response(ShippingAddressSerializer(address).data, 'Shipping address created')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def shipping_address_detail(request, pk):
    address = ShippingAddress.objects.filter(pk=pk, user=request.user).first()
    if address is None:
        raise not_found('Shipping address not found')

    if request.method == 'GET':
        return success_response(ShippingAddressSerializer(address).data, 'Shipping address retrieved')

    if request.method in ('PUT', 'PATCH'):
        serializer = ShippingAddressSerializer(address, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            address = serializer.save()
            _clear_other_defaults(address)
        return success_response(ShippingAddressSerializer(address).data, 'Shipping address updated')

    try:
        address.delete()
    except ProtectedError:
        raise AppError('Cannot delete shipping address. It is used by existing orders', status.HTTP_400_BAD_REQUEST)
    return success_response(message='Shipping address deleted')


# Orders
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """
    GET: orders visible to the caller (own orders, or all for admins),
    filterable by status, payment_status, order_no and date range.

    POST: place an order. Stock for every line is checked and decremented in
    the same transaction that writes the order; any shortfall writes nothing.
    """
    if request.method == 'GET':
        queryset = _orders_queryset()
        if not request.user.is_admin:
            queryset = queryset.filter(user=request.user)
        queryset = OrderFilter(request.query_params, queryset=queryset).qs
        queryset = apply_sorting(request, queryset, ORDER_SORT_FIELDS, default='order_date')
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(OrderSerializer(rows, many=True).data, f'Retrieved {len(rows)} orders', pagination=pagination)

    serializer = OrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    shipping_address = _get_address(request.user, data['shipping_address_id'])
    billing_address = shipping_address
    if data.get('billing_address_id'):
        billing_address = _get_address(request.user, data['billing_address_id'], 'Billing address')

    lines = [(line['inventory_id'], line['quantity']) for line in data['items']]
    inventories = services.check_availability(lines)
    merged = services.merge_lines(lines)
    total = sum(inventories[inventory_id].price * quantity for inventory_id, quantity in merged)
    if data['discount'] > total:
        raise AppError('Invalid discount amount', status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        order = Order.objects.create(
            user=request.user,
            total_amount=total,
            discount=data['discount'],
            delivery_type=data['delivery_type'],
            payment_method=data['payment_method'],
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=data.get('notes', ''),
        )
        OrderItem.objects.bulk_create([
            OrderItem(order=order, inventory_id=inventory_id, quantity=quantity, price=inventories[inventory_id].price)
            for inventory_id, quantity in merged
        ])
        services.reserve_items(merged, request=request, reference=order.order_no)
        if data['clear_cart']:
            _clear_cart(request.user)

    create_audit_log(
        action='create',
        model_name='Order',
        object_id=order.id,
        request=request,
        object_reference=order.order_no,
        changes={'total_amount': str(total), 'lines': len(merged)},
    )
    logger.info(f"Order {order.order_no} created by user {request.user.id}: {len(merged)} line(s), total {total}")
    return created_response(OrderSerializer(_orders_queryset().get(pk=order.pk)).data, 'Order created successfully')


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(_orders_queryset(), pk=pk)

    if request.method == 'GET':
        if not can_access(request.user, order.user_id):
            raise AppError('Not authorized to view this order', status.HTTP_403_FORBIDDEN)
        return success_response(OrderSerializer(order).data, 'Order retrieved successfully')

    if not request.user.is_admin:
        raise AppError('Access restricted to admin users only.', status.HTTP_403_FORBIDDEN)

    with transaction.atomic():
        order = _lock_order(pk)
        order_no = order.order_no
        if order.status != Order.STATUS_CANCELLED:
            services.release_items(_order_lines(order), request=request, reference=order_no)
        order.delete()
    create_audit_log(
        action='delete',
        model_name='Order',
        object_id=pk,
        request=request,
        object_reference=order_no,
    )
    logger.info(f"Order {order_no} deleted by admin {request.user.id}")
    return success_response(message='Order deleted successfully')


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated])
def order_cancel(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if not can_access(request.user, order.user_id):
        raise AppError('Not authorized to cancel this order', status.HTTP_403_FORBIDDEN)
    if order.status not in Order.CANCELLABLE_STATUSES:
        raise AppError(f'Order cannot be cancelled. Current status: {order.status}', status.HTTP_400_BAD_REQUEST)

    serializer = OrderCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    cancel_order(order, request, serializer.validated_data.get('reason', ''), Order.CANCELLABLE_STATUSES)
    return success_response(OrderSerializer(_orders_queryset().get(pk=pk)).data, 'Order cancelled successfully')


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def order_status_update(request, pk):
    """Admin status change; moving to cancelled restores stock like a cancel"""
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    new_status = data['status']

    with transaction.atomic():
        order = _lock_order(pk)
        if order.status == Order.STATUS_CANCELLED and new_status != Order.STATUS_CANCELLED:
            raise AppError('Cancelled orders cannot be reopened', status.HTTP_400_BAD_REQUEST)

        previous_status = order.status
        if data.get('tracking_number'):
            order.tracking_number = data['tracking_number']
        if data.get('notes'):
            order.notes = data['notes']

        if new_status == Order.STATUS_CANCELLED and previous_status != Order.STATUS_CANCELLED:
            order.save(update_fields=['tracking_number', 'notes', 'updated_at'])
            order = cancel_order(order, request, 'Cancelled by admin')
        else:
            order.set_status(new_status)
            order.save()

    if previous_status != new_status:
        create_audit_log(
            action='status_change',
            model_name='Order',
            object_id=order.id,
            request=request,
            object_reference=order.order_no,
            changes={'status': {'old': previous_status, 'new': new_status}},
        )
    return success_response(OrderSerializer(_orders_queryset().get(pk=pk)).data, 'Order status updated successfully')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def order_payment_update(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if not can_access(request.user, order.user_id):
        raise AppError('Not authorized to update this order', status.HTTP_403_FORBIDDEN)

    serializer = PaymentStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    with transaction.atomic():
        order = _lock_order(pk)
        previous = order.payment_status
        order.payment_status = data['payment_status']
        if data.get('transaction_id'):
            order.transaction_id = data['transaction_id']
        if data.get('paid_at'):
            order.paid_at = data['paid_at']
        order.save(update_fields=['payment_status', 'transaction_id', 'paid_at', 'updated_at'])

    create_audit_log(
        action='payment_update',
        model_name='Order',
        object_id=order.id,
        request=request,
        object_reference=order.order_no,
        changes={'payment_status': {'old': previous, 'new': order.payment_status}},
    )
    return success_response(OrderSerializer(_orders_queryset().get(pk=pk)).data, 'Payment status updated successfully')


@api_view(['GET'])
@permission_classes([IsAdminRole])
def order_stats(request):
    stats = (
        Order.objects.values('status')
        .annotate(count=Count('id'), total_amount=Sum('total_amount'))
        .order_by('status')
    )
    data = [
        {'status': row['status'], 'count': row['count'], 'total_amount': str(row['total_amount'] or 0)}
        for row in stats
    ]
    return success_response(data, 'Order statistics retrieved successfully')
