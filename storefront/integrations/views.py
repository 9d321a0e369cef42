"""
Payment (Cashfree) and shipping (Shiprocket) endpoints.

Shiprocket routes forward the caller's own Shiprocket bearer token and do not
use the storefront's JWT auth.
"""
import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from storefront.core.exceptions import not_found
from storefront.core.responses import success_response, created_response
from storefront.core.utils import create_audit_log
from storefront.orders.models import Order
from . import shiprocket
from .cashfree import CashfreeClient
from .serializers import (
    PaymentOrderSerializer, PaymentCallbackSerializer, ShiprocketLoginSerializer, PickupLocationSerializer
)

logger = logging.getLogger('storefront.integrations')

PAID_STATUSES = ('success', 'paid')


# Cashfree
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cashfree_create_order(request):
    serializer = PaymentOrderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    result = CashfreeClient().create_order(
        order_id=data['order_id'],
        amount=data['amount'],
        customer_id=data['customer_id'],
        customer_phone=data['customer_phone'],
        return_url=data.get('return_url'),
    )
    return created_response(result, 'Payment order created successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cashfree_order_status(request, order_id):
    result = CashfreeClient().get_order(order_id)
    return success_response(result, 'Order status retrieved successfully')


def _find_order(reference):
    order = Order.objects.filter(order_no=reference).first()
    if order is None and reference.isdigit():
        order = Order.objects.filter(pk=int(reference)).first()
    if order is None:
        raise not_found('Order not found')
    return order


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def cashfree_webhook(request):
    """
    Payment callback from the gateway. orderId is matched against order_no
    first, then the numeric primary key.
    """
    serializer = PaymentCallbackSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    order = _find_order(data['orderId'])

    gateway_status = data['paymentStatus'].lower()
    previous = order.payment_status
    if gateway_status in PAID_STATUSES:
        order.payment_status = Order.PAYMENT_PAID
        order.paid_at = timezone.now()
    elif gateway_status == 'failed':
        order.payment_status = Order.PAYMENT_FAILED
    order.payment_gateway = 'cashfree'
    if data.get('transactionId'):
        order.transaction_id = data['transactionId']
    if data['orderAmount'] != order.final_amount:
        logger.warning(f"Payment callback for {order.order_no}: amount {data['orderAmount']} != order total {order.final_amount}")
    order.save(update_fields=['payment_status', 'paid_at', 'payment_gateway', 'transaction_id', 'updated_at'])

    create_audit_log(
        action='payment_update',
        model_name='Order',
        object_id=order.id,
        request=request,
        object_reference=order.order_no,
        changes={'payment_status': {'old': previous, 'new': order.payment_status}, 'gateway': 'cashfree'},
    )
    logger.info(f"Payment callback for {order.order_no}: {gateway_status}")
    return success_response(
        {'orderId': data['orderId'], 'paymentStatus': order.payment_status},
        'Payment callback processed successfully'
    )


# Shiprocket
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def shiprocket_login(request):
    serializer = ShiprocketLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = shiprocket.login(serializer.validated_data['email'], serializer.validated_data['password'])
    return success_response(result, 'Shiprocket login successful')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def shiprocket_logout(request):
    token = shiprocket.bearer_token(request)
    result = shiprocket.logout(token)
    return success_response(result, 'Shiprocket logout successful')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def shiprocket_add_pickup(request):
    token = shiprocket.bearer_token(request)
    serializer = PickupLocationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = shiprocket.add_pickup(token, serializer.validated_data)
    return success_response(result, 'Pickup address added successfully', status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def shiprocket_list_pickups(request):
    token = shiprocket.bearer_token(request)
    result = shiprocket.list_pickups(token)
    return success_response(result, 'Pickup addresses retrieved successfully')
