import logging

from django.db import transaction
from django.db.models import Sum
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.exceptions import AppError, not_found
from storefront.core.responses import success_response
from storefront.inventory.models import Inventory
from storefront.inventory.services import merge_lines
from .models import Cart, CartItem
from .serializers import (
    CartSerializer, AddToCartSerializer, BulkAddToCartSerializer, UpdateCartItemSerializer
)

logger = logging.getLogger('storefront.cart')


def get_or_create_cart(user):
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _cart_payload(cart):
    cart = Cart.objects.prefetch_related(
        'items__inventory__item', 'items__inventory__size', 'items__inventory__color'
    ).get(pk=cart.pk)
    return CartSerializer(cart).data


def _available_inventory(inventory_id):
    inventory = Inventory.objects.filter(pk=inventory_id).first()
    if inventory is None:
        raise not_found('Inventory item not found')
    if not inventory.is_active:
        raise AppError('Item is not available', status.HTTP_400_BAD_REQUEST)
    return inventory


def _check_stock(inventory, quantity):
    if inventory.stock < quantity:
        raise AppError(f'Only {inventory.stock} items available in stock', status.HTTP_400_BAD_REQUEST)


def _add_lines(cart, lines):
    """
    Validate every (inventory_id, quantity) against stock, counting what the
    cart already holds, then write them all. Nothing is written on failure.
    """
    existing = dict(cart.items.values_list('inventory_id', 'quantity'))
    checked = []
    for inventory_id, quantity in merge_lines(lines):
        inventory = _available_inventory(inventory_id)
        new_quantity = existing.get(inventory_id, 0) + quantity
        _check_stock(inventory, new_quantity)
        checked.append((inventory, new_quantity))

    with transaction.atomic():
        for inventory, new_quantity in checked:
            CartItem.objects.update_or_create(
                cart=cart, inventory=inventory, defaults={'quantity': new_quantity}
            )
        cart.recalculate_total()


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_detail(request):
    """GET the caller's cart (created on first access); DELETE empties it"""
    cart = get_or_create_cart(request.user)

    if request.method == 'GET':
        return success_response(_cart_payload(cart), 'Cart retrieved successfully')

    cart.items.all().delete()
    cart.recalculate_total()
    return success_response(_cart_payload(cart), 'Cart cleared successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cart_count(request):
    count = CartItem.objects.filter(cart__user=request.user).aggregate(total=Sum('quantity'))['total'] or 0
    return success_response({'count': count}, 'Cart count retrieved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_add(request):
    serializer = AddToCartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    cart = get_or_create_cart(request.user)
    data = serializer.validated_data
    _add_lines(cart, [(data['inventory_id'], data['quantity'])])
    return success_response(_cart_payload(cart), 'Item added to cart successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_bulk_add(request):
    serializer = BulkAddToCartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    items = serializer.validated_data['items']
    cart = get_or_create_cart(request.user)
    _add_lines(cart, [(line['inventory_id'], line['quantity']) for line in items])
    return success_response(_cart_payload(cart), f'{len(items)} item(s) added to cart successfully')


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_detail(request, inventory_id):
    cart = get_or_create_cart(request.user)
    line = cart.items.filter(inventory_id=inventory_id).first()

    if request.method == 'PATCH':
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quantity = serializer.validated_data['quantity']
        inventory = _available_inventory(inventory_id)
        _check_stock(inventory, quantity)
        if line is None:
            raise not_found('Item not found in cart')
        line.quantity = quantity
        line.save(update_fields=['quantity', 'updated_at'])
        cart.recalculate_total()
        return success_response(_cart_payload(cart), 'Cart item updated successfully')

    if line is None:
        raise not_found('Item not found in cart')
    line.delete()
    cart.recalculate_total()
    return success_response(_cart_payload(cart), 'Item removed from cart successfully')
