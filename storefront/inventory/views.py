import logging

from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny

from storefront.catalog.models import Item, Size, Color
from storefront.core.exceptions import AppError, not_found
from storefront.core.pagination import paginate_queryset, apply_sorting
from storefront.core.permissions import IsAdminOrReadOnly, IsAdminRole
from storefront.core.responses import success_response, created_response
from storefront.core.utils import create_audit_log
from . import services
from .filters import InventoryFilter, PublicItemFilter
from .models import Inventory
from .serializers import InventorySerializer, StockSetSerializer, StockQuantitySerializer

logger = logging.getLogger('storefront.inventory')

INVENTORY_SORT_FIELDS = ['price', 'stock', 'sku', 'created_at', 'updated_at']
DUPLICATE_VARIANT_MESSAGE = 'Inventory item with this combination of item, size, and color already exists'


def _inventory_queryset():
    return Inventory.objects.select_related('item', 'size', 'color')


def _check_variant(data, inventory=None):
    """Referenced item/size/color must exist and the combination must be unique"""
    item_id = data.get('item_id', inventory.item_id if inventory else None)
    size_id = data.get('size_id', inventory.size_id if inventory else None)
    color_id = data.get('color_id', inventory.color_id if inventory else None)

    if not Item.objects.filter(pk=item_id).exists():
        raise not_found('Item not found')
    if not Size.objects.filter(pk=size_id).exists():
        raise not_found('Size not found')
    if not Color.objects.filter(pk=color_id).exists():
        raise not_found('Color not found')

    existing = Inventory.objects.filter(item_id=item_id, size_id=size_id, color_id=color_id)
    if inventory is not None:
        existing = existing.exclude(pk=inventory.pk)
    if existing.exists():
        raise AppError(DUPLICATE_VARIANT_MESSAGE, status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def inventory_list_create(request):
    """List inventory (search, item_id, size_id, color_id, is_active) or create a variant"""
    if request.method == 'GET':
        queryset = InventoryFilter(request.query_params, queryset=_inventory_queryset()).qs
        queryset = apply_sorting(request, queryset, INVENTORY_SORT_FIELDS)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(InventorySerializer(rows, many=True).data, 'Inventory retrieved successfully', pagination=pagination)

    serializer = InventorySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    _check_variant(serializer.validated_data)
    inventory = serializer.save()
    create_audit_log(
        action='create',
        model_name='Inventory',
        object_id=inventory.id,
        request=request,
        object_name=inventory.sku or None,
        changes={'stock': inventory.stock, 'price': str(inventory.price)},
    )
    logger.info(f"Inventory {inventory.id} created for item {inventory.item_id} with stock {inventory.stock}")
    return created_response(InventorySerializer(_inventory_queryset().get(pk=inventory.pk)).data, 'Inventory item created successfully')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def inventory_detail(request, pk):
    inventory = get_object_or_404(_inventory_queryset(), pk=pk)

    if request.method == 'GET':
        return success_response(InventorySerializer(inventory).data, 'Inventory item retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = InventorySerializer(inventory, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if {'item_id', 'size_id', 'color_id'} & set(data):
            _check_variant(data, inventory)
        new_stock = data.pop('stock', None)
        with transaction.atomic():
            # Only the submitted columns are written; stock moves through the stock service
            for field, value in data.items():
                setattr(inventory, field, value)
            inventory.save(update_fields=list(data) + ['updated_at'])
            if new_stock is not None:
                services.set_stock(inventory.pk, new_stock, request=request)
        return success_response(InventorySerializer(_inventory_queryset().get(pk=pk)).data, 'Inventory item updated successfully')

    label, stock = inventory.label, inventory.stock
    try:
        inventory.delete()
    except ProtectedError:
        raise AppError(
            'Cannot delete inventory item. It is referenced by existing orders',
            status.HTTP_400_BAD_REQUEST
        )
    create_audit_log(
        action='delete',
        model_name='Inventory',
        object_id=pk,
        request=request,
        object_name=label,
        changes={'stock': stock},
    )
    return success_response(message='Inventory item deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_by_item(request, item_id):
    if not Item.objects.filter(pk=item_id).exists():
        raise not_found('Item not found')
    queryset = apply_sorting(request, _inventory_queryset().filter(item_id=item_id), INVENTORY_SORT_FIELDS)
    rows, pagination = paginate_queryset(request, queryset)
    return success_response(InventorySerializer(rows, many=True).data, 'Inventory retrieved successfully', pagination=pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_low_stock(request):
    """Rows with stock <= threshold (default 10), lowest first"""
    try:
        threshold = int(request.query_params.get('threshold', 10))
    except (TypeError, ValueError):
        raise AppError('Threshold must be an integer', status.HTTP_400_BAD_REQUEST)
    queryset = _inventory_queryset().filter(stock__lte=threshold).order_by('stock', 'id')
    rows, pagination = paginate_queryset(request, queryset)
    return success_response(InventorySerializer(rows, many=True).data, 'Low stock items retrieved successfully', pagination=pagination)


# Stock endpoints
@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def inventory_set_stock(request, pk):
    serializer = StockSetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    previous, current = services.set_stock(pk, serializer.validated_data['stock'], request=request)
    inventory = _inventory_queryset().get(pk=pk)
    return success_response(
        InventorySerializer(inventory).data,
        f'Stock updated successfully. Previous: {previous}, Current: {current}'
    )


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def inventory_increment_stock(request, pk):
    serializer = StockQuantitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    quantity = serializer.validated_data['quantity']
    previous, current = services.increment_stock(pk, quantity, request=request)
    inventory = _inventory_queryset().get(pk=pk)
    return success_response(
        InventorySerializer(inventory).data,
        f'Stock incremented by {quantity}. Previous: {previous}, Current: {current}'
    )


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def inventory_decrement_stock(request, pk):
    serializer = StockQuantitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    quantity = serializer.validated_data['quantity']
    previous, current = services.decrement_stock(pk, quantity, request=request)
    inventory = _inventory_queryset().get(pk=pk)
    return success_response(
        InventorySerializer(inventory).data,
        f'Stock decremented by {quantity}. Previous: {previous}, Current: {current}'
    )


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_items(request):
    """Storefront listing: active variants of active items that are in stock"""
    queryset = _inventory_queryset().select_related('item__category').filter(
        is_active=True, item__is_active=True, stock__gt=0
    )
    queryset = PublicItemFilter(request.query_params, queryset=queryset).qs
    queryset = apply_sorting(request, queryset, INVENTORY_SORT_FIELDS)
    rows, pagination = paginate_queryset(request, queryset)
    return success_response(InventorySerializer(rows, many=True).data, 'Items retrieved successfully', pagination=pagination)
