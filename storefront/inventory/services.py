"""
Stock service: the only place inventory stock is written.

Every movement is a single guarded UPDATE so concurrent requests cannot lose
an update or drive stock below zero:

    decrement:  UPDATE inventory SET stock = stock - n WHERE id = ? AND stock >= n
    increment:  UPDATE inventory SET stock = stock + n WHERE id = ?

Callers that pair stock changes with order writes wrap both in
transaction.atomic(); an AppError raised here rolls the whole unit back.
"""
import logging
from collections import OrderedDict

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status

from storefront.core.exceptions import AppError, not_found
from storefront.core.utils import create_audit_log
from .models import Inventory

logger = logging.getLogger('storefront.inventory')


def _current_stock(inventory_id):
    return Inventory.objects.values_list('stock', flat=True).get(pk=inventory_id)


def _audit(action, inventory_id, previous, current, request=None, reference=None, label=None):
    create_audit_log(
        action=action,
        model_name='Inventory',
        object_id=inventory_id,
        request=request,
        object_name=label,
        object_reference=reference,
        changes={'previous_stock': previous, 'current_stock': current, 'delta': current - previous},
    )


def decrement_stock(inventory_id, quantity, request=None, reference=None):
    """
    Remove quantity units from an inventory row.

    Returns (previous, current). Raises AppError 400 when stock is short and
    404 when the row does not exist; stock is untouched in both cases.
    """
    if quantity <= 0:
        raise AppError('Quantity must be greater than 0', status.HTTP_400_BAD_REQUEST)

    updated = Inventory.objects.filter(pk=inventory_id, stock__gte=quantity).update(
        stock=F('stock') - quantity, updated_at=timezone.now()
    )
    if not updated:
        inventory = Inventory.objects.filter(pk=inventory_id).only('stock').first()
        if inventory is None:
            raise not_found('Inventory item not found')
        raise AppError(
            f'Cannot decrement stock by {quantity}. Current stock: {inventory.stock}. Insufficient stock.',
            status.HTTP_400_BAD_REQUEST
        )

    current = _current_stock(inventory_id)
    previous = current + quantity
    logger.info(f"Stock decremented: inventory={inventory_id} delta=-{quantity} stock={current} ref={reference}")
    _audit('stock_decrement', inventory_id, previous, current, request, reference)
    return previous, current


def increment_stock(inventory_id, quantity, request=None, reference=None):
    """Add quantity units to an inventory row. Returns (previous, current)."""
    if quantity <= 0:
        raise AppError('Quantity must be greater than 0', status.HTTP_400_BAD_REQUEST)

    updated = Inventory.objects.filter(pk=inventory_id).update(
        stock=F('stock') + quantity, updated_at=timezone.now()
    )
    if not updated:
        raise not_found('Inventory item not found')

    current = _current_stock(inventory_id)
    previous = current - quantity
    logger.info(f"Stock incremented: inventory={inventory_id} delta=+{quantity} stock={current} ref={reference}")
    _audit('stock_increment', inventory_id, previous, current, request, reference)
    return previous, current


@transaction.atomic
def set_stock(inventory_id, value, request=None, reference=None):
    """Overwrite the stock count (manual stock take). Returns (previous, current)."""
    if value < 0:
        raise AppError('Stock cannot be negative', status.HTTP_400_BAD_REQUEST)

    inventory = Inventory.objects.select_for_update().filter(pk=inventory_id).first()
    if inventory is None:
        raise not_found('Inventory item not found')
    previous = inventory.stock
    Inventory.objects.filter(pk=inventory_id).update(stock=value, updated_at=timezone.now())
    logger.info(f"Stock set: inventory={inventory_id} {previous} -> {value} ref={reference}")
    _audit('stock_set', inventory_id, previous, value, request, reference, inventory.sku or None)
    return previous, value


def merge_lines(lines):
    """Collapse (inventory_id, quantity) pairs so each inventory appears once"""
    merged = OrderedDict()
    for inventory_id, quantity in lines:
        merged[inventory_id] = merged.get(inventory_id, 0) + quantity
    return list(merged.items())


def check_availability(lines):
    """
    Validate that every line can be fulfilled before anything is written.

    lines: iterable of (inventory_id, quantity). Returns {id: Inventory}.
    Raises 400 for inactive rows, non-positive quantities or short stock,
    404 for missing rows.
    """
    merged = merge_lines(lines)
    inventories = Inventory.objects.select_related('item', 'size', 'color').in_bulk([i for i, _ in merged])
    for inventory_id, quantity in merged:
        if quantity < 1:
            raise AppError('Quantity must be at least 1', status.HTTP_400_BAD_REQUEST)
        inventory = inventories.get(inventory_id)
        if inventory is None:
            raise not_found(f'Inventory item {inventory_id} not found')
        if not inventory.is_active or not inventory.item.is_active:
            raise AppError(f'{inventory.label} is not available', status.HTTP_400_BAD_REQUEST)
        if inventory.stock < quantity:
            raise AppError(
                f'Insufficient stock for {inventory.label}. Available: {inventory.stock}, Requested: {quantity}',
                status.HTTP_400_BAD_REQUEST
            )
    return inventories


@transaction.atomic
def reserve_items(lines, request=None, reference=None):
    """
    Check and then decrement stock for a set of order lines as one unit.
    A concurrent sale that wins the race makes the guarded decrement fail,
    which raises and rolls back every decrement already applied.
    """
    inventories = check_availability(lines)
    for inventory_id, quantity in merge_lines(lines):
        try:
            decrement_stock(inventory_id, quantity, request=request, reference=reference)
        except AppError as e:
            if e.status_code != status.HTTP_400_BAD_REQUEST:
                raise
            inventory = inventories[inventory_id]
            available = _current_stock(inventory_id)
            raise AppError(
                f'Insufficient stock for {inventory.label}. Available: {available}, Requested: {quantity}',
                status.HTTP_400_BAD_REQUEST
            )
    return inventories


@transaction.atomic
def release_items(lines, request=None, reference=None):
    """Return stock for order lines being cancelled, deleted or replaced"""
    for inventory_id, quantity in merge_lines(lines):
        if quantity > 0:
            increment_stock(inventory_id, quantity, request=request, reference=reference)
