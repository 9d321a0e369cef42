"""Audit logging and document numbering helpers"""
import logging
import string
import time

from django.db import transaction
from django.utils.crypto import get_random_string

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(action, model_name, object_id, request=None, user=None,
                     object_name=None, object_reference=None, changes=None):
    """
    Record an audit entry.

    Args:
        action: one of AuditLog.ACTION_CHOICES (stock_decrement, order_cancel, ...)
        model_name: model the entry is about, e.g. 'Inventory'
        object_id: primary key of the row
        request: DRF request, used for the acting user and IP
        user: explicit acting user when there is no request
        object_name: human-readable label (SKU, order number)
        object_reference: the order/document that caused the change
        changes: dict of before/after values

    Runs in its own savepoint so a failed insert never breaks the caller's
    transaction; failures are logged and swallowed.
    """
    if not action or not model_name or object_id is None:
        logger.warning(
            f"Audit log skipped: missing fields (action={action}, model_name={model_name}, object_id={object_id})"
        )
        return None

    if user is None and request is not None:
        user = getattr(request, 'user', None)
    if user is not None and not user.is_authenticated:
        user = None

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                user=user,
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                object_name=object_name,
                object_reference=object_reference,
                changes=changes or {},
                ip_address=get_client_ip(request),
            )
    except Exception as e:
        logger.error(f"Failed to create audit log for {model_name}#{object_id}: {e}")
        return None


def generate_document_number(prefix):
    """PREFIX-<epoch millis>-<9 random uppercase alphanumerics>, e.g. SO-1718000000000-K3J9QX2ZP"""
    suffix = get_random_string(9, allowed_chars=string.ascii_uppercase + string.digits)
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"
