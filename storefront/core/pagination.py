"""
Page/limit pagination and sortBy handling shared by every list endpoint.

    ?page=2&limit=20&sort_by=created_at&sort_order=asc
"""
import math
import re

from django.core.paginator import Paginator, EmptyPage

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_page_params(request, default_limit=DEFAULT_PAGE_SIZE):
    """Read page/limit from the query string; page >= 1, 1 <= limit <= 100"""
    page = max(_to_int(request.query_params.get('page'), 1), 1)
    limit = _to_int(request.query_params.get('limit'), default_limit)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit


def build_pagination(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': math.ceil(total / limit) if total else 0,
    }


def paginate_queryset(request, queryset, default_limit=DEFAULT_PAGE_SIZE):
    """
    Slice a queryset for the requested page.

    Returns (rows, pagination). A page past the end yields an empty list rather
    than an error, with total/totalPages still describing the full result.
    """
    page, limit = get_page_params(request, default_limit)
    paginator = Paginator(queryset, limit)
    try:
        rows = list(paginator.page(page).object_list)
    except EmptyPage:
        rows = []
    return rows, build_pagination(page, limit, paginator.count)


def _snake_case(name):
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


def apply_sorting(request, queryset, allowed_fields, default='created_at'):
    """
    Order by ?sort_by= (snake or camel case accepted) when it names an allowed
    field, falling back to the default. sort_order is asc or desc (default desc).
    """
    sort_by = request.query_params.get('sort_by') or request.query_params.get('sortBy') or default
    sort_by = _snake_case(sort_by)
    if sort_by not in allowed_fields:
        sort_by = default
    sort_order = (request.query_params.get('sort_order') or request.query_params.get('sortOrder') or 'desc').lower()
    prefix = '' if sort_order == 'asc' else '-'
    return queryset.order_by(f'{prefix}{sort_by}', f'{prefix}id')
