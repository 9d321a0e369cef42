import logging

from django.db.models import Avg
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny

from storefront.core.cache_utils import (
    get_cached, set_cached, invalidate_cache_prefix,
    PUBLIC_CATEGORIES_PREFIX, PUBLIC_CATEGORIES_CACHE_TTL
)
from storefront.core.exceptions import AppError, not_found
from storefront.core.pagination import paginate_queryset, apply_sorting, get_page_params
from storefront.core.permissions import IsAdminOrReadOnly, can_access
from storefront.core.responses import success_response, created_response
from .filters import CategoryFilter, ItemFilter, SizeFilter, ColorFilter
from .models import Category, Item, Size, Color, ItemReview
from .serializers import (
    CategorySerializer, ItemSerializer, SizeSerializer, ColorSerializer, ItemReviewSerializer
)

logger = logging.getLogger('storefront.catalog')

CATEGORY_SORT_FIELDS = ['name', 'slug', 'created_at', 'updated_at']
ITEM_SORT_FIELDS = ['name', 'slug', 'created_at', 'updated_at', 'is_featured']


def _check_parent(parent_id, category=None):
    if parent_id is None:
        return
    if category is not None and parent_id == category.id:
        raise AppError('Category cannot be its own parent', status.HTTP_400_BAD_REQUEST)
    if not Category.objects.filter(pk=parent_id).exists():
        raise not_found('Parent category not found')


def _check_category_slug(slug, category=None):
    if not slug:
        return
    existing = Category.objects.filter(slug=slug)
    if category is not None:
        existing = existing.exclude(pk=category.pk)
    if existing.exists():
        raise AppError('Category with this slug already exists', status.HTTP_400_BAD_REQUEST)


def _items_queryset():
    return Item.objects.select_related('category').annotate(avg_rating=Avg('reviews__rating'))


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def category_list_create(request):
    """List categories (search, is_active, parent_id) or create one"""
    if request.method == 'GET':
        queryset = CategoryFilter(request.query_params, queryset=Category.objects.select_related('parent')).qs
        queryset = apply_sorting(request, queryset, CATEGORY_SORT_FIELDS)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(CategorySerializer(rows, many=True).data, 'Categories retrieved successfully', pagination=pagination)

    serializer = CategorySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    _check_parent(serializer.validated_data.get('parent_id'))
    _check_category_slug(serializer.validated_data.get('slug'))
    category = serializer.save()
    invalidate_cache_prefix(PUBLIC_CATEGORIES_PREFIX)
    logger.info(f"Category {category.id} created ({category.slug})")
    return created_response(CategorySerializer(category).data, 'Category created successfully')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def category_detail(request, pk):
    category = get_object_or_404(Category.objects.select_related('parent'), pk=pk)

    if request.method == 'GET':
        return success_response(CategorySerializer(category).data, 'Category retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        if 'parent_id' in serializer.validated_data:
            _check_parent(serializer.validated_data['parent_id'], category)
        _check_category_slug(serializer.validated_data.get('slug'), category)
        category = serializer.save()
        invalidate_cache_prefix(PUBLIC_CATEGORIES_PREFIX)
        return success_response(CategorySerializer(category).data, 'Category updated successfully')

    item_count = category.items.count()
    if item_count:
        raise AppError(
            f'Cannot delete category. It has {item_count} item(s)',
            status.HTTP_400_BAD_REQUEST
        )
    category.delete()
    invalidate_cache_prefix(PUBLIC_CATEGORIES_PREFIX)
    return success_response(message='Category deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_items(request, pk):
    """A category together with a page of its items"""
    category = get_object_or_404(Category, pk=pk)
    queryset = apply_sorting(request, _items_queryset().filter(category=category), ITEM_SORT_FIELDS)
    rows, pagination = paginate_queryset(request, queryset)
    return success_response({
        'category': CategorySerializer(category).data,
        'items': ItemSerializer(rows, many=True).data,
    }, 'Category with items retrieved successfully', pagination=pagination)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_categories(request):
    """Active categories for the storefront; cached"""
    page, limit = get_page_params(request, default_limit=50)
    cached_data, cache_key = get_cached(PUBLIC_CATEGORIES_PREFIX, page, limit)
    if cached_data is not None:
        return success_response(cached_data['data'], 'Categories retrieved successfully', pagination=cached_data['pagination'])

    queryset = Category.objects.filter(is_active=True).select_related('parent').order_by('name')
    rows, pagination = paginate_queryset(request, queryset, default_limit=50)
    data = CategorySerializer(rows, many=True).data
    set_cached(cache_key, {'data': data, 'pagination': pagination}, PUBLIC_CATEGORIES_CACHE_TTL)
    return success_response(data, 'Categories retrieved successfully', pagination=pagination)


# Item views
def _check_item_refs(validated_data, item=None):
    if 'category_id' in validated_data and not Category.objects.filter(pk=validated_data['category_id']).exists():
        raise not_found('Category not found')
    slug = validated_data.get('slug')
    if slug:
        existing = Item.objects.filter(slug=slug)
        if item is not None:
            existing = existing.exclude(pk=item.pk)
        if existing.exists():
            raise AppError('Item with this slug already exists', status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def item_list_create(request):
    if request.method == 'GET':
        queryset = ItemFilter(request.query_params, queryset=_items_queryset()).qs
        queryset = apply_sorting(request, queryset, ITEM_SORT_FIELDS)
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(ItemSerializer(rows, many=True).data, 'Items retrieved successfully', pagination=pagination)

    serializer = ItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    _check_item_refs(serializer.validated_data)
    item = serializer.save()
    logger.info(f"Item {item.id} created ({item.slug})")
    return created_response(ItemSerializer(_items_queryset().get(pk=item.pk)).data, 'Item created successfully')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def item_detail(request, pk):
    item = get_object_or_404(_items_queryset(), pk=pk)

    if request.method == 'GET':
        return success_response(ItemSerializer(item).data, 'Item retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = ItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        _check_item_refs(serializer.validated_data, item)
        serializer.save()
        return success_response(ItemSerializer(_items_queryset().get(pk=pk)).data, 'Item updated successfully')

    variant_count = item.inventory_variants.count()
    if variant_count:
        raise AppError(
            f'Cannot delete item. It has {variant_count} inventory variant(s)',
            status.HTTP_400_BAD_REQUEST
        )
    item.delete()
    return success_response(message='Item deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def items_by_category(request, category_id):
    if not Category.objects.filter(pk=category_id).exists():
        raise not_found('Category not found')
    queryset = apply_sorting(request, _items_queryset().filter(category_id=category_id), ITEM_SORT_FIELDS)
    rows, pagination = paginate_queryset(request, queryset)
    return success_response(ItemSerializer(rows, many=True).data, 'Items retrieved successfully', pagination=pagination)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def item_reviews(request, pk):
    item = get_object_or_404(Item, pk=pk)

    if request.method == 'GET':
        queryset = item.reviews.select_related('user').all()
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(ItemReviewSerializer(rows, many=True).data, 'Reviews retrieved successfully', pagination=pagination)

    if ItemReview.objects.filter(item=item, user=request.user).exists():
        raise AppError('You have already reviewed this item', status.HTTP_400_BAD_REQUEST)
    serializer = ItemReviewSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    review = serializer.save(item=item, user=request.user)
    return created_response(ItemReviewSerializer(review).data, 'Review added successfully')


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def item_review_detail(request, pk, review_id):
    review = get_object_or_404(ItemReview.objects.select_related('user'), pk=review_id, item_id=pk)
    if not can_access(request.user, review.user_id):
        raise AppError('Not authorized to modify this review', status.HTTP_403_FORBIDDEN)

    if request.method == 'PUT':
        serializer = ItemReviewSerializer(review, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        review = serializer.save()
        return success_response(ItemReviewSerializer(review).data, 'Review updated successfully')

    review.delete()
    return success_response(message='Review deleted successfully')


# Size and color views
def _check_unique_name(model, name, label, instance=None):
    existing = model.objects.filter(name__iexact=name)
    if instance is not None:
        existing = existing.exclude(pk=instance.pk)
    if existing.exists():
        raise AppError(f'{label} name already exists', status.HTTP_400_BAD_REQUEST)


def _named_list_create(request, model, serializer_class, filter_class, label):
    if request.method == 'GET':
        queryset = filter_class(request.query_params, queryset=model.objects.all()).qs
        queryset = apply_sorting(request, queryset, ['name', 'created_at'], default='name')
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(serializer_class(rows, many=True).data, f'{label}s retrieved successfully', pagination=pagination)

    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    _check_unique_name(model, serializer.validated_data['name'], label)
    obj = serializer.save()
    return created_response(serializer_class(obj).data, f'{label} created successfully')


def _named_detail(request, pk, model, serializer_class, label, usage_field):
    obj = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return success_response(serializer_class(obj).data, f'{label} retrieved successfully')

    if request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(obj, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        if 'name' in serializer.validated_data:
            _check_unique_name(model, serializer.validated_data['name'], label, obj)
        obj = serializer.save()
        return success_response(serializer_class(obj).data, f'{label} updated successfully')

    in_use = getattr(obj, usage_field).count()
    if in_use:
        raise AppError(
            f'Cannot delete {label.lower()}. It is used by {in_use} inventory variant(s)',
            status.HTTP_400_BAD_REQUEST
        )
    obj.delete()
    return success_response(message=f'{label} deleted successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def size_list_create(request):
    return _named_list_create(request, Size, SizeSerializer, SizeFilter, 'Size')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def size_detail(request, pk):
    return _named_detail(request, pk, Size, SizeSerializer, 'Size', 'inventory_variants')


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def color_list_create(request):
    return _named_list_create(request, Color, ColorSerializer, ColorFilter, 'Color')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def color_detail(request, pk):
    return _named_detail(request, pk, Color, ColorSerializer, 'Color', 'inventory_variants')
