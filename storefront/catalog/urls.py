from django.urls import path
from .views import (
    category_list_create, category_detail, category_items, public_categories,
    item_list_create, item_detail, items_by_category, item_reviews, item_review_detail,
    size_list_create, size_detail, color_list_create, color_detail
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('categories/<int:pk>/items/', category_items, name='category-items'),

    # Item endpoints
    path('items/', item_list_create, name='item-list-create'),
    path('items/<int:pk>/', item_detail, name='item-detail'),
    path('items/category/<int:category_id>/', items_by_category, name='items-by-category'),
    path('items/<int:pk>/reviews/', item_reviews, name='item-reviews'),
    path('items/<int:pk>/reviews/<int:review_id>/', item_review_detail, name='item-review-detail'),

    # Size and color endpoints
    path('sizes/', size_list_create, name='size-list-create'),
    path('sizes/<int:pk>/', size_detail, name='size-detail'),
    path('colors/', color_list_create, name='color-list-create'),
    path('colors/<int:pk>/', color_detail, name='color-detail'),

    # Storefront (no auth)
    path('public/categories/', public_categories, name='public-categories'),
]
