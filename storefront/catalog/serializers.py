from rest_framework import serializers
from .models import Category, Item, Size, Color, ItemReview, make_slug


class CategorySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class CategorySerializer(serializers.ModelSerializer):
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    parent = CategorySummarySerializer(read_only=True)
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=120, validators=[])
    images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'images', 'parent_id', 'parent',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 2, 'max_length': 100},
            'description': {'min_length': 10},
        }

    def validate(self, attrs):
        # Slug follows the name unless given explicitly
        if not attrs.get('slug') and 'name' in attrs:
            attrs['slug'] = make_slug(attrs['name'])
        elif 'slug' in attrs and not attrs['slug']:
            attrs.pop('slug')
        return attrs


class ItemSerializer(serializers.ModelSerializer):
    category_id = serializers.IntegerField()
    category = CategorySummarySerializer(read_only=True)
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220, validators=[])
    images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    attributes = serializers.DictField(required=False)
    average_rating = serializers.SerializerMethodField()

    class Meta:
        model = Item
        fields = ['id', 'name', 'slug', 'description', 'category_id', 'category', 'image', 'images',
                  'tags', 'attributes', 'is_active', 'is_featured', 'average_rating',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'min_length': 3, 'max_length': 200},
        }

    def validate(self, attrs):
        if not attrs.get('slug') and 'name' in attrs:
            attrs['slug'] = make_slug(attrs['name'])
        elif 'slug' in attrs and not attrs['slug']:
            attrs.pop('slug')
        return attrs

    def get_average_rating(self, obj):
        # Annotated by list queries; falls back to None when absent
        value = getattr(obj, 'avg_rating', None)
        return round(value, 1) if value is not None else None


class SizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = ['id', 'name', 'code', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'name': {'validators': []}}


class ColorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Color
        fields = ['id', 'name', 'hex_code', 'rgb', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'name': {'validators': []}}


class ItemReviewSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True)

    class Meta:
        model = ItemReview
        fields = ['id', 'item', 'user', 'user_name', 'rating', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['item', 'user', 'created_at', 'updated_at']
        extra_kwargs = {
            'rating': {'min_value': 1, 'max_value': 5},
        }
