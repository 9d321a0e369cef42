import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import AppError
from .filters import UserFilter, AuditLogFilter
from .models import AuditLog
from .pagination import paginate_queryset
from .permissions import IsAdminRole
from .responses import success_response, created_response
from .serializers import (
    UserSerializer, RegisterSerializer, LoginSerializer, RefreshTokenSerializer,
    ProfileSerializer, ChangePasswordSerializer, UserCreateSerializer,
    UserStatusSerializer, AuditLogSerializer
)

User = get_user_model()
logger = logging.getLogger('storefront.auth')


def issue_tokens(user):
    """
    Create an access/refresh pair for a user and store the refresh token on
    the user row. Only the most recently issued refresh token is accepted.
    """
    refresh = RefreshToken.for_user(user)
    refresh['email'] = user.email
    refresh['role'] = user.role
    user.refresh_token = str(refresh)
    user.refresh_token_expiry = timezone.now() + jwt_settings.REFRESH_TOKEN_LIFETIME
    user.save(update_fields=['refresh_token', 'refresh_token_expiry', 'updated_at'])
    return str(refresh.access_token), str(refresh)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    return Response({
        'success': True,
        'message': 'Server is running',
        'timestamp': timezone.now().isoformat(),
    })


@api_view(['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
@authentication_classes([])
@permission_classes([AllowAny])
def route_not_found(request):
    raise AppError(f"Route {request.path} not found", status.HTTP_404_NOT_FOUND)


# Auth views
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register(request):
    """Create a user account and return tokens"""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if User.objects.filter(email__iexact=data['email']).exists():
        raise AppError('User already exists with this email', status.HTTP_400_BAD_REQUEST)

    user = User.objects.create_user(
        email=data['email'],
        password=data['password'],
        name=data['name'],
        role=User.ROLE_USER,
    )
    token, refresh_token = issue_tokens(user)
    logger.info(f"Registered user {user.id} ({user.email})")
    return created_response({
        'user': UserSerializer(user).data,
        'token': token,
        'refresh_token': refresh_token,
    }, 'User registered successfully')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email'].strip().lower()

    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        raise AppError('Invalid credentials', status.HTTP_401_UNAUTHORIZED)
    if not user.is_active:
        raise AppError('Your account has been deactivated', status.HTTP_403_FORBIDDEN)
    if not user.check_password(serializer.validated_data['password']):
        raise AppError('Invalid Password', status.HTTP_401_UNAUTHORIZED)

    token, refresh_token = issue_tokens(user)
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    return success_response({
        'user': UserSerializer(user).data,
        'token': token,
        'refresh_token': refresh_token,
    }, 'Login successful')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def token_refresh(request):
    """Exchange the stored refresh token for a new pair (the old one stops working)"""
    serializer = RefreshTokenSerializer(data=request.data)
    if not serializer.is_valid():
        raise AppError('Refresh token is required', status.HTTP_400_BAD_REQUEST)
    raw_token = serializer.validated_data['refresh_token']

    # Decoded unverified; only the exact stored token passes, and its expiry is checked below
    try:
        token = RefreshToken(raw_token, verify=False)
    except TokenError:
        raise AppError('Invalid refresh token', status.HTTP_401_UNAUTHORIZED)

    user = User.objects.filter(pk=token.get(jwt_settings.USER_ID_CLAIM)).first()
    if user is None:
        raise AppError('User not found', status.HTTP_404_NOT_FOUND)
    if not user.is_active:
        raise AppError('User account is deactivated', status.HTTP_403_FORBIDDEN)
    if not user.refresh_token or user.refresh_token != raw_token:
        raise AppError('Invalid refresh token', status.HTTP_401_UNAUTHORIZED)
    if user.refresh_token_expiry and user.refresh_token_expiry < timezone.now():
        raise AppError('Refresh token expired', status.HTTP_401_UNAUTHORIZED)

    access, new_refresh = issue_tokens(user)
    return success_response({
        'token': access,
        'refresh_token': new_refresh,
    }, 'Token refreshed successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    user = request.user
    user.refresh_token = None
    user.refresh_token_expiry = None
    user.save(update_fields=['refresh_token', 'refresh_token_expiry', 'updated_at'])
    return success_response(message='Logged out successfully')


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    if request.method == 'GET':
        return success_response(UserSerializer(request.user).data, 'User profile retrieved successfully')

    serializer = ProfileSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    return success_response(UserSerializer(user).data, 'Profile updated successfully')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data)
    if not serializer.is_valid():
        raise AppError('Current password and new password are required', status.HTTP_400_BAD_REQUEST)
    current_password = serializer.validated_data['current_password']
    new_password = serializer.validated_data['new_password']

    if len(new_password) < 6:
        raise AppError('New password must be at least 6 characters', status.HTTP_400_BAD_REQUEST)

    user = request.user
    if not user.check_password(current_password):
        raise AppError('Current password is incorrect', status.HTTP_401_UNAUTHORIZED)

    user.set_password(new_password)
    user.save()
    logger.info(f"User {user.id} changed password")
    return success_response(message='Password changed successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def auth_user_list(request):
    users = User.objects.all().order_by('-created_at')
    return success_response(UserSerializer(users, many=True).data, 'Users retrieved successfully')


# User management views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List users (paginated, filterable) or create one"""
    if request.method == 'GET':
        queryset = UserFilter(request.query_params, queryset=User.objects.all().order_by('-created_at')).qs
        rows, pagination = paginate_queryset(request, queryset)
        return success_response(UserSerializer(rows, many=True).data, 'Users retrieved successfully', pagination=pagination)

    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    return created_response(UserSerializer(user).data, 'User created successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_status(request, pk):
    user = get_object_or_404(User, pk=pk)
    serializer = UserStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user.is_active = serializer.validated_data['is_active']
    if not user.is_active:
        # Deactivation also revokes the stored refresh token
        user.refresh_token = None
        user.refresh_token_expiry = None
    user.save()
    return success_response(UserSerializer(user).data, 'User status updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    queryset = AuditLog.objects.select_related('user').all()
    queryset = AuditLogFilter(request.query_params, queryset=queryset).qs
    rows, pagination = paginate_queryset(request, queryset, default_limit=50)
    return success_response(AuditLogSerializer(rows, many=True).data, 'Audit logs retrieved successfully', pagination=pagination)
