"""
Tests for auth, user management, audit logs, pagination and the error envelope
"""
from datetime import timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from storefront.core.exceptions import api_exception_handler
from storefront.core.models import AuditLog
from storefront.core.pagination import build_pagination
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.utils import create_audit_log, generate_document_number


class AuthAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_register_creates_user_role_and_returns_tokens(self):
        response = self.client.post('/api/auth/register/', {
            'name': 'New Shopper',
            'email': 'Shopper@Example.com',
            'password': 'secret123',
            'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['user']['email'], 'shopper@example.com')
        self.assertEqual(data['user']['role'], 'user')
        self.assertTrue(data['token'])
        self.assertTrue(data['refresh_token'])

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@test.com')
        response = self.client.post('/api/auth/register/', {
            'name': 'Someone', 'email': 'taken@test.com', 'password': 'secret123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'User already exists with this email')

    def test_login_wrong_password(self):
        TestDataFactory.create_user(email='login@test.com')
        response = self.client.post('/api/auth/login/', {
            'email': 'login@test.com', 'password': 'wrong-pass'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid Password')

    def test_login_deactivated_account(self):
        user = TestDataFactory.create_user(email='inactive@test.com')
        user.is_active = False
        user.save()
        response = self.client.post('/api/auth/login/', {
            'email': 'inactive@test.com', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_refresh_rotates_token(self):
        TestDataFactory.create_user(email='rotate@test.com')
        login = self.client.post('/api/auth/login/', {
            'email': 'rotate@test.com', 'password': 'testpass123'
        }, format='json')
        old_refresh = login.data['data']['refresh_token']

        response = self.client.post('/api/auth/refresh/', {'refresh_token': old_refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotEqual(response.data['data']['refresh_token'], old_refresh)

        # The previous refresh token is no longer the stored one
        response = self.client.post('/api/auth/refresh/', {'refresh_token': old_refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_requires_token(self):
        response = self.client.post('/api/auth/refresh/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Refresh token is required')

    def test_refresh_with_expired_token(self):
        user = TestDataFactory.create_user(email='stale@test.com')
        refresh = RefreshToken.for_user(user)
        refresh.set_exp(lifetime=-timedelta(minutes=1))
        user.refresh_token = str(refresh)
        user.refresh_token_expiry = timezone.now() - timedelta(minutes=1)
        user.save()

        response = self.client.post('/api/auth/refresh/', {'refresh_token': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Refresh token expired')

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/auth/refresh/', {'refresh_token': 'not-a-jwt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid refresh token')

    def test_logout_revokes_refresh_token(self):
        user = TestDataFactory.create_user(email='bye@test.com')
        login = self.client.post('/api/auth/login/', {
            'email': 'bye@test.com', 'password': 'testpass123'
        }, format='json')
        refresh_token = login.data['data']['refresh_token']
        self.client.authenticate_user(user)
        self.assertEqual(self.client.post('/api/auth/logout/').status_code, status.HTTP_200_OK)

        self.client.logout()
        response = self.client.post('/api/auth/refresh/', {'refresh_token': refresh_token}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_change_password(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.put('/api/auth/change-password/', {
            'current_password': 'testpass123', 'new_password': 'newpass456'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('newpass456'))

    def test_change_password_too_short(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.put('/api/auth/change-password/', {
            'current_password': 'testpass123', 'new_password': '123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_requires_auth(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])


class UserManagementTests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_non_admin_cannot_list_users(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_list_pagination(self):
        for _ in range(4):
            TestDataFactory.create_user()
        response = self.client.get('/api/users/?page=2&limit=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination'], {'page': 2, 'limit': 2, 'total': 5, 'totalPages': 3})
        self.assertEqual(len(response.data['data']), 2)

    def test_deactivate_user(self):
        user = TestDataFactory.create_user()
        response = self.client.patch(f'/api/users/{user.id}/status/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)
        self.assertIsNone(user.refresh_token)

    def test_audit_log_list(self):
        create_audit_log(action='create', model_name='Inventory', object_id=1, user=self.admin)
        response = self.client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['limit'], 50)
        self.assertEqual(response.data['data'][0]['model_name'], 'Inventory')


class ErrorEnvelopeTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_unknown_route(self):
        response = self.client.get('/api/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {
            'success': False,
            'message': 'Route /api/does-not-exist/ not found',
            'error': 'Route /api/does-not-exist/ not found',
            'statusCode': 404,
        })

    def test_validation_error_shape(self):
        response = self.client.post('/api/auth/register/', {'email': 'not-an-email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['message'], 'Validation failed')
        self.assertEqual(response.data['statusCode'], 400)
        self.assertIn('email', response.data['errors'])

    def test_health(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

    def test_health_without_trailing_slash(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Server is running')

    def test_routes_without_trailing_slash(self):
        user = TestDataFactory.create_user(email='noslash@test.com')
        response = self.client.post('/api/auth/login', {
            'email': 'noslash@test.com', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/inventory').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/auth/me').status_code, status.HTTP_200_OK)

    def test_unknown_route_without_trailing_slash(self):
        response = self.client.get('/api/does-not-exist')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Route /api/does-not-exist not found')

    def test_unhandled_error_hides_details(self):
        response = api_exception_handler(RuntimeError('relation "secret_table" does not exist'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {
            'success': False,
            'message': 'Internal Server Error',
            'error': 'Internal Server Error',
            'statusCode': 500,
        })


class HelperTests(TestCase):
    def test_total_pages_rounds_up(self):
        self.assertEqual(build_pagination(1, 10, 21)['totalPages'], 3)
        self.assertEqual(build_pagination(1, 10, 20)['totalPages'], 2)

    def test_total_pages_zero_when_empty(self):
        self.assertEqual(build_pagination(1, 10, 0)['totalPages'], 0)

    def test_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(action='', model_name='Inventory', object_id=1))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_document_number_format(self):
        number = generate_document_number('SO')
        prefix, millis, suffix = number.split('-')
        self.assertEqual(prefix, 'SO')
        self.assertTrue(millis.isdigit())
        self.assertRegex(suffix, r'^[A-Z0-9]{9}$')
        self.assertNotEqual(number, generate_document_number('SO'))
