# apps/core/tests.py
"""
Core app tests - Testing permissions, exceptions, mixins and pagination
"""
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase, APIClient
from rest_framework import serializers
from rest_framework.exceptions import NotAuthenticated, PermissionDenied

from apps.businesses.models import Business

User = get_user_model()


class BaseTestCase(APITestCase):
    """Base test case with common setup for all tests"""

    def setUp(self):
        """Set up test users and authentication"""
        self.business = Business.objects.create(name='Test Business')

        # Create superuser
        self.superuser = User.objects.create_superuser(
            username='admin',
            email='admin@test.com',
            password='testpass123',
            first_name='Admin',
            last_name='User'
        )

        # Create admin user
        self.admin = User.objects.create_user(
            username='admin_user',
            email='admin@example.com',
            password='testpass123',
            role=User.ROLE_ADMIN,
            business=self.business
        )

        # Create member user
        self.member = User.objects.create_user(
            username='member_user',
            email='member@example.com',
            password='testpass123',
            role=User.ROLE_MEMBER,
            business=self.business
        )

        # User that has not completed the business setup
        self.newcomer = User.objects.create_user(
            username='newcomer',
            email='newcomer@example.com',
            password='testpass123'
        )

        self.client = APIClient()

    def authenticate(self, user):
        """Helper to authenticate as a specific user"""
        self.client.force_authenticate(user=user)

    def unauthenticate(self):
        """Helper to clear authentication"""
        self.client.force_authenticate(user=None)


class MockRequest:
    def __init__(self, user):
        self.user = user


class MockView:
    pass


class PermissionTests(BaseTestCase):
    """Test custom permission classes"""

    def test_is_admin_permission_with_superuser(self):
        """Test that superusers pass IsAdmin permission"""
        from apps.core.permissions import IsAdmin

        permission = IsAdmin()

        self.assertTrue(permission.has_permission(MockRequest(self.superuser), MockView()))

    def test_is_admin_permission_with_admin_role(self):
        """Test that ADMIN role users pass IsAdmin permission"""
        from apps.core.permissions import IsAdmin

        permission = IsAdmin()

        self.assertTrue(permission.has_permission(MockRequest(self.admin), MockView()))

    def test_is_admin_permission_with_member(self):
        """Test that members fail IsAdmin permission"""
        from apps.core.permissions import IsAdmin

        permission = IsAdmin()

        self.assertFalse(permission.has_permission(MockRequest(self.member), MockView()))

    def test_has_business_permission(self):
        """Test HasBusiness permission"""
        from apps.core.permissions import HasBusiness

        permission = HasBusiness()

        self.assertTrue(permission.has_permission(MockRequest(self.admin), MockView()))
        self.assertTrue(permission.has_permission(MockRequest(self.member), MockView()))
        self.assertFalse(permission.has_permission(MockRequest(self.newcomer), MockView()))


class ExceptionTests(TestCase):
    """Test custom exception classes"""

    def test_uniqueness_conflict(self):
        """Test UniquenessConflict exception"""
        from apps.core.exceptions import UniquenessConflict

        with self.assertRaises(UniquenessConflict) as context:
            raise UniquenessConflict('vat_id')

        self.assertEqual(context.exception.status_code, 409)
        self.assertEqual(context.exception.kind, 'uniqueness_conflict')
        self.assertEqual(context.exception.as_payload(), {
            'message': 'A client with this VAT id already exists',
            'field': 'vat_id',
        })

    def test_not_found_error(self):
        """Test NotFound exception has no field"""
        from apps.core.exceptions import NotFound

        error = NotFound()

        self.assertEqual(error.status_code, 404)
        self.assertEqual(error.as_payload(), {'message': 'Not found'})

    def test_reorder_mismatch_error(self):
        """Test ReorderMismatch exception points at the ids"""
        from apps.core.exceptions import ReorderMismatch

        error = ReorderMismatch()

        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.field, 'ids')

    def test_custom_message(self):
        """Test domain errors accept a custom message"""
        from apps.core.exceptions import BusinessRequired

        error = BusinessRequired("Finish the setup first")

        self.assertEqual(error.status_code, 403)
        self.assertEqual(error.message, "Finish the setup first")


class ExceptionHandlerTests(TestCase):
    """Test custom_exception_handler response bodies"""

    def handle(self, exc):
        from apps.core.exceptions import custom_exception_handler
        return custom_exception_handler(exc, {})

    def test_domain_error(self):
        """Test domain errors keep their message and field"""
        from apps.core.exceptions import UniquenessConflict

        response = self.handle(UniquenessConflict('legal_identifier'))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['field'], 'legal_identifier')

    def test_validation_error(self):
        """Test validation errors are flattened per field"""
        response = self.handle(serializers.ValidationError({
            'email': ['Enter a valid email address.'],
            'address': {'city': ['Too long.']},
        }))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'email: Enter a valid email address.')
        self.assertEqual(response.data['errors']['address.city'], ['Too long.'])

    def test_non_field_validation_error(self):
        """Test list validation errors"""
        response = self.handle(serializers.ValidationError(['Something is wrong']))

        self.assertEqual(response.data, {
            'message': 'Something is wrong',
            'errors': {'non_field_errors': ['Something is wrong']},
        })

    def test_auth_errors(self):
        """Test 401 and 403 bodies"""
        self.assertEqual(self.handle(NotAuthenticated()).data, {'message': 'Not authenticated'})
        self.assertEqual(self.handle(PermissionDenied('Nope')).data, {'message': 'Nope'})

    def test_unhandled_exception(self):
        """Test non-API exceptions are left to Django"""
        self.assertIsNone(self.handle(ValueError('boom')))


class BusinessScopedMixinTests(BaseTestCase):
    """Test BusinessScopedMixin tenant resolution"""

    def test_get_business(self):
        """Test the business comes from the authenticated user"""
        from apps.core.mixins import BusinessScopedMixin

        mixin = BusinessScopedMixin()
        mixin.request = MockRequest(self.member)

        self.assertEqual(mixin.get_business(), self.business)

    def test_get_business_without_business(self):
        """Test users without a business are refused"""
        from apps.core.exceptions import BusinessRequired
        from apps.core.mixins import BusinessScopedMixin

        mixin = BusinessScopedMixin()
        mixin.request = MockRequest(self.newcomer)

        with self.assertRaises(BusinessRequired):
            mixin.get_business()


class AddressFieldsModelTests(TestCase):
    """Test AddressFieldsModel helpers"""

    def test_address_property(self):
        """Test address collects the five columns"""
        business = Business(name='Acme', city='Madrid', country='Spain')

        self.assertEqual(business.address, {
            'street': None,
            'city': 'Madrid',
            'postal_code': None,
            'province': None,
            'country': 'Spain',
        })


class PaginationTests(BaseTestCase):
    """Test pagination classes"""

    def test_static_pagination_default_page_size(self):
        """Test StaticPagination default page size"""
        from apps.core.pagination import StaticPagination

        pagination = StaticPagination()
        self.assertEqual(pagination.page_size, 10)

    def test_static_pagination_max_page_size(self):
        """Test StaticPagination max page size"""
        from apps.core.pagination import StaticPagination

        pagination = StaticPagination()
        self.assertEqual(pagination.max_page_size, 100)
