# apps/businesses/tests.py
"""
Businesses app tests - business setup, edit and tenant checks
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.businesses.models import Business
from apps.businesses.serializers import BusinessSerializer

User = get_user_model()


class BusinessSerializerTests(TestCase):
    """Test BusinessSerializer validation"""

    def test_blank_optional_fields_become_null(self):
        """Test blank strings are stored as null"""
        serializer = BusinessSerializer(data={'name': '  Acme  ', 'tax_id': '', 'website': ' '})

        self.assertTrue(serializer.is_valid(), serializer.errors)
        business = serializer.save()

        self.assertEqual(business.name, 'Acme')
        self.assertIsNone(business.tax_id)
        self.assertIsNone(business.website)

    def test_name_required(self):
        """Test the business name cannot be blank"""
        serializer = BusinessSerializer(data={'name': '   '})

        self.assertFalse(serializer.is_valid())
        self.assertIn('name', serializer.errors)

    def test_editing_keeps_own_tax_id(self):
        """Test a business does not conflict with its own tax id"""
        business = Business.objects.create(name='Acme', tax_id='B123')
        serializer = BusinessSerializer(business, data={'name': 'Acme SL', 'tax_id': 'b123'})

        self.assertTrue(serializer.is_valid(), serializer.errors)


class BusinessSetupTests(APITestCase):
    """Test business setup and retrieval"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='newcomer', password='pass123', role=User.ROLE_MEMBER)
        self.url = reverse('business')

    def test_check_business_before_setup(self):
        """Test check-business for a user without a business"""
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('check-business'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'has_business': False})

    def test_get_without_business(self):
        """Test the current business is null before setup"""
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url)

        self.assertEqual(response.data, {'business': None})

    def test_setup(self):
        """Test the setup creates the business and makes the user its admin"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, {
            'name': 'Acme Holdings',
            'tax_id': 'B12345678',
            'city': 'Madrid',
            'email': '',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Acme Holdings')
        self.user.refresh_from_db()
        self.assertEqual(self.user.business.name, 'Acme Holdings')
        self.assertEqual(self.user.role, User.ROLE_ADMIN)
        self.assertIsNone(self.user.business.email)

        response = self.client.get(self.url)
        self.assertEqual(response.data['business']['name'], 'Acme Holdings')

    def test_setup_twice(self):
        """Test a user cannot create a second business"""
        self.client.force_authenticate(user=self.user)
        self.client.post(self.url, {'name': 'First'}, format='json')
        response = self.client.post(self.url, {'name': 'Second'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Business.objects.count(), 1)

    def test_setup_duplicate_tax_id(self):
        """Test tax ids are unique across businesses, case-insensitively"""
        Business.objects.create(name='Existing', tax_id='B12345678')
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {'name': 'Acme', 'tax_id': 'b12345678'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['field'], 'tax_id')
        self.user.refresh_from_db()
        self.assertIsNone(self.user.business)

    def test_setup_validation_error(self):
        """Test missing name"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, {'name': ''}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data['errors'])

    def test_unauthenticated(self):
        """Test the setup requires authentication"""
        response = self.client.post(self.url, {'name': 'Acme'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class BusinessEditTests(APITestCase):
    """Test editing the current business"""

    def setUp(self):
        self.client = APIClient()
        self.business = Business.objects.create(name='Acme', tax_id='B123')
        self.admin = User.objects.create_user(
            username='admin', password='pass123', role=User.ROLE_ADMIN, business=self.business
        )
        self.member = User.objects.create_user(
            username='member', password='pass123', role=User.ROLE_MEMBER, business=self.business
        )
        self.url = reverse('business-edit')

    def test_admin_can_edit(self):
        """Test administrators update the business"""
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.url, {'name': 'Acme SL', 'tax_id': 'B123', 'city': 'Sevilla'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.business.refresh_from_db()
        self.assertEqual(self.business.name, 'Acme SL')
        self.assertEqual(self.business.city, 'Sevilla')

    def test_member_cannot_edit(self):
        """Test members are refused"""
        self.client.force_authenticate(user=self.member)
        response = self.client.put(self.url, {'name': 'Hijacked'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.business.refresh_from_db()
        self.assertEqual(self.business.name, 'Acme')

    def test_admin_without_business(self):
        """Test an admin who skipped the setup"""
        admin = User.objects.create_user(username='lonely', password='pass123', role=User.ROLE_ADMIN)
        self.client.force_authenticate(user=admin)

        response = self.client.put(self.url, {'name': 'Acme'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
