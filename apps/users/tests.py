# apps/users/tests.py
"""
Users app tests - Testing user models, authentication, and the current user endpoint
"""
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from apps.businesses.models import Business
from apps.users.serializers import UserSerializer

User = get_user_model()


class UserModelTests(TestCase):
    """Test CustomUser model"""

    def test_create_user(self):
        """Test creating a regular user"""
        user = User.objects.create_user(
            username='testuser',
            email='test@example.com',
            password='testpass123'
        )

        self.assertEqual(user.username, 'testuser')
        self.assertEqual(user.email, 'test@example.com')
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)
        self.assertFalse(user.has_business)

    def test_create_superuser(self):
        """Test creating a superuser"""
        user = User.objects.create_superuser(
            username='admin',
            email='admin@example.com',
            password='adminpass123'
        )

        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_admin())

    def test_user_role_methods(self):
        """Test user role checking methods"""
        admin = User.objects.create_user(
            username='admin',
            password='pass',
            role=User.ROLE_ADMIN
        )

        member = User.objects.create_user(
            username='member',
            password='pass',
            role=User.ROLE_MEMBER
        )

        self.assertTrue(admin.is_admin())
        self.assertFalse(admin.is_member())

        self.assertFalse(member.is_admin())
        self.assertTrue(member.is_member())

    def test_user_with_business(self):
        """Test attaching a user to a business"""
        business = Business.objects.create(name='Acme Holdings')
        user = User.objects.create_user(
            username='fulluser',
            email='full@example.com',
            password='pass123',
            first_name='John',
            last_name='Doe',
            phone_number='0555123456',
            business=business
        )

        self.assertTrue(user.has_business)
        self.assertEqual(list(business.users.all()), [user])

    def test_business_deletion_detaches_users(self):
        """Test deleting a business keeps its users"""
        business = Business.objects.create(name='Acme Holdings')
        user = User.objects.create_user(username='owner', password='pass123', business=business)

        business.delete()
        user.refresh_from_db()

        self.assertIsNone(user.business)


class UserSerializerTests(TestCase):
    """Test UserSerializer"""

    def test_business_name(self):
        """Test the business name is exposed alongside the id"""
        business = Business.objects.create(name='Acme Holdings')
        user = User.objects.create_user(username='owner', password='pass123', business=business)

        data = UserSerializer(user).data

        self.assertEqual(data['business'], business.id)
        self.assertEqual(data['business_name'], 'Acme Holdings')

    def test_without_business(self):
        """Test users without a business"""
        user = User.objects.create_user(username='newcomer', password='pass123')

        data = UserSerializer(user).data

        self.assertIsNone(data['business'])
        self.assertIsNone(data['business_name'])


class CurrentUserTests(APITestCase):
    """Test the authentication endpoints"""

    def setUp(self):
        """Set up test data"""
        self.client = APIClient()
        self.business = Business.objects.create(name='Acme Holdings')
        self.user = User.objects.create_user(
            username='owner',
            password='pass123',
            business=self.business
        )

    def test_me(self):
        """Test the current user includes the business"""
        self.client.force_authenticate(user=self.user)
        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'owner')
        self.assertEqual(response.data['business_name'], 'Acme Holdings')

    def test_me_unauthenticated(self):
        """Test the current user requires authentication"""
        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_jwt_login(self):
        """Test obtaining a token pair and using it"""
        response = self.client.post(
            '/api/jwt/create/',
            {'username': 'owner', 'password': 'pass123'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get('/api/check-business/')
        self.assertEqual(response.data, {'has_business': True})

    def test_jwt_login_wrong_password(self):
        """Test bad credentials are refused"""
        response = self.client.post(
            '/api/jwt/create/',
            {'username': 'owner', 'password': 'wrong'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
