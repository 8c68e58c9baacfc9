# apps/table_config/tests.py
"""
Table config app tests - per-user table preferences
"""
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.table_config.models import TableConfig

User = get_user_model()


class TableConfigTests(APITestCase):
    """Test the table-config endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='owner', password='pass123')
        self.other_user = User.objects.create_user(username='other', password='pass123')
        self.url = reverse('table-config')
        self.config = {
            'columns': ['display_name', 'email', 'city'],
            'sort': {'field': 'sort_position', 'direction': 'asc'},
            'page_size': 25,
        }

    def test_get_missing_config(self):
        """Test an unsaved table returns null"""
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url, {'table_id': 'clients'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'config': None})

    def test_get_requires_table_id(self):
        """Test table_id is mandatory"""
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('table_id', response.data['errors'])

    def test_save_and_replace(self):
        """Test the first save creates and the next one replaces"""
        self.client.force_authenticate(user=self.user)

        created = self.client.post(self.url, {'table_id': 'clients', 'config': self.config}, format='json')
        replaced = self.client.post(
            self.url, {'table_id': 'clients', 'config': {'columns': ['display_name']}}, format='json'
        )

        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(replaced.status_code, status.HTTP_200_OK)
        self.assertEqual(TableConfig.objects.filter(user=self.user).count(), 1)

        response = self.client.get(self.url, {'table_id': 'clients'})
        self.assertEqual(response.data['config'], {'columns': ['display_name']})

    def test_configs_are_per_user(self):
        """Test users never see each other's preferences"""
        TableConfig.objects.create(user=self.other_user, table_id='clients', config=self.config)
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url, {'table_id': 'clients'})

        self.assertIsNone(response.data['config'])

    def test_empty_config_rejected(self):
        """Test the config must be a non-empty object"""
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {'table_id': 'clients', 'config': {}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('config', response.data['errors'])

    def test_unauthenticated(self):
        """Test preferences require authentication"""
        response = self.client.get(self.url, {'table_id': 'clients'})

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
