"""
Tests for outlet management
"""
from django.test import TestCase
from rest_framework import status

from iproduction.core.models import AuditLog
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.outlets.models import Outlet


class OutletAPITests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_outlet(self):
        response = self.client.post('/api/v1/outlets/', {
            'name': 'Main Branch', 'code': 'MAIN', 'phone': '123-456-7890'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        outlet = Outlet.objects.get(pk=response.data['id'])
        self.assertEqual(outlet.tenant, self.tenant)
        self.assertEqual(outlet.status, 'active')
        self.assertTrue(AuditLog.objects.filter(model_name='Outlet', object_reference='MAIN').exists())

    def test_code_unique_per_tenant(self):
        TestDataFactory.create_outlet(self.tenant, code='MAIN')
        response = self.client.post('/api/v1/outlets/', {'name': 'Copy', 'code': 'main'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('code', response.data)

    def test_same_code_allowed_in_other_tenant(self):
        TestDataFactory.create_outlet(TestDataFactory.create_tenant(), code='MAIN')
        response = self.client.post('/api/v1/outlets/', {'name': 'Main', 'code': 'MAIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_filter_by_status(self):
        TestDataFactory.create_outlet(self.tenant)
        closed = TestDataFactory.create_outlet(self.tenant)
        closed.status = 'inactive'
        closed.save()
        response = self.client.get('/api/v1/outlets/', {'status': 'inactive'})
        self.assertEqual([o['id'] for o in response.data], [closed.id])

    def test_update_and_delete(self):
        outlet = TestDataFactory.create_outlet(self.tenant)
        response = self.client.patch(f'/api/v1/outlets/{outlet.id}/', {'phone': '555'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phone'], '555')
        response = self.client.delete(f'/api/v1/outlets/{outlet.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Outlet.objects.filter(pk=outlet.id).exists())

    def test_requires_outlets_permission(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['sales.*'])
        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/v1/outlets/').status_code, status.HTTP_403_FORBIDDEN)
