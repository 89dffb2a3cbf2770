"""
Test suite for the core module
Tests: registration, tenant isolation, role permissions, company profile,
audit logs, document numbering and data export/import/reset
"""
import os
import runpy
from datetime import date
from decimal import Decimal
from io import StringIO
from pathlib import Path
from unittest import mock

from django.core.management import call_command
from django.db import connection, transaction
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError

from iproduction.catalog.models import Product
from iproduction.core.models import Tenant, Role, CompanyProfile, AuditLog
from iproduction.core.portability import export_tenant_data
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.config import settings as settings_module
from iproduction.core.utils import MAX_PAGE_SIZE, create_audit_log, date_range_from_params, json_safe, next_document_number
from iproduction.parties.models import Customer
from iproduction.sales.models import Sale


class RegistrationTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_tenant_admin_role_and_tokens(self):
        response = self.client.post('/api/v1/auth/register/', {
            'company_name': 'Acme Garments',
            'username': 'owner',
            'email': 'owner@acme.com',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Str0ng-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['tenant']['slug'], 'acme-garments')

        tenant = Tenant.objects.get(slug='acme-garments')
        self.assertTrue(Role.objects.filter(tenant=tenant, name='Admin', permissions=['*']).exists())
        self.assertTrue(CompanyProfile.objects.filter(tenant=tenant).exists())

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'company_name': 'Acme',
            'username': 'owner',
            'email': 'owner@acme.com',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'different-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Tenant.objects.exists())

    def test_login_rejected_for_suspended_tenant(self):
        tenant = TestDataFactory.create_tenant(status='suspended')
        TestDataFactory.create_user(tenant=tenant, username='suspended_user')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'suspended_user', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TenantIsolationTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.other_tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me_reports_tenant_and_permissions(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tenant']['id'], self.tenant.id)
        self.assertEqual(response.data['permissions'], ['*'])
        self.assertFalse(response.data['is_platform_operator'])

    def test_other_tenant_records_are_not_found(self):
        foreign = TestDataFactory.create_customer(self.other_tenant)
        response = self.client.get(f'/api/v1/customers/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_user_without_tenant_is_forbidden(self):
        operator = TestDataFactory.create_user(is_superuser=True, is_staff=True)
        self.client.authenticate_user(operator)
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_operator_selects_tenant_with_header(self):
        operator = TestDataFactory.create_user(is_superuser=True, is_staff=True)
        TestDataFactory.create_customer(self.other_tenant, name='Visible')
        self.client.authenticate_user(operator)
        response = self.client.get('/api/v1/customers/', HTTP_X_TENANT_ID=str(self.other_tenant.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_tenant_endpoints_require_operator(self):
        response = self.client.get('/api/v1/tenants/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class RolePermissionTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.client = AuthenticatedAPIClient()

    def test_view_permission_allows_read_only(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['sales.view'])
        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/v1/sales/').status_code, status.HTTP_200_OK)
        customer = TestDataFactory.create_customer(self.tenant)
        response = self.client.post('/api/v1/quotations/', {'customer': customer.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_module_wildcard(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['production.*'])
        self.client.authenticate_user(user)
        self.assertEqual(self.client.get('/api/v1/productions/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/v1/accounts/').status_code, status.HTTP_403_FORBIDDEN)

    def test_role_names_unique_per_tenant(self):
        user = TestDataFactory.create_user(tenant=self.tenant)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/roles/', {'name': user.role.name, 'permissions': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_role_permissions_must_be_strings(self):
        user = TestDataFactory.create_user(tenant=self.tenant)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/roles/', {'name': 'Clerk', 'permissions': [1, 2]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_delete_own_account(self):
        user = TestDataFactory.create_user(tenant=self.tenant)
        self.client.authenticate_user(user)
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CompanyProfileAndAuditTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant(name='Acme')
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_profile_created_from_tenant_on_first_read(self):
        response = self.client.get('/api/v1/company-profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Acme')

    def test_profile_update_is_audited(self):
        response = self.client.patch('/api/v1/company-profile/', {'tax_number': 'TAX-9'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tax_number'], 'TAX-9')
        log = AuditLog.objects.get(tenant=self.tenant, model_name='CompanyProfile')
        self.assertEqual(log.action, 'update')
        self.assertEqual(log.user, self.user)

    def test_audit_log_filter_by_action(self):
        AuditLog.objects.create(tenant=self.tenant, user=self.user, action='create', model_name='Sale', object_id='1')
        AuditLog.objects.create(tenant=self.tenant, user=self.user, action='delete', model_name='Sale', object_id='1')
        AuditLog.objects.create(tenant=TestDataFactory.create_tenant(), action='create', model_name='Sale', object_id='2')
        response = self.client.get('/api/v1/audit-logs/', {'action': 'create'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_audit_log_limit_must_be_positive(self):
        for limit in ('0', '-5', 'abc'):
            response = self.client.get('/api/v1/audit-logs/', {'limit': limit})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('limit', response.data)
        AuditLog.objects.create(tenant=self.tenant, user=self.user, action='create', model_name='Sale', object_id='1')
        AuditLog.objects.create(tenant=self.tenant, user=self.user, action='create', model_name='Sale', object_id='2')
        self.assertEqual(len(self.client.get('/api/v1/audit-logs/', {'limit': '1'}).data), 1)

    def test_failed_audit_insert_leaves_transaction_usable(self):
        def broken_insert(**kwargs):
            with connection.cursor() as cursor:
                cursor.execute('SELECT * FROM table_that_does_not_exist')

        with transaction.atomic():
            with mock.patch.object(AuditLog.objects, 'create', side_effect=broken_insert):
                log = create_audit_log(user=self.user, tenant=self.tenant, action='create', model_name='Sale', object_id=1)
            self.assertIsNone(log)
            TestDataFactory.create_customer(self.tenant, name='After audit failure')
        self.assertTrue(Customer.objects.filter(tenant=self.tenant, name='After audit failure').exists())


class UtilityTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()

    def test_next_document_number_is_per_tenant_and_padded(self):
        customer = TestDataFactory.create_customer(self.tenant)
        self.assertEqual(next_document_number(Sale, self.tenant, 'invoice_no', 'INV'), 'INV-001')
        Sale.objects.create(tenant=self.tenant, invoice_no='INV-009', customer=customer, date='2024-01-01')
        Sale.objects.create(tenant=self.tenant, invoice_no='INV-manual', customer=customer, date='2024-01-01')
        self.assertEqual(next_document_number(Sale, self.tenant, 'invoice_no', 'INV'), 'INV-010')
        self.assertEqual(next_document_number(Sale, TestDataFactory.create_tenant(), 'invoice_no', 'INV'), 'INV-001')

    def test_json_safe(self):
        self.assertEqual(json_safe({'a': [Decimal('1.50'), date(2024, 1, 2)]}), {'a': ['1.50', '2024-01-02']})

    def test_settings_load_without_currency_variable(self):
        settings_path = Path(settings_module.__file__)
        with mock.patch.dict(os.environ):
            os.environ.pop('DEFAULT_CURRENCY', None)
            loaded = runpy.run_path(str(settings_path))
        self.assertEqual(loaded['DEFAULT_CURRENCY'], 'USD')

    def test_date_window_must_not_be_reversed(self):
        with self.assertRaises(ValidationError):
            date_range_from_params({'date_from': '2024-02-01', 'date_to': '2024-01-01'})
        self.assertEqual(
            date_range_from_params({'date_to': '2024-01-31'}, default_days=30),
            (date(2024, 1, 1), date(2024, 1, 31)),
        )


class PagingTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(tenant=self.tenant))
        for index in range(3):
            TestDataFactory.create_customer(self.tenant, name=f'Customer {index}')

    def test_limit_and_page_must_be_positive_integers(self):
        for params in ({'limit': '0'}, {'limit': '-1'}, {'page': 'abc'}, {'page': '0'}, {'limit': '2.5'}):
            response = self.client.get('/api/v1/sales/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, params)

    def test_limit_is_capped(self):
        response = self.client.get('/api/v1/sales/', {'limit': '100000'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page_size'], MAX_PAGE_SIZE)

    def test_page_past_the_end_returns_last_page(self):
        Sale.objects.create(tenant=self.tenant, invoice_no='INV-001', customer=Customer.objects.first(), date='2024-01-01')
        response = self.client.get('/api/v1/sales/', {'page': '99', 'limit': '1'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 1)

    def test_report_limit_must_be_positive(self):
        response = self.client.get('/api/v1/reports/customers/', {'limit': '-1'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/customers/', {'limit': '2'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class DataPortabilityTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_reset_seeds_demo_data(self):
        TestDataFactory.create_customer(self.tenant, name='Old Customer')
        response = self.client.post('/api/v1/data/reset/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted']['customers'], 1)
        self.assertEqual(response.data['seeded']['products'], 3)
        self.assertFalse(Customer.objects.filter(tenant=self.tenant, name='Old Customer').exists())
        jane = Customer.objects.get(tenant=self.tenant, name='Jane Smith')
        self.assertEqual(jane.balance, Decimal('149.95'))
        self.assertEqual(Sale.objects.get(tenant=self.tenant, invoice_no='INV-002').due, Decimal('149.95'))
        self.assertTrue(AuditLog.objects.filter(tenant=self.tenant, action='data_reset').exists())

    def test_export_then_import_restores_snapshot(self):
        self.client.post('/api/v1/data/reset/')
        snapshot = self.client.get('/api/v1/data/export/').json()
        self.assertIn('attachment', self.client.get('/api/v1/data/export/')['Content-Disposition'])
        self.assertEqual(len(snapshot['products']), 3)
        self.assertEqual(len(snapshot['sale_items']), 2)
        self.assertNotIn('tenant', snapshot['products'][0])

        Product.objects.filter(tenant=self.tenant, sku='WGT-001').update(stock=Decimal('1'))
        response = self.client.post('/api/v1/data/import/', snapshot, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['imported']['products'], 3)
        self.assertEqual(Product.objects.get(tenant=self.tenant, sku='WGT-001').stock, Decimal('150'))
        sale = Sale.objects.get(tenant=self.tenant, invoice_no='INV-001')
        self.assertEqual(sale.items.get().product.sku, 'WGT-001')

    def test_import_leaves_other_tenants_alone(self):
        other = TestDataFactory.create_tenant()
        TestDataFactory.create_customer(other, name='Foreign')
        self.client.post('/api/v1/data/import/', {'customers': []}, format='json')
        self.assertTrue(Customer.objects.filter(tenant=other, name='Foreign').exists())

    def test_malformed_import_keeps_existing_data(self):
        TestDataFactory.create_customer(self.tenant, name='Keep Me')
        payload = {
            'customers': [{'id': 1, 'name': 'Broken', 'balance': 'not-a-number'}],
        }
        response = self.client.post('/api/v1/data/import/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Customer.objects.filter(tenant=self.tenant, name='Keep Me').exists())

    def test_import_rejects_dangling_reference(self):
        payload = {
            'products': [{'id': 7, 'name': 'Orphan', 'sku': 'X-1', 'category': 99}],
        }
        response = self.client.post('/api/v1/data/import/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_import_rejects_unknown_shape(self):
        response = self.client.post('/api/v1/data/import/', {'foo': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_is_scoped_to_tenant(self):
        TestDataFactory.create_customer(TestDataFactory.create_tenant(), name='Foreign')
        data = export_tenant_data(self.tenant)
        self.assertEqual(data['customers'], [])


class ManagementCommandTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant(slug='demo-co')

    def test_seed_demo_then_refuse_without_replace(self):
        out = StringIO()
        call_command('seed_demo', '--tenant', 'demo-co', stdout=out)
        self.assertIn('Seeded demo data', out.getvalue())
        self.assertEqual(Product.objects.filter(tenant=self.tenant).count(), 3)
        with self.assertRaises(CommandError):
            call_command('seed_demo', '--tenant', 'demo-co', stdout=StringIO())

    def test_clear_tenant_data(self):
        call_command('seed_demo', '--tenant', 'demo-co', stdout=StringIO())
        call_command('clear_tenant_data', '--tenant', 'demo-co', '--confirm', stdout=StringIO())
        self.assertFalse(Product.objects.filter(tenant=self.tenant).exists())
        self.assertTrue(Tenant.objects.filter(slug='demo-co').exists())

    def test_unknown_tenant(self):
        with self.assertRaises(CommandError):
            call_command('clear_tenant_data', '--tenant', 'missing', '--confirm', stdout=StringIO())
