"""
Test suite for printable documents and document e-mail
"""
from decimal import Decimal

from django.core import mail
from django.test import TestCase
from rest_framework import status

from iproduction.catalog.models import Currency
from iproduction.core.models import AuditLog, CompanyProfile
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.documents.barcodes import code128_data_url
from iproduction.documents.renderers import currency_symbol, render_document, UnknownDocument


class DocumentRenderingTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        profile = CompanyProfile.for_tenant(self.tenant)
        profile.name = 'IProduction Company'
        profile.save()

        customer = TestDataFactory.create_customer(self.tenant, name='Jane Doe')
        supplier = TestDataFactory.create_supplier(self.tenant, name='ABC Materials')
        product = TestDataFactory.create_product(self.tenant, name='Widget A', stock=Decimal('20'))
        material = TestDataFactory.create_raw_material(self.tenant, name='Steel Sheets')
        self.sale_id = self.client.post('/api/v1/sales/', {
            'customer': customer.id, 'date': '2024-01-15',
            'items': [{'product': product.id, 'quantity': '5', 'price': '49.99'}],
        }, format='json').data['id']
        self.purchase_id = self.client.post('/api/v1/purchases/', {
            'supplier': supplier.id, 'date': '2024-01-10',
            'items': [{'raw_material': material.id, 'quantity': '100', 'price': '50.00'}],
        }, format='json').data['id']
        self.production_id = self.client.post('/api/v1/productions/', {
            'product': product.id, 'quantity': '10', 'start_date': '2024-01-15'
        }, format='json').data['id']

    def test_invoice_html(self):
        response = self.client.get(f'/api/v1/documents/invoice/{self.sale_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/html'))
        html = response.content.decode('utf-8')
        self.assertIn('INV-001', html)
        self.assertIn('Jane Doe', html)
        self.assertIn('IProduction Company', html)

    def test_invoice_uses_tenant_currency(self):
        html = self.client.get(f'/api/v1/documents/invoice/{self.sale_id}/').content.decode('utf-8')
        self.assertIn('$249.95', html)

        profile = CompanyProfile.for_tenant(self.tenant)
        profile.currency = 'EUR'
        profile.save()
        html = self.client.get(f'/api/v1/documents/invoice/{self.sale_id}/').content.decode('utf-8')
        self.assertIn('€249.95', html)

        Currency.objects.create(tenant=self.tenant, name='Euro', code='EUR', symbol='EUR€')
        html = self.client.get(f'/api/v1/documents/invoice/{self.sale_id}/').content.decode('utf-8')
        self.assertIn('EUR€249.95', html)

    def test_currency_symbol_falls_back_to_code(self):
        self.assertEqual(currency_symbol(self.tenant, 'gbp'), '£')
        self.assertEqual(currency_symbol(self.tenant, 'XYZ'), 'XYZ ')
        # Another tenant's currency record is not used
        Currency.objects.create(tenant=TestDataFactory.create_tenant(), name='Zed', code='XYZ', symbol='Z')
        self.assertEqual(currency_symbol(self.tenant, 'XYZ'), 'XYZ ')

    def test_purchase_order_html(self):
        response = self.client.get(f'/api/v1/documents/purchase-order/{self.purchase_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('PUR-001', response.content.decode('utf-8'))

    def test_challans_carry_barcode(self):
        response = self.client.get(f'/api/v1/documents/delivery-challan/{self.sale_id}/')
        html = response.content.decode('utf-8')
        self.assertIn('DC-INV-001', html)
        self.assertIn('data:image/png;base64,', html)

        response = self.client.get(f'/api/v1/documents/receipt-challan/{self.purchase_id}/')
        self.assertIn('RC-PUR-001', response.content.decode('utf-8'))
        self.assertIn('receipt-challan', response['Content-Disposition'])

    def test_production_report_html(self):
        response = self.client.get(f'/api/v1/documents/production-report/{self.production_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('PRD-001', response.content.decode('utf-8'))

    def test_financial_statement_types(self):
        for statement_type in ('trial-balance', 'balance-sheet', 'profit-loss'):
            response = self.client.get('/api/v1/documents/financial-statement/', {'type': statement_type})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/documents/financial-statement/', {'type': 'cash-flow'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_financial_statement_window_checked(self):
        response = self.client.get('/api/v1/documents/financial-statement/', {
            'type': 'profit-loss', 'start_date': '2024-03-01', 'end_date': '2024-01-31',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_tenant_document_not_found(self):
        other = TestDataFactory.create_tenant()
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(tenant=other))
        response = client.get(f'/api/v1/documents/invoice/{self.sale_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_kind(self):
        with self.assertRaises(UnknownDocument):
            render_document('packing-list', self.tenant, self.sale_id)

    def test_barcode_data_url(self):
        self.assertTrue(code128_data_url('DC-INV-001').startswith('data:image/png;base64,'))


class DocumentEmailTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        customer = TestDataFactory.create_customer(self.tenant)
        product = TestDataFactory.create_product(self.tenant, stock=Decimal('5'))
        self.sale_id = self.client.post('/api/v1/sales/', {
            'customer': customer.id, 'date': '2024-01-15',
            'items': [{'product': product.id, 'quantity': '1', 'price': '10.00'}],
        }, format='json').data['id']

    def test_email_invoice(self):
        response = self.client.post('/api/v1/documents/email/', {
            'type': 'invoice', 'id': str(self.sale_id), 'email': 'jane@example.com'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Invoice INV-001')
        self.assertEqual(mail.outbox[0].to, ['jane@example.com'])
        self.assertEqual(mail.outbox[0].alternatives[0][1], 'text/html')
        self.assertTrue(AuditLog.objects.filter(action='document_email').exists())

    def test_email_statement_with_custom_subject(self):
        response = self.client.post('/api/v1/documents/email/', {
            'type': 'financial-statement', 'id': 'profit-loss', 'email': 'owner@example.com',
            'subject': 'January P&L', 'start_date': '2024-01-01', 'end_date': '2024-01-31'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(mail.outbox[0].subject, 'January P&L')

    def test_unknown_type_and_bad_email(self):
        response = self.client.post('/api/v1/documents/email/', {
            'type': 'packing-list', 'id': '1', 'email': 'not-an-email'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('type', response.data)
        self.assertIn('email', response.data)

    def test_missing_document(self):
        response = self.client.post('/api/v1/documents/email/', {
            'type': 'invoice', 'id': '99999', 'email': 'jane@example.com'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(len(mail.outbox), 0)

    def test_module_permission_checked_per_type(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['production.*'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        response = client.post('/api/v1/documents/email/', {
            'type': 'invoice', 'id': str(self.sale_id), 'email': 'jane@example.com'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
