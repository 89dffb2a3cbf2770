"""
Test suite for the reports module
Tests: period reports, CSV export, production efficiency, dashboard caching
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.production.models import Production, ProductionLoss
from iproduction.sales.models import Sale


class ReportsTests(TestCase):
    """Test report endpoints"""

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        self.customer = TestDataFactory.create_customer(self.tenant, name='Jane Doe')
        self.supplier = TestDataFactory.create_supplier(self.tenant, name='ABC Materials')
        self.product = TestDataFactory.create_product(self.tenant, name='Widget A', stock=Decimal('100'))
        self.material = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('5'), min_stock=Decimal('10'))
        for date, paid in (('2024-01-15', '100.00'), ('2024-01-15', '0'), ('2024-03-01', '0')):
            self.client.post('/api/v1/sales/', {
                'customer': self.customer.id, 'date': date, 'paid': paid,
                'items': [{'product': self.product.id, 'quantity': '2', 'price': '50.00'}],
            }, format='json')
        self.client.post('/api/v1/purchases/', {
            'supplier': self.supplier.id, 'date': '2024-01-10',
            'items': [{'raw_material': self.material.id, 'quantity': '10', 'price': '20.00'}],
        }, format='json')
        self.january = {'date_from': '2024-01-01', 'date_to': '2024-01-31'}

    def test_sales_report(self):
        """Totals and daily breakdown for the period"""
        response = self.client.get('/api/v1/reports/sales/', self.january)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['invoice_count'], 2)
        self.assertEqual(Decimal(summary['total_sales']), Decimal('200'))
        self.assertEqual(Decimal(summary['total_due']), Decimal('100'))
        self.assertEqual(Decimal(summary['avg_invoice_value']), Decimal('100.00'))
        self.assertEqual(len(response.data['daily_breakdown']), 1)
        self.assertEqual(response.data['period'], {'from': '2024-01-01', 'to': '2024-01-31'})

    def test_sales_report_csv(self):
        """?export=csv returns the rows as a CSV attachment"""
        response = self.client.get('/api/v1/reports/sales/', {**self.january, 'export': 'csv'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn('attachment;', response['Content-Disposition'])
        content = response.content.decode('utf-8')
        self.assertTrue(content.startswith('\ufeff'))
        lines = content.lstrip('\ufeff').strip().splitlines()
        self.assertEqual(lines[0], 'Invoice,Date,Customer,Subtotal,Tax,Total,Paid,Due,Status')
        self.assertEqual(len(lines), 3)

    def test_purchases_report(self):
        """Purchase totals for the period"""
        response = self.client.get('/api/v1/reports/purchases/', self.january)
        self.assertEqual(response.data['summary']['purchase_count'], 1)
        self.assertEqual(Decimal(response.data['summary']['total_due']), Decimal('200'))

    def test_inventory_report_flags_low_stock(self):
        """Raw materials at or below minimum are flagged"""
        self.material.refresh_from_db()
        self.material.stock = Decimal('10')
        self.material.save()
        response = self.client.get('/api/v1/reports/inventory/')
        self.assertEqual(response.data['summary']['low_stock_count'], 1)
        material_row = [row for row in response.data['rows'] if row['type'] == 'raw_material'][0]
        self.assertTrue(material_row['low_stock'])

    def test_customers_report(self):
        """Customers ranked by revenue in the period"""
        TestDataFactory.create_customer(self.tenant, name='No Sales')
        response = self.client.get('/api/v1/reports/customers/', self.january)
        self.assertEqual(len(response.data['rows']), 1)
        self.assertEqual(response.data['rows'][0]['invoice_count'], 2)
        self.assertEqual(Decimal(response.data['rows'][0]['revenue']), Decimal('200'))

    def test_suppliers_report(self):
        """Suppliers ranked by spending in the period"""
        response = self.client.get('/api/v1/reports/suppliers/', self.january)
        self.assertEqual(response.data['rows'][0]['name'], 'ABC Materials')

    def test_expenses_report(self):
        """Expenses grouped by category"""
        category = TestDataFactory.create_expense_category(self.tenant, name='Rent')
        self.client.post('/api/v1/expenses/', {'category': category.id, 'amount': '500.00', 'date': '2024-01-05'}, format='json')
        response = self.client.get('/api/v1/reports/expenses/', self.january)
        self.assertEqual(response.data['rows'][0]['category'], 'Rent')
        self.assertEqual(response.data['summary']['expense_count'], 1)

    def test_production_efficiency(self):
        """Efficiency, loss rate and duration of completed runs"""
        production = Production.objects.create(
            tenant=self.tenant, reference_no='PRD-001', product=self.product, quantity=Decimal('100'),
            completed_qty=Decimal('95'), start_date='2024-01-05', end_date='2024-01-10', status='completed'
        )
        ProductionLoss.objects.create(tenant=self.tenant, product=self.product, production=production,
                                      quantity=Decimal('5'), loss_type='defect', date='2024-01-10')

        response = self.client.get('/api/v1/reports/production-efficiency/', self.january)
        summary = response.data['summary']
        self.assertEqual(summary['completed_runs'], 1)
        self.assertEqual(Decimal(summary['efficiency']), Decimal('95'))
        self.assertEqual(Decimal(summary['loss_rate']), Decimal('5'))
        self.assertEqual(Decimal(summary['average_duration_days']), Decimal('5'))
        self.assertIsNone(summary['on_time_rate'])

    def test_production_report(self):
        """Runs started in the period"""
        self.client.post('/api/v1/productions/', {'product': self.product.id, 'quantity': '5', 'start_date': '2024-01-20'}, format='json')
        response = self.client.get('/api/v1/reports/production/', self.january)
        self.assertEqual(response.data['summary']['running'], 1)

    def test_reports_require_permission(self):
        """Roles without the reports module are refused"""
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['sales.*'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        self.assertEqual(client.get('/api/v1/reports/sales/').status_code, status.HTTP_403_FORBIDDEN)


class DashboardCacheTests(TestCase):
    """Dashboard stats are cached per tenant and invalidated on commit"""

    def setUp(self):
        cache.clear()
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.tenant)
        self.params = {'date_from': '2024-01-01', 'date_to': '2024-12-31'}

    def test_dashboard_shape(self):
        response = self.client.get('/api/v1/reports/dashboard/', self.params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Cache-Control'], 'private, max-age=60')
        self.assertEqual(response.data['customers'], 1)
        self.assertEqual(response.data['sales']['count'], 0)

    def test_cached_until_commit(self):
        self.client.get('/api/v1/reports/dashboard/', self.params)
        Sale.objects.create(tenant=self.tenant, invoice_no='INV-001', customer=self.customer, date='2024-01-15')

        # Invalidation waits for commit, so the cached figures are served
        response = self.client.get('/api/v1/reports/dashboard/', self.params)
        self.assertEqual(response.data['sales']['count'], 0)

        with self.captureOnCommitCallbacks(execute=True):
            Sale.objects.create(tenant=self.tenant, invoice_no='INV-002', customer=self.customer, date='2024-01-16')
        response = self.client.get('/api/v1/reports/dashboard/', self.params)
        self.assertEqual(response.data['sales']['count'], 2)

    def test_tenants_do_not_share_cache(self):
        self.client.get('/api/v1/reports/dashboard/', self.params)
        other_tenant = TestDataFactory.create_tenant()
        TestDataFactory.create_customer(other_tenant)
        TestDataFactory.create_customer(other_tenant)
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(tenant=other_tenant))
        response = client.get('/api/v1/reports/dashboard/', self.params)
        self.assertEqual(response.data['customers'], 2)
