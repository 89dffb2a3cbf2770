"""
Test suite for stock adjustments, wastes and valuation
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from iproduction.core.models import AuditLog
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.inventory.models import StockAdjustment, RawMaterialWaste
from iproduction.inventory.utils import inventory_value


class StockAdjustmentTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.material = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('50'))

    def _adjust(self, type, quantity):
        return self.client.post('/api/v1/stock-adjustments/', {
            'raw_material': self.material.id, 'type': type, 'quantity': quantity,
            'date': '2024-01-18', 'reason': 'Stock count'
        }, format='json')

    def test_stock_in(self):
        response = self._adjust('add', '25')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['previous_stock']), Decimal('50'))
        self.assertEqual(Decimal(response.data['new_stock']), Decimal('75'))
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', model_name='RawMaterial').exists())

    def test_stock_out_clamps_at_zero(self):
        response = self._adjust('subtract', '80')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.material.refresh_from_db()
        self.assertEqual(self.material.stock, Decimal('0'))
        self.assertEqual(StockAdjustment.objects.get().new_stock, Decimal('0'))

    def test_invalid_type_and_quantity(self):
        self.assertEqual(self._adjust('multiply', '2').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._adjust('add', '-2').status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filtered_by_material(self):
        other = TestDataFactory.create_raw_material(self.tenant)
        self._adjust('add', '1')
        response = self.client.get('/api/v1/stock-adjustments/', {'raw_material': other.id})
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/stock-adjustments/', {'raw_material': self.material.id})
        self.assertEqual(len(response.data), 1)


class WasteTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.material = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('20'))
        self.product = TestDataFactory.create_product(self.tenant, stock=Decimal('10'))

    def test_raw_material_waste_takes_stock_out(self):
        response = self.client.post('/api/v1/raw-material-wastes/', {
            'raw_material': self.material.id, 'quantity': '5', 'date': '2024-01-19', 'reason': 'Damaged during cutting'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.material.refresh_from_db()
        self.assertEqual(self.material.stock, Decimal('15'))

    def test_waste_above_stock_rejected(self):
        response = self.client.post('/api/v1/raw-material-wastes/', {
            'raw_material': self.material.id, 'quantity': '21', 'date': '2024-01-19'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(RawMaterialWaste.objects.exists())

    def test_delete_waste_restores_stock(self):
        waste_id = self.client.post('/api/v1/product-wastes/', {
            'product': self.product.id, 'quantity': '3', 'date': '2024-01-19', 'reason': 'Packaging damage'
        }, format='json').data['id']
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('7'))

        response = self.client.delete(f'/api/v1/product-wastes/{waste_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('10'))

    def test_date_filter(self):
        for date in ('2024-01-10', '2024-02-10'):
            self.client.post('/api/v1/product-wastes/', {
                'product': self.product.id, 'quantity': '1', 'date': date
            }, format='json')
        response = self.client.get('/api/v1/product-wastes/', {'date_from': '2024-02-01'})
        self.assertEqual(len(response.data), 1)


class ValuationTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_product(self.tenant, name='Widget A', cost=Decimal('15.00'), stock=Decimal('150'))
        TestDataFactory.create_raw_material(self.tenant, name='Steel Sheets', price=Decimal('50.00'), stock=Decimal('500'))

    def test_valuation_endpoint(self):
        response = self.client.get('/api/v1/inventory/valuation/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['product_total']), Decimal('2250'))
        self.assertEqual(Decimal(response.data['raw_material_total']), Decimal('25000'))
        self.assertEqual(Decimal(response.data['total']), Decimal('27250'))
        self.assertEqual(response.data['products'][0]['name'], 'Widget A')

    def test_inventory_value_ignores_other_tenants(self):
        TestDataFactory.create_product(TestDataFactory.create_tenant(), cost=Decimal('1000'), stock=Decimal('1000'))
        self.assertEqual(inventory_value(self.tenant), Decimal('27250.00'))
