"""
Test suite for the catalog module
Tests: products, raw materials, bills of material, masters, stock helpers
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import serializers, status

from iproduction.catalog.models import Product, RawMaterial, BillOfMaterialLine, Currency
from iproduction.catalog.utils import change_product_stock, change_raw_material_stock, bom_requirements, find_shortages
from iproduction.core.models import AuditLog
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.sales.models import Sale, SaleItem


class StockHelperTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.material = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('10'))
        self.product = TestDataFactory.create_product(self.tenant, stock=Decimal('5'))

    def test_change_stock(self):
        change_product_stock(self.product.id, Decimal('2.5'))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('7.5'))

    def test_insufficient_stock_raises(self):
        with self.assertRaises(serializers.ValidationError):
            change_raw_material_stock(self.material.id, Decimal('-11'))
        self.material.refresh_from_db()
        self.assertEqual(self.material.stock, Decimal('10'))

    def test_clamp_stops_at_zero(self):
        change_raw_material_stock(self.material.id, Decimal('-50'), clamp=True)
        self.material.refresh_from_db()
        self.assertEqual(self.material.stock, Decimal('0'))

    def test_bom_requirements_and_shortages(self):
        other = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('100'))
        TestDataFactory.create_bom_line(self.product, self.material, '2')
        TestDataFactory.create_bom_line(self.product, other, '0.5')

        requirements = bom_requirements(self.product, 10)
        self.assertEqual(requirements[self.material], Decimal('20'))
        self.assertEqual(requirements[other], Decimal('5'))

        shortages = find_shortages(requirements)
        self.assertEqual(len(shortages), 1)
        self.assertEqual(shortages[0]['raw_material'], self.material.id)


class ProductAPITests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Widget A', 'sku': 'WGT-001', 'price': '29.99', 'cost': '15.00', 'stock': '150'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stock_value'], '2250.00')
        self.assertEqual(Product.objects.get(pk=response.data['id']).tenant, self.tenant)

    def test_sku_unique_per_tenant(self):
        TestDataFactory.create_product(self.tenant, sku='WGT-001')
        response = self.client.post('/api/v1/products/', {'name': 'Copy', 'sku': 'wgt-001'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data)

    def test_negative_stock_rejected(self):
        response = self.client.post('/api/v1/products/', {'name': 'Bad', 'sku': 'BAD', 'stock': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_from_other_tenant_rejected(self):
        foreign = TestDataFactory.create_product(TestDataFactory.create_tenant()).category
        response = self.client.post('/api/v1/products/', {'name': 'X', 'sku': 'X', 'category': foreign.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_and_in_stock_filters(self):
        TestDataFactory.create_product(self.tenant, name='Blue Shirt', stock=Decimal('3'))
        TestDataFactory.create_product(self.tenant, name='Blue Jeans', stock=Decimal('0'))
        TestDataFactory.create_product(self.tenant, name='Red Shirt', stock=Decimal('1'))

        response = self.client.get('/api/v1/products/', {'search': 'blue shirt'})
        self.assertEqual([p['name'] for p in response.data], ['Blue Shirt'])
        response = self.client.get('/api/v1/products/', {'in_stock': 'true'})
        self.assertEqual(len(response.data), 2)

    def test_stock_edit_is_audited(self):
        product = TestDataFactory.create_product(self.tenant, stock=Decimal('5'))
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'stock': '8'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='stock_adjust', object_id=str(product.id))
        self.assertEqual(Decimal(log.changes['stock'][1]), Decimal('8'))

    def test_product_in_use_cannot_be_deleted(self):
        product = TestDataFactory.create_product(self.tenant)
        customer = TestDataFactory.create_customer(self.tenant)
        sale = Sale.objects.create(tenant=self.tenant, invoice_no='INV-001', customer=customer, date='2024-01-01')
        SaleItem.objects.create(sale=sale, product=product, quantity=Decimal('1'), price=Decimal('10'))

        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertTrue(Product.objects.filter(pk=product.id).exists())

    def test_category_in_use_cannot_be_deleted(self):
        product = TestDataFactory.create_product(self.tenant)
        response = self.client.delete(f'/api/v1/product-categories/{product.category_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BillOfMaterialAPITests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(self.tenant)
        self.material = TestDataFactory.create_raw_material(self.tenant)

    def test_add_then_replace_line(self):
        url = f'/api/v1/products/{self.product.id}/bom/'
        response = self.client.post(url, {'raw_material': self.material.id, 'quantity': '2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, {'raw_material': self.material.id, 'quantity': '3'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        line = BillOfMaterialLine.objects.get(product=self.product)
        self.assertEqual(line.quantity, Decimal('3'))

        response = self.client.get(url)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['raw_material_name'], self.material.name)

    def test_zero_quantity_rejected(self):
        response = self.client.post(f'/api/v1/products/{self.product.id}/bom/',
                                    {'raw_material': self.material.id, 'quantity': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_line(self):
        line = TestDataFactory.create_bom_line(self.product, self.material, '1')
        response = self.client.delete(f'/api/v1/products/{self.product.id}/bom/{line.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_material_used_in_bom_cannot_be_deleted(self):
        TestDataFactory.create_bom_line(self.product, self.material, '1')
        response = self.client.delete(f'/api/v1/raw-materials/{self.material.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(RawMaterial.objects.filter(pk=self.material.id).exists())


class RawMaterialAndMasterTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_low_stock_endpoint(self):
        low = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('10'), min_stock=Decimal('10'))
        TestDataFactory.create_raw_material(self.tenant, stock=Decimal('50'), min_stock=Decimal('10'))
        response = self.client.get('/api/v1/raw-materials/low-stock/')
        self.assertEqual([m['id'] for m in response.data], [low.id])
        self.assertTrue(response.data[0]['is_low_stock'])

    def test_currency_code_unique(self):
        Currency.objects.create(tenant=self.tenant, name='US Dollar', code='USD', symbol='$')
        response = self.client.post('/api/v1/currencies/', {'name': 'Dollar', 'code': 'usd', 'symbol': '$'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_units_and_non_inventory_items(self):
        response = self.client.post('/api/v1/units/', {'name': 'Kilogram', 'short_name': 'kg'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/non-inventory-items/', {
            'name': 'Software License', 'price': '1000.00', 'tax': '10.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(self.client.get('/api/v1/non-inventory-items/').data), 1)
