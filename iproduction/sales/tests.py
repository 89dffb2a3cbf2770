"""
Test suite for quotations and sales
Tests: quotation workflow, conversion, sale totals, stock and balance effects
"""
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from rest_framework import status

from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.sales.models import Quotation, Sale


class QuotationTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.tenant)
        self.product = TestDataFactory.create_product(self.tenant, price=Decimal('29.99'), stock=Decimal('100'))

    def _create_quotation(self, quantity='50', price='27.99'):
        response = self.client.post('/api/v1/quotations/', {
            'customer': self.customer.id,
            'valid_until': '2024-02-15',
            'items': [{'product': self.product.id, 'quantity': quantity, 'price': price}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_create_numbers_and_totals(self):
        data = self._create_quotation()
        self.assertEqual(data['quotation_no'], 'QUO-001')
        self.assertEqual(data['status'], 'draft')
        self.assertEqual(data['total'], '1399.50')
        self.assertEqual(self._create_quotation()['quotation_no'], 'QUO-002')

    def test_quotation_does_not_touch_stock(self):
        self._create_quotation()
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('100'))

    def test_empty_items_rejected(self):
        response = self.client.post('/api/v1/quotations/', {'customer': self.customer.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_transitions(self):
        quotation_id = self._create_quotation()['id']
        base = f'/api/v1/quotations/{quotation_id}'

        self.assertEqual(self.client.post(f'{base}/accept/').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.post(f'{base}/send/').data['status'], 'sent')
        self.assertEqual(self.client.post(f'{base}/send/').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.post(f'{base}/accept/').data['status'], 'accepted')
        self.assertEqual(self.client.post(f'{base}/reject/').status_code, status.HTTP_400_BAD_REQUEST)

    def test_items_locked_after_send(self):
        quotation_id = self._create_quotation()['id']
        self.client.post(f'/api/v1/quotations/{quotation_id}/send/')
        response = self.client.patch(f'/api/v1/quotations/{quotation_id}/', {
            'items': [{'product': self.product.id, 'quantity': '1', 'price': '1.00'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_convert_accepted_quotation_once(self):
        quotation_id = self._create_quotation(quantity='10', price='20.00')['id']
        self.client.post(f'/api/v1/quotations/{quotation_id}/send/')
        self.client.post(f'/api/v1/quotations/{quotation_id}/accept/')

        response = self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', {'paid': '50.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '200.00')
        self.assertEqual(response.data['quotation_no'], 'QUO-001')

        self.product.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('90'))
        self.assertEqual(self.customer.balance, Decimal('150.00'))

        response = self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Sale.objects.count(), 1)

    def test_convert_race_on_unique_sale_returns_400(self):
        quotation_id = self._create_quotation(quantity='10', price='20.00')['id']
        self.client.post(f'/api/v1/quotations/{quotation_id}/send/')
        self.client.post(f'/api/v1/quotations/{quotation_id}/accept/')
        self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', format='json')

        # A conversion that passed the existence check before the first one committed
        with mock.patch('iproduction.sales.views.Sale') as sale_model:
            sale_model.objects.filter.return_value.exists.return_value = False
            response = self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Quotation has already been converted to a sale')
        self.assertEqual(Sale.objects.count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('90'))

    def test_convert_draft_rejected(self):
        quotation_id = self._create_quotation()['id']
        response = self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_converted_quotation_cannot_be_deleted(self):
        quotation_id = self._create_quotation(quantity='1')['id']
        self.client.post(f'/api/v1/quotations/{quotation_id}/send/')
        self.client.post(f'/api/v1/quotations/{quotation_id}/accept/')
        self.client.post(f'/api/v1/quotations/{quotation_id}/convert/', format='json')

        response = self.client.delete(f'/api/v1/quotations/{quotation_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Quotation.objects.filter(pk=quotation_id).exists())


class SaleTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.tenant)
        self.widget = TestDataFactory.create_product(self.tenant, name='Widget A', stock=Decimal('150'))
        self.gadget = TestDataFactory.create_product(self.tenant, name='Gadget X', stock=Decimal('5'))

    def _create_sale(self, items, **extra):
        payload = {'customer': self.customer.id, 'date': '2024-01-15', 'items': items}
        payload.update(extra)
        return self.client.post('/api/v1/sales/', payload, format='json')

    def test_totals_with_discount_and_tax(self):
        response = self._create_sale([
            {'product': self.widget.id, 'quantity': '10', 'price': '29.99', 'discount': '9.90'},
        ], tax_rate='10', paid='100.00')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data
        self.assertEqual(data['invoice_no'], 'INV-001')
        self.assertEqual(data['subtotal'], '290.00')
        self.assertEqual(data['tax_amount'], '29.00')
        self.assertEqual(data['total'], '319.00')
        self.assertEqual(data['due'], '219.00')
        self.assertEqual(data['status'], 'partial')

    def test_sale_moves_stock_and_balance(self):
        self._create_sale([{'product': self.widget.id, 'quantity': '10', 'price': '29.99'}])
        self.widget.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.widget.stock, Decimal('140'))
        self.assertEqual(self.customer.balance, Decimal('299.90'))

    def test_insufficient_stock_rolls_back(self):
        response = self._create_sale([
            {'product': self.widget.id, 'quantity': '1', 'price': '29.99'},
            {'product': self.gadget.id, 'quantity': '6', 'price': '49.99'},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Sale.objects.exists())
        self.widget.refresh_from_db()
        self.assertEqual(self.widget.stock, Decimal('150'))

    def test_paid_above_total_rejected(self):
        response = self._create_sale([{'product': self.widget.id, 'quantity': '1', 'price': '10.00'}], paid='10.01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_discount_above_line_value_rejected(self):
        response = self._create_sale([{'product': self.widget.id, 'quantity': '1', 'price': '10.00', 'discount': '11'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_of_other_tenant_rejected(self):
        foreign = TestDataFactory.create_product(TestDataFactory.create_tenant(), stock=Decimal('10'))
        response = self._create_sale([{'product': foreign.id, 'quantity': '1', 'price': '10.00'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_reapplies_effects(self):
        sale_id = self._create_sale([{'product': self.widget.id, 'quantity': '10', 'price': '10.00'}]).data['id']
        response = self.client.patch(f'/api/v1/sales/{sale_id}/', {
            'paid': '20.00',
            'items': [{'product': self.widget.id, 'quantity': '4', 'price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['due'], '20.00')

        self.widget.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.widget.stock, Decimal('146'))
        self.assertEqual(self.customer.balance, Decimal('20.00'))

    def test_paid_cannot_drop_below_receipts(self):
        sale_id = self._create_sale([{'product': self.widget.id, 'quantity': '10', 'price': '10.00'}]).data['id']
        self.client.post('/api/v1/customer-receives/', {
            'customer': self.customer.id, 'sale': sale_id, 'amount': '40.00', 'date': '2024-01-16'
        }, format='json')
        response = self.client.patch(f'/api/v1/sales/{sale_id}/', {'paid': '10.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_restores_stock_and_balance(self):
        sale_id = self._create_sale([{'product': self.widget.id, 'quantity': '10', 'price': '10.00'}]).data['id']
        response = self.client.delete(f'/api/v1/sales/{sale_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.widget.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.widget.stock, Decimal('150'))
        self.assertEqual(self.customer.balance, Decimal('0.00'))

    def test_sale_with_receipts_cannot_be_deleted(self):
        sale_id = self._create_sale([{'product': self.widget.id, 'quantity': '1', 'price': '10.00'}]).data['id']
        self.client.post('/api/v1/customer-receives/', {
            'customer': self.customer.id, 'sale': sale_id, 'amount': '5.00', 'date': '2024-01-16'
        }, format='json')
        response = self.client.delete(f'/api/v1/sales/{sale_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_and_stats(self):
        self._create_sale([{'product': self.widget.id, 'quantity': '1', 'price': '10.00'}], paid='10.00')
        self._create_sale([{'product': self.widget.id, 'quantity': '2', 'price': '10.00'}], date='2024-02-01')

        response = self.client.get('/api/v1/sales/', {'status': 'paid'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/sales/', {'date_from': '2024-02-01'})
        self.assertEqual([s['invoice_no'] for s in response.data['results']], ['INV-002'])

        stats = self.client.get('/api/v1/sales/stats/').data
        self.assertEqual(stats['count'], 2)
        self.assertEqual(stats['revenue'], '30.00')
        self.assertEqual(stats['due'], '20.00')
        self.assertEqual(stats['by_status'], {'paid': 1, 'partial': 0, 'unpaid': 1})
