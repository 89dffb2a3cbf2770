"""
Test suite for customers, suppliers and their payments
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from iproduction.accounting.models import Transaction
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.parties.models import Customer, CustomerReceive, SupplierPayment
from iproduction.sales.models import Sale


class CustomerSupplierTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_ignores_balance(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'John Smith', 'phone': '555-0101', 'email': 'john@example.com', 'balance': '500.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['balance'], '0.00')

    def test_search_and_balance_filter(self):
        TestDataFactory.create_customer(self.tenant, name='Jane Doe', balance=Decimal('149.95'))
        TestDataFactory.create_customer(self.tenant, name='John Smith')

        response = self.client.get('/api/v1/customers/', {'search': 'jane'})
        self.assertEqual([c['name'] for c in response.data], ['Jane Doe'])
        response = self.client.get('/api/v1/customers/', {'with_balance': 'true'})
        self.assertEqual(len(response.data), 1)

    def test_customer_with_sales_cannot_be_deleted(self):
        customer = TestDataFactory.create_customer(self.tenant)
        Sale.objects.create(tenant=self.tenant, invoice_no='INV-001', customer=customer, date='2024-01-15')
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Customer.objects.filter(pk=customer.id).exists())

    def test_delete_unused_supplier(self):
        supplier = TestDataFactory.create_supplier(self.tenant)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_other_tenant_customer_not_found(self):
        foreign = TestDataFactory.create_customer(TestDataFactory.create_tenant())
        response = self.client.get(f'/api/v1/customers/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_purchases_only_role_cannot_see_customers(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['purchases.*'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        self.assertEqual(client.get('/api/v1/customers/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(client.get('/api/v1/suppliers/').status_code, status.HTTP_200_OK)


class CustomerReceiveTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.tenant)
        self.product = TestDataFactory.create_product(self.tenant, price=Decimal('50.00'), stock=Decimal('10'))
        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('1000.00'))

        response = self.client.post('/api/v1/sales/', {
            'customer': self.customer.id,
            'date': '2024-01-15',
            'paid': '20.00',
            'items': [{'product': self.product.id, 'quantity': '2', 'price': '50.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.sale = Sale.objects.get(pk=response.data['id'])

    def _receive(self, amount, **extra):
        payload = {'customer': self.customer.id, 'sale': self.sale.id, 'amount': amount, 'date': '2024-01-20'}
        payload.update(extra)
        return self.client.post('/api/v1/customer-receives/', payload, format='json')

    def test_receive_settles_sale_and_balance(self):
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal('80.00'))

        response = self._receive('30.00', account=self.account.id)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.sale.refresh_from_db()
        self.customer.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.sale.paid, Decimal('50.00'))
        self.assertEqual(self.sale.status, 'partial')
        self.assertEqual(self.customer.balance, Decimal('50.00'))
        self.assertEqual(self.account.balance, Decimal('1030.00'))
        self.assertEqual(Transaction.objects.get(pk=response.data['transaction']).type, 'deposit')

    def test_full_receive_marks_sale_paid(self):
        self._receive('80.00')
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.status, 'paid')
        self.assertEqual(self.sale.due, Decimal('0.00'))

    def test_receive_above_due_rejected(self):
        response = self._receive('80.01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)
        self.assertFalse(CustomerReceive.objects.exists())

    def test_receive_for_other_customers_sale_rejected(self):
        other = TestDataFactory.create_customer(self.tenant)
        response = self._receive('10.00', customer=other.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_zero_amount_rejected(self):
        self.assertEqual(self._receive('0').status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_receive_reverses_everything(self):
        receive_id = self._receive('30.00', account=self.account.id).data['id']
        response = self.client.delete(f'/api/v1/customer-receives/{receive_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        self.sale.refresh_from_db()
        self.customer.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.sale.paid, Decimal('20.00'))
        self.assertEqual(self.customer.balance, Decimal('80.00'))
        self.assertEqual(self.account.balance, Decimal('1000.00'))
        self.assertFalse(Transaction.objects.exists())

    def test_receive_without_sale_lowers_balance(self):
        response = self.client.post('/api/v1/customer-receives/', {
            'customer': self.customer.id, 'amount': '25.00', 'date': '2024-01-21'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal('55.00'))

    def test_list_is_paginated_and_filtered(self):
        self._receive('10.00')
        self._receive('5.00')
        response = self.client.get('/api/v1/customer-receives/', {'customer': self.customer.id})
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/customer-receives/', {'date_from': '2024-02-01'})
        self.assertEqual(response.data['count'], 0)

    def test_statement_running_balance(self):
        self._receive('30.00', reference='REC-001')
        response = self.client.get(f'/api/v1/customers/{self.customer.id}/statement/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = response.data
        self.assertEqual(data['opening_balance'], '0.00')
        self.assertEqual(data['closing_balance'], '50.00')
        self.assertEqual([entry['type'] for entry in data['entries']], ['document', 'payment'])
        self.assertEqual(data['entries'][0]['debit'], '100.00')
        self.assertEqual(data['entries'][0]['credit'], '20.00')
        self.assertEqual(data['entries'][0]['balance'], '80.00')
        self.assertEqual(data['entries'][1]['reference'], 'REC-001')
        self.assertEqual(data['entries'][1]['balance'], '50.00')


class SupplierPaymentTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(self.tenant)
        self.material = TestDataFactory.create_raw_material(self.tenant, stock=Decimal('0'))
        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('5000.00'))

        response = self.client.post('/api/v1/purchases/', {
            'supplier': self.supplier.id,
            'date': '2024-01-10',
            'items': [{'raw_material': self.material.id, 'quantity': '100', 'price': '5.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.purchase_id = response.data['id']

    def test_payment_withdraws_from_account(self):
        response = self.client.post('/api/v1/supplier-payments/', {
            'supplier': self.supplier.id, 'purchase': self.purchase_id, 'amount': '200.00',
            'date': '2024-01-12', 'payment_method': 'bank', 'account': self.account.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNotNone(response.data['invoice_no'])

        self.supplier.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.supplier.balance, Decimal('300.00'))
        self.assertEqual(self.account.balance, Decimal('4800.00'))

    def test_payment_above_due_rejected(self):
        response = self.client.post('/api/v1/supplier-payments/', {
            'supplier': self.supplier.id, 'purchase': self.purchase_id, 'amount': '600.00', 'date': '2024-01-12'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SupplierPayment.objects.exists())

    def test_supplier_statement(self):
        self.client.post('/api/v1/supplier-payments/', {
            'supplier': self.supplier.id, 'purchase': self.purchase_id, 'amount': '100.00', 'date': '2024-01-12'
        }, format='json')
        response = self.client.get(f'/api/v1/suppliers/{self.supplier.id}/statement/')
        self.assertEqual(response.data['closing_balance'], '400.00')
        self.assertEqual(response.data['entries'][-1]['balance'], '400.00')
