"""
Test suite for accounts, transactions, expenses and financial statements
"""
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from iproduction.accounting.models import Account, Transaction, Expense
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.payroll.models import Payroll
from iproduction.purchasing.models import Purchase


class AccountTransactionTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.account = TestDataFactory.create_account(self.tenant, name='Main Bank', balance=Decimal('50000.00'))

    def _post(self, type, amount, **extra):
        payload = {'account': self.account.id, 'type': type, 'amount': amount, 'date': '2024-01-15'}
        payload.update(extra)
        return self.client.post('/api/v1/transactions/', payload, format='json')

    def test_open_account_with_balance(self):
        response = self.client.post('/api/v1/accounts/', {'name': 'Petty Cash', 'type': 'cash', 'balance': '2000.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['balance'], '2000.00')

    def test_balance_cannot_be_edited(self):
        response = self.client.patch(f'/api/v1/accounts/{self.account.id}/', {'balance': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(f'/api/v1/accounts/{self.account.id}/', {'account_number': '****1234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_deposit_and_withdraw_move_balance(self):
        self.assertEqual(self._post('deposit', '5000.00').status_code, status.HTTP_201_CREATED)
        self.assertEqual(self._post('withdraw', '1500.00').status_code, status.HTTP_201_CREATED)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('53500.00'))

    def test_non_positive_amount_rejected(self):
        self.assertEqual(self._post('deposit', '0').status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_reapplies_and_delete_reverses(self):
        entry_id = self._post('deposit', '100.00').data['id']
        response = self.client.patch(f'/api/v1/transactions/{entry_id}/', {'type': 'withdraw'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('49900.00'))

        self.client.delete(f'/api/v1/transactions/{entry_id}/')
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('50000.00'))

    def test_list_is_paginated(self):
        self._post('deposit', '1.00')
        self._post('withdraw', '1.00', date='2024-03-01')
        response = self.client.get('/api/v1/transactions/', {'type': 'withdraw'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/transactions/', {'date_to': '2024-02-01'})
        self.assertEqual(response.data['results'][0]['type'], 'deposit')

    def test_account_with_transactions_cannot_be_deleted(self):
        self._post('deposit', '1.00')
        response = self.client.delete(f'/api/v1/accounts/{self.account.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Account.objects.filter(pk=self.account.id).exists())


class ExpenseTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('10000.00'))
        self.rent = TestDataFactory.create_expense_category(self.tenant, name='Rent')
        self.utilities = TestDataFactory.create_expense_category(self.tenant, name='Utilities')

    def _expense(self, category, amount, **extra):
        payload = {'category': category.id, 'amount': amount, 'date': '2024-01-05'}
        payload.update(extra)
        return self.client.post('/api/v1/expenses/', payload, format='json')

    def test_category_name_unique(self):
        response = self.client.post('/api/v1/expense-categories/', {'name': 'rent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_expense_paid_from_account(self):
        response = self._expense(self.rent, '5000.00', account=self.account.id, payment_method='bank')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('5000.00'))
        self.assertEqual(Transaction.objects.get(pk=response.data['transaction']).type, 'withdraw')

    def test_posted_transaction_is_changed_through_expense(self):
        response = self._expense(self.rent, '5000.00', account=self.account.id)
        transaction_id = response.data['transaction']
        response = self.client.delete(f'/api/v1/transactions/{transaction_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('expense', response.data['error'])

    def test_update_reposts_transaction(self):
        expense_id = self._expense(self.rent, '1000.00', account=self.account.id).data['id']
        response = self.client.patch(f'/api/v1/expenses/{expense_id}/', {'amount': '1200.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('8800.00'))
        self.assertEqual(Transaction.objects.count(), 1)

    def test_delete_restores_account(self):
        expense_id = self._expense(self.rent, '1000.00', account=self.account.id).data['id']
        self.client.delete(f'/api/v1/expenses/{expense_id}/')
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('10000.00'))
        self.assertFalse(Expense.objects.exists())
        self.assertFalse(Transaction.objects.exists())

    def test_summary_by_category(self):
        self._expense(self.rent, '5000.00')
        self._expense(self.utilities, '800.00')
        self._expense(self.utilities, '200.00', date='2024-03-01')

        response = self.client.get('/api/v1/expenses/summary/', {'date_to': '2024-01-31'})
        self.assertEqual(Decimal(response.data['total']), Decimal('5800'))
        self.assertEqual([row['name'] for row in response.data['by_category']], ['Rent', 'Utilities'])

    def test_category_in_use_cannot_be_deleted(self):
        self._expense(self.rent, '10.00')
        response = self.client.delete(f'/api/v1/expense-categories/{self.rent.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class FinancialStatementTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('1000.00'))
        self.customer = customer = TestDataFactory.create_customer(self.tenant)
        self.supplier = supplier = TestDataFactory.create_supplier(self.tenant)
        self.product = product = TestDataFactory.create_product(self.tenant, cost=Decimal('5.00'), stock=Decimal('10'))
        self.material = material = TestDataFactory.create_raw_material(self.tenant, price=Decimal('2.00'), stock=Decimal('0'))

        self.sale_id = self.client.post('/api/v1/sales/', {
            'customer': customer.id, 'date': '2024-01-15', 'paid': '60.00',
            'items': [{'product': product.id, 'quantity': '4', 'price': '25.00'}],
        }, format='json').data['id']
        self.client.post('/api/v1/purchases/', {
            'supplier': supplier.id, 'date': '2024-01-10',
            'items': [{'raw_material': material.id, 'quantity': '20', 'price': '2.00'}],
        }, format='json')
        self.client.post('/api/v1/expenses/', {
            'category': TestDataFactory.create_expense_category(self.tenant).id,
            'amount': '10.00', 'date': '2024-01-20', 'account': self.account.id,
        }, format='json')
        employee = TestDataFactory.create_employee(self.tenant)
        Payroll.objects.create(tenant=self.tenant, employee=employee, month='2024-01', basic_salary=Decimal('20.00'),
                               net_salary=Decimal('20.00'), status='paid')
        self.window = {'start_date': '2024-01-01', 'end_date': '2024-01-31'}

    def test_profit_and_loss(self):
        response = self.client.get('/api/v1/accounting/profit-loss/', self.window)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(Decimal(data['revenue']), Decimal('100'))
        self.assertEqual(Decimal(data['costs']['purchases']), Decimal('40'))
        self.assertEqual(Decimal(data['costs']['payroll']), Decimal('20'))
        self.assertEqual(Decimal(data['net_profit']), Decimal('30'))

    def test_balance_sheet(self):
        data = self.client.get('/api/v1/accounting/balance-sheet/', {'end_date': '2024-01-31'}).data
        self.assertEqual(Decimal(data['assets']['cash_and_bank']), Decimal('990'))
        self.assertEqual(Decimal(data['assets']['receivables']), Decimal('40'))
        # 6 products x 5.00 + 20 kg x 2.00
        self.assertEqual(Decimal(data['assets']['inventory']), Decimal('70'))
        self.assertEqual(Decimal(data['liabilities']['payables']), Decimal('40'))
        self.assertEqual(Decimal(data['equity']), Decimal('1060'))

    def test_balance_sheet_rolls_back_later_transactions(self):
        self.client.post('/api/v1/transactions/', {
            'account': self.account.id, 'type': 'deposit', 'amount': '500.00', 'date': '2024-02-10'
        }, format='json')
        data = self.client.get('/api/v1/accounting/balance-sheet/', {'end_date': '2024-01-31'}).data
        self.assertEqual(Decimal(data['assets']['accounts'][0]['balance']), Decimal('990'))

    def _record_february_and_march_activity(self):
        self.client.post('/api/v1/sales/', {
            'customer': self.customer.id, 'date': '2024-03-15',
            'items': [{'product': self.product.id, 'quantity': '2', 'price': '50.00'}],
        }, format='json')
        self.client.post('/api/v1/customer-receives/', {
            'customer': self.customer.id, 'sale': self.sale_id, 'amount': '30.00', 'date': '2024-02-05',
        }, format='json')
        purchase_id = Purchase.objects.get(tenant=self.tenant, date='2024-01-10').id
        self.client.post('/api/v1/purchases/', {
            'supplier': self.supplier.id, 'date': '2024-02-20',
            'items': [{'raw_material': self.material.id, 'quantity': '5', 'price': '2.00'}],
        }, format='json')
        self.client.post('/api/v1/supplier-payments/', {
            'supplier': self.supplier.id, 'purchase': purchase_id, 'amount': '15.00', 'date': '2024-02-12',
        }, format='json')
        late_payer = TestDataFactory.create_employee(self.tenant)
        Payroll.objects.create(tenant=self.tenant, employee=late_payer, month='2024-01', net_salary=Decimal('25.00'),
                               status='paid', paid_at=datetime(2024, 2, 3, 12, tzinfo=dt_timezone.utc))
        Payroll.objects.create(tenant=self.tenant, employee=TestDataFactory.create_employee(self.tenant),
                               month='2024-01', net_salary=Decimal('15.00'), status='pending')
        Payroll.objects.create(tenant=self.tenant, employee=late_payer, month='2024-02', net_salary=Decimal('25.00'),
                               status='pending')

    def test_balance_sheet_lines_are_as_of_end_date(self):
        self._record_february_and_march_activity()
        self.customer.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal('110.00'))
        self.assertEqual(self.supplier.balance, Decimal('35.00'))

        data = self.client.get('/api/v1/accounting/balance-sheet/', {'end_date': '2024-01-31'}).data
        self.assertEqual(Decimal(data['assets']['receivables']), Decimal('40'))
        self.assertEqual(Decimal(data['assets']['inventory']), Decimal('70'))
        self.assertEqual(Decimal(data['liabilities']['payables']), Decimal('40'))
        # January payroll unpaid at month end: 15 pending + 25 paid in February
        self.assertEqual(Decimal(data['liabilities']['pending_payroll']), Decimal('40'))

        today = self.client.get('/api/v1/accounting/balance-sheet/', {'end_date': '2024-12-31'}).data
        self.assertEqual(Decimal(today['assets']['receivables']), Decimal('110'))
        self.assertEqual(Decimal(today['liabilities']['payables']), Decimal('35'))
        # 4 products x 5.00 + 25 kg x 2.00
        self.assertEqual(Decimal(today['assets']['inventory']), Decimal('70'))
        self.assertEqual(Decimal(today['liabilities']['pending_payroll']), Decimal('40'))

    def test_trial_balance_uses_end_date_figures(self):
        self._record_february_and_march_activity()
        data = self.client.get('/api/v1/accounting/trial-balance/', self.window).data
        debits = {row['account']: Decimal(row['amount']) for row in data['debits']}
        credits = {row['account']: Decimal(row['amount']) for row in data['credits']}
        self.assertEqual(debits['Accounts Receivable'], Decimal('40'))
        self.assertEqual(debits['Inventory'], Decimal('70'))
        self.assertEqual(credits['Accounts Payable'], Decimal('40'))
        self.assertTrue(data['balanced'])

    def test_start_after_end_rejected(self):
        window = {'start_date': '2024-02-01', 'end_date': '2024-01-31'}
        for url in ('/api/v1/accounting/profit-loss/', '/api/v1/accounting/trial-balance/'):
            response = self.client.get(url, window)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('start_date', response.data)

    def test_start_date_defaults_to_year_of_end_date(self):
        data = self.client.get('/api/v1/accounting/profit-loss/', {'end_date': '2024-01-31'}).data
        self.assertEqual(data['start_date'], '2024-01-01')
        self.assertEqual(Decimal(data['revenue']), Decimal('100'))

    def test_trial_balance_agrees(self):
        data = self.client.get('/api/v1/accounting/trial-balance/', self.window).data
        self.assertTrue(data['balanced'])
        self.assertEqual(Decimal(data['total_debit']), Decimal(data['total_credit']))
        credit_names = [row['account'] for row in data['credits']]
        self.assertIn('Sales Revenue', credit_names)

    def test_invalid_date_param(self):
        response = self.client.get('/api/v1/accounting/profit-loss/', {'start_date': '01/01/2024'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_accounting_permission(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['sales.*'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        self.assertEqual(client.get('/api/v1/accounting/profit-loss/').status_code, status.HTTP_403_FORBIDDEN)


class AccountingPeriodTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('1000.00'))
        self.january = self._create('January 2024', '2024-01-01', '2024-01-31').data

    def _create(self, name, start_date, end_date):
        return self.client.post('/api/v1/accounting-periods/', {
            'name': name, 'start_date': start_date, 'end_date': end_date,
        }, format='json')

    def _close(self, period_id):
        return self.client.post(f'/api/v1/accounting-periods/{period_id}/close/')

    def _deposit(self, date, amount='100.00'):
        return self.client.post('/api/v1/transactions/', {
            'account': self.account.id, 'type': 'deposit', 'amount': amount, 'date': date,
        }, format='json')

    def test_create_opens_period(self):
        self.assertEqual(self.january['status'], 'open')
        self.assertEqual(self._create('February 2024', '2024-02-01', '2024-02-29').status_code, status.HTTP_201_CREATED)

    def test_overlapping_period_rejected(self):
        self.assertEqual(self._create('Mid January', '2024-01-15', '2024-02-15').status_code, status.HTTP_400_BAD_REQUEST)
        # A range enclosing an existing period overlaps too
        self.assertEqual(self._create('Q1', '2023-12-01', '2024-03-31').status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_before_start_rejected(self):
        response = self._create('Backwards', '2024-03-31', '2024-03-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_close_blocks_postings_in_period(self):
        posted = self._deposit('2024-01-10').data['id']
        response = self._close(self.january['id'])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'closed')
        self.assertEqual(response.data['closed_by'], self.user.id)

        self.assertEqual(self._deposit('2024-01-20').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.delete(f'/api/v1/transactions/{posted}/').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._deposit('2024-02-01').status_code, status.HTTP_201_CREATED)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('1200.00'))
        self.assertEqual(Transaction.objects.filter(tenant=self.tenant).count(), 2)

    def test_close_blocks_expense_paid_from_account(self):
        self._close(self.january['id'])
        response = self.client.post('/api/v1/expenses/', {
            'category': TestDataFactory.create_expense_category(self.tenant).id,
            'amount': '10.00', 'date': '2024-01-20', 'account': self.account.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Expense.objects.filter(tenant=self.tenant).exists())

    def test_reopen_allows_postings_again(self):
        self._close(self.january['id'])
        self.assertEqual(self._close(self.january['id']).status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f"/api/v1/accounting-periods/{self.january['id']}/reopen/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(self._deposit('2024-01-20').status_code, status.HTTP_201_CREATED)

    def test_reopen_requires_closed_period(self):
        response = self.client.post(f"/api/v1/accounting-periods/{self.january['id']}/reopen/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_closed_period_cannot_be_edited_or_deleted(self):
        self._close(self.january['id'])
        url = f"/api/v1/accounting-periods/{self.january['id']}/"
        self.assertEqual(self.client.patch(url, {'notes': 'late note'}, format='json').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_400_BAD_REQUEST)

    def test_open_period_with_transactions_cannot_be_deleted(self):
        url = f"/api/v1/accounting-periods/{self.january['id']}/"
        self._deposit('2024-01-10')
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_400_BAD_REQUEST)

        empty = self._create('March 2024', '2024-03-01', '2024-03-31').data
        self.assertEqual(self.client.delete(f"/api/v1/accounting-periods/{empty['id']}/").status_code, status.HTTP_204_NO_CONTENT)

    def test_check_reports_closed_date(self):
        self._close(self.january['id'])
        data = self.client.get('/api/v1/accounting-periods/check/', {'date': '2024-01-15'}).data
        self.assertTrue(data['closed'])
        self.assertEqual(data['closed_period']['name'], 'January 2024')
        self.assertFalse(self.client.get('/api/v1/accounting-periods/check/', {'date': '2024-02-15'}).data['closed'])

    def test_periods_are_tenant_scoped(self):
        other = TestDataFactory.create_tenant()
        other_client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(tenant=other))
        # Same dates in another tenant do not overlap
        response = other_client.post('/api/v1/accounting-periods/', {
            'name': 'January 2024', 'start_date': '2024-01-01', 'end_date': '2024-01-31',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(other_client.post(f"/api/v1/accounting-periods/{self.january['id']}/close/").status_code,
                         status.HTTP_404_NOT_FOUND)
