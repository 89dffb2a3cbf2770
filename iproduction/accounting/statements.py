"""
Financial statements derived from operational records

There is no double-entry ledger: figures come straight from sales,
purchases, expenses, payroll, party balances, account balances and stock.
Values are Decimals; callers convert them for JSON or templates.
"""
from datetime import date
from decimal import Decimal

from django.db.models import Q, Sum
from django.utils import timezone

from iproduction.inventory.utils import inventory_value
from iproduction.core.utils import check_date_window, parse_date_param
from iproduction.parties.models import Customer, CustomerReceive, Supplier, SupplierPayment
from iproduction.payroll.models import Payroll
from iproduction.purchasing.models import Purchase
from iproduction.sales.models import Sale
from .models import Account, Expense, Transaction

ZERO = Decimal('0.00')

STATEMENT_TYPES = ('trial-balance', 'balance-sheet', 'profit-loss')


def statement_window(params):
    """start_date/end_date query params; defaults to the start of end_date's year up to today"""
    end_date = parse_date_param(params.get('end_date'), timezone.now().date())
    start_date = parse_date_param(params.get('start_date'), date(end_date.year, 1, 1))
    check_date_window(start_date, end_date)
    return start_date, end_date


def _sum(queryset, field):
    return queryset.aggregate(total=Sum(field))['total'] or ZERO


def _paid_payroll(tenant, start_date, end_date):
    # Payroll months are YYYY-MM strings, so lexical comparison matches calendar order
    return Payroll.objects.filter(
        tenant=tenant, status='paid',
        month__gte=start_date.strftime('%Y-%m'), month__lte=end_date.strftime('%Y-%m'),
    )


def _expenses_by_category(tenant, start_date, end_date):
    rows = (
        Expense.objects.filter(tenant=tenant, date__gte=start_date, date__lte=end_date)
        .values('category__name')
        .annotate(amount=Sum('amount'))
        .order_by('category__name')
    )
    return [{'category': row['category__name'], 'amount': row['amount'] or ZERO} for row in rows]


def _settlements_after(documents, payments, relation, as_of):
    """
    Balance movement from documents and payments dated after as_of

    A document adds its due plus whatever was later paid against it (its
    upfront part never touched the balance); a payment takes its amount off.
    """
    later_documents = documents.filter(date__gt=as_of)
    upfront = _sum(later_documents, 'total') - _sum(later_documents, 'paid') + _sum(
        payments.filter(**{f'{relation}__in': later_documents}), 'amount')
    return upfront - _sum(payments.filter(date__gt=as_of), 'amount')


def receivables_as_of(tenant, as_of):
    current = _sum(Customer.objects.filter(tenant=tenant), 'balance')
    return current - _settlements_after(
        Sale.objects.filter(tenant=tenant), CustomerReceive.objects.filter(tenant=tenant), 'sale', as_of)


def payables_as_of(tenant, as_of):
    current = _sum(Supplier.objects.filter(tenant=tenant), 'balance')
    return current - _settlements_after(
        Purchase.objects.filter(tenant=tenant), SupplierPayment.objects.filter(tenant=tenant), 'purchase', as_of)


def pending_payroll_as_of(tenant, as_of):
    """Net salary for months up to as_of that were still unpaid at the end of that day"""
    payrolls = Payroll.objects.filter(tenant=tenant, month__lte=as_of.strftime('%Y-%m')).filter(
        Q(status='pending') | Q(paid_at__date__gt=as_of)
    )
    return _sum(payrolls, 'net_salary')


def account_balances(tenant, as_of=None):
    """Account balances, rolled back past any transactions dated after as_of"""
    rows = []
    for account in Account.objects.filter(tenant=tenant).order_by('name'):
        balance = account.balance
        if as_of is not None:
            later = Transaction.objects.filter(account=account, date__gt=as_of)
            balance -= _sum(later.filter(type='deposit'), 'amount') - _sum(later.filter(type='withdraw'), 'amount')
        rows.append({'id': account.id, 'name': account.name, 'type': account.type, 'balance': balance})
    return rows


def profit_and_loss(tenant, start_date, end_date):
    """Revenue against purchases, expenses and paid payroll for the window"""
    revenue = _sum(Sale.objects.filter(tenant=tenant, date__gte=start_date, date__lte=end_date), 'total')
    purchases = _sum(Purchase.objects.filter(tenant=tenant, date__gte=start_date, date__lte=end_date), 'total')
    expenses = _expenses_by_category(tenant, start_date, end_date)
    expense_total = sum((row['amount'] for row in expenses), ZERO)
    payroll = _sum(_paid_payroll(tenant, start_date, end_date), 'net_salary')

    total_costs = purchases + expense_total + payroll
    return {
        'type': 'profit-loss',
        'start_date': start_date,
        'end_date': end_date,
        'revenue': revenue,
        'costs': {
            'purchases': purchases,
            'expenses': expenses,
            'expense_total': expense_total,
            'payroll': payroll,
        },
        'total_costs': total_costs,
        'net_profit': revenue - total_costs,
    }


def balance_sheet(tenant, end_date):
    """Assets, liabilities and equity as of end_date"""
    accounts = account_balances(tenant, as_of=end_date)
    cash_and_bank = sum((row['balance'] for row in accounts), ZERO)
    receivables = receivables_as_of(tenant, end_date)
    inventory = inventory_value(tenant, as_of=end_date)
    payables = payables_as_of(tenant, end_date)
    pending_payroll = pending_payroll_as_of(tenant, end_date)

    total_assets = cash_and_bank + receivables + inventory
    total_liabilities = payables + pending_payroll
    return {
        'type': 'balance-sheet',
        'end_date': end_date,
        'assets': {
            'accounts': accounts,
            'cash_and_bank': cash_and_bank,
            'receivables': receivables,
            'inventory': inventory,
            'total': total_assets,
        },
        'liabilities': {
            'payables': payables,
            'pending_payroll': pending_payroll,
            'total': total_liabilities,
        },
        'equity': total_assets - total_liabilities,
    }


def trial_balance(tenant, start_date, end_date):
    """
    Debit/credit listing whose totals agree by construction.

    Debits: positive account balances, receivables, inventory, expenses,
    purchases and paid payroll. Credits: sales revenue, payables and
    overdrawn accounts. Retained equity balances the two sides.
    """
    debits = []
    credits = []
    for account in account_balances(tenant, as_of=end_date):
        if account['balance'] > 0:
            debits.append({'account': account['name'], 'amount': account['balance']})
        elif account['balance'] < 0:
            credits.append({'account': f"{account['name']} (overdrawn)", 'amount': -account['balance']})

    debits.extend([
        {'account': 'Accounts Receivable', 'amount': receivables_as_of(tenant, end_date)},
        {'account': 'Inventory', 'amount': inventory_value(tenant, as_of=end_date)},
    ])
    for row in _expenses_by_category(tenant, start_date, end_date):
        debits.append({'account': f"Expense: {row['category']}", 'amount': row['amount']})
    debits.extend([
        {'account': 'Purchases', 'amount': _sum(Purchase.objects.filter(tenant=tenant, date__gte=start_date, date__lte=end_date), 'total')},
        {'account': 'Payroll', 'amount': _sum(_paid_payroll(tenant, start_date, end_date), 'net_salary')},
    ])
    credits.extend([
        {'account': 'Sales Revenue', 'amount': _sum(Sale.objects.filter(tenant=tenant, date__gte=start_date, date__lte=end_date), 'total')},
        {'account': 'Accounts Payable', 'amount': payables_as_of(tenant, end_date)},
    ])

    difference = sum((row['amount'] for row in debits), ZERO) - sum((row['amount'] for row in credits), ZERO)
    if difference >= 0:
        credits.append({'account': 'Retained Equity', 'amount': difference})
    else:
        debits.append({'account': 'Retained Deficit', 'amount': -difference})

    total_debit = sum((row['amount'] for row in debits), ZERO)
    total_credit = sum((row['amount'] for row in credits), ZERO)
    return {
        'type': 'trial-balance',
        'start_date': start_date,
        'end_date': end_date,
        'debits': debits,
        'credits': credits,
        'total_debit': total_debit,
        'total_credit': total_credit,
        'balanced': total_debit == total_credit,
    }


def build_statement(tenant, statement_type, start_date, end_date):
    if statement_type == 'profit-loss':
        return profit_and_loss(tenant, start_date, end_date)
    if statement_type == 'balance-sheet':
        return balance_sheet(tenant, end_date)
    if statement_type == 'trial-balance':
        return trial_balance(tenant, start_date, end_date)
    raise ValueError(f"Unknown statement type: {statement_type}")
