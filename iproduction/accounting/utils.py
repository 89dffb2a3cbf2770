"""
Account postings shared by payments, expenses and payroll

All helpers expect to run inside transaction.atomic(). Postings dated inside a
closed accounting period are refused with a ValidationError.
"""
import logging

from django.apps import apps
from rest_framework import serializers

from .models import Account, AccountingPeriod, Transaction

logger = logging.getLogger(__name__)

# Records that own a posted transaction; such transactions are changed through their owner
TRANSACTION_OWNERS = (
    ('accounting.Expense', 'expense'),
    ('parties.CustomerReceive', 'customer receive'),
    ('parties.SupplierPayment', 'supplier payment'),
    ('payroll.Payroll', 'payroll'),
)


def closed_period_for(tenant_id, date):
    return AccountingPeriod.objects.filter(
        tenant_id=tenant_id, status='closed', start_date__lte=date, end_date__gte=date
    ).first()


def ensure_period_open(tenant_id, date):
    """Refuse postings dated inside a closed accounting period"""
    period = closed_period_for(tenant_id, date)
    if period is not None:
        raise serializers.ValidationError({'date': f"{date} falls in the closed accounting period {period.name}."})


def _move_balance(account_id, delta):
    account = Account.objects.select_for_update().get(pk=account_id)
    account.balance += delta
    account.save(update_fields=['balance'])
    return account


def post_transaction(account, type, amount, date, description='', reference=''):
    """Create a transaction and apply it to the account balance"""
    ensure_period_open(account.tenant_id, date)
    transaction = Transaction.objects.create(
        tenant_id=account.tenant_id,
        account=account,
        type=type,
        amount=amount,
        date=date,
        description=description,
        reference=reference,
    )
    apply_transaction(transaction)
    return transaction


def apply_transaction(transaction):
    """Move the account balance for an already saved transaction"""
    ensure_period_open(transaction.tenant_id, transaction.date)
    account = _move_balance(transaction.account_id, transaction.signed_amount)
    logger.info(f"Account {account.name}: {transaction.type} {transaction.amount}, balance {account.balance}")
    return account


def unapply_transaction(transaction):
    """Take a transaction's movement back out of the account balance"""
    ensure_period_open(transaction.tenant_id, transaction.date)
    account = _move_balance(transaction.account_id, -transaction.signed_amount)
    logger.info(f"Account {account.name}: reversed {transaction.type} {transaction.amount}, balance {account.balance}")
    return account


def reverse_transaction(transaction):
    """Undo a transaction's balance movement and delete it"""
    unapply_transaction(transaction)
    transaction.delete()


def transaction_owner(transaction):
    """Label of the record that posted this transaction, or None for manual entries"""
    for model_label, label in TRANSACTION_OWNERS:
        if apps.get_model(model_label).objects.filter(transaction=transaction).exists():
            return label
    return None
