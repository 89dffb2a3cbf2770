"""
Balance bookkeeping for customers and suppliers

Customer.balance is what the customer owes us, Supplier.balance is what we
owe the supplier. Every helper runs inside transaction.atomic() and locks
the rows it changes.
"""
import logging
from decimal import Decimal

from rest_framework import serializers

from iproduction.accounting.utils import post_transaction, reverse_transaction

logger = logging.getLogger(__name__)


def change_party_balance(party_model, pk, delta):
    """Add delta (may be negative) to a customer or supplier balance"""
    party = party_model.objects.select_for_update().get(pk=pk)
    old_balance = party.balance
    party.balance = party.balance + Decimal(delta)
    party.save(update_fields=['balance', 'updated_at'])
    logger.info(f"{party_model.__name__} {party.name}: balance {old_balance} -> {party.balance}")
    return party


def change_document_paid(document_model, pk, amount):
    """Raise a sale/purchase's paid amount (negative amount lowers it)"""
    document = document_model.objects.select_for_update().get(pk=pk)
    if amount > document.due:
        raise serializers.ValidationError({
            'amount': f"Amount {amount} exceeds the due amount {document.due} of {document}"
        })
    document.paid += amount
    document.refresh_payment_status()
    document.save(update_fields=['paid', 'due', 'status', 'updated_at'])
    return document


def apply_party_payment(payment, party_field, document_field, transaction_type):
    """
    Book a saved CustomerReceive/SupplierPayment:
    lower the party balance, settle the linked document and post to the account.
    """
    party = getattr(payment, party_field)
    change_party_balance(type(party), party.pk, -payment.amount)

    document = getattr(payment, document_field)
    if document is not None:
        change_document_paid(type(document), document.pk, payment.amount)

    if payment.account_id:
        verb = 'Received from' if transaction_type == 'deposit' else 'Paid to'
        payment.transaction = post_transaction(
            payment.account,
            transaction_type,
            payment.amount,
            payment.date,
            description=f"{verb} {party.name}",
            reference=payment.reference or (str(document) if document is not None else ''),
        )
        payment.save(update_fields=['transaction'])
    return payment


def reverse_party_payment(payment, party_field, document_field):
    """Undo apply_party_payment before the payment is deleted"""
    party = getattr(payment, party_field)
    change_party_balance(type(party), party.pk, payment.amount)

    document = getattr(payment, document_field)
    if document is not None:
        locked = type(document).objects.select_for_update().get(pk=document.pk)
        locked.paid -= payment.amount
        locked.refresh_payment_status()
        locked.save(update_fields=['paid', 'due', 'status', 'updated_at'])

    if payment.transaction_id:
        reverse_transaction(payment.transaction)


def build_statement(party, documents, payments):
    """
    Chronological statement with a running balance.

    `documents` are (date, reference, total, paid_at_creation) tuples and
    `payments` are (date, reference, amount) tuples. The opening balance is
    derived so the closing balance matches the stored party balance.
    """
    rows = []
    for date, reference, total, upfront in documents:
        rows.append({'date': date, 'type': 'document', 'reference': reference,
                     'debit': total, 'credit': upfront})
    for date, reference, amount in payments:
        rows.append({'date': date, 'type': 'payment', 'reference': reference,
                     'debit': Decimal('0.00'), 'credit': amount})
    rows.sort(key=lambda row: (row['date'], row['type'] == 'payment'))

    net_movement = sum((row['debit'] - row['credit'] for row in rows), Decimal('0.00'))
    opening_balance = party.balance - net_movement

    running = opening_balance
    for row in rows:
        running += row['debit'] - row['credit']
        row['balance'] = running
        row['date'] = row['date'].isoformat()
        for key in ('debit', 'credit', 'balance'):
            row[key] = str(row[key])

    return {
        'party': {'id': party.id, 'name': party.name, 'phone': party.phone, 'email': party.email},
        'opening_balance': str(opening_balance),
        'entries': rows,
        'closing_balance': str(party.balance),
    }
