"""
Stock and balance effects of purchases

A purchase adds its items to raw material stock and its due amount to the
supplier balance. Updates apply only the difference against a snapshot
taken before the change, so already consumed material does not block
edits that keep the quantities.
"""
import logging
from collections import defaultdict
from decimal import Decimal

from iproduction.catalog.utils import change_raw_material_stock
from iproduction.parties.models import Supplier
from iproduction.parties.utils import change_party_balance

logger = logging.getLogger(__name__)


def material_quantities(purchase):
    quantities = defaultdict(Decimal)
    for item in purchase.items.all():
        quantities[item.raw_material_id] += item.quantity
    return dict(quantities)


def snapshot_purchase(purchase):
    """(quantities, supplier_id, due) before an update"""
    return material_quantities(purchase), purchase.supplier_id, purchase.due


def apply_purchase_effects(purchase, previous=None):
    """
    Move raw material stock and the supplier balance to match the purchase.
    `previous` is a snapshot_purchase() result when the purchase was already applied.
    """
    old_quantities, old_supplier_id, old_due = previous or ({}, None, Decimal('0.00'))
    new_quantities = material_quantities(purchase)

    for material_id in sorted(set(old_quantities) | set(new_quantities)):
        delta = new_quantities.get(material_id, Decimal('0')) - old_quantities.get(material_id, Decimal('0'))
        if delta:
            change_raw_material_stock(material_id, delta)

    if old_due and old_supplier_id:
        change_party_balance(Supplier, old_supplier_id, -old_due)
    if purchase.due:
        change_party_balance(Supplier, purchase.supplier_id, purchase.due)
    logger.info(f"Applied purchase {purchase.invoice_no}: total {purchase.total}, due {purchase.due}")


def reverse_purchase_effects(purchase):
    """
    Take the purchased quantities back out of stock and remove the due amount.
    Raises ValidationError when the material was already consumed.
    """
    for material_id, quantity in sorted(material_quantities(purchase).items()):
        change_raw_material_stock(material_id, -quantity)
    if purchase.due:
        change_party_balance(Supplier, purchase.supplier_id, -purchase.due)
    logger.info(f"Reversed purchase {purchase.invoice_no}")
