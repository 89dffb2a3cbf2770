"""
Stock and balance effects of sales

A sale takes its items out of product stock and adds its due amount to the
customer balance. Updates reverse the old effects before applying new ones.
"""
import logging
from collections import defaultdict
from decimal import Decimal

from iproduction.catalog.utils import change_product_stock
from iproduction.parties.models import Customer
from iproduction.parties.utils import change_party_balance

logger = logging.getLogger(__name__)


def _quantities_by_product(sale):
    quantities = defaultdict(Decimal)
    for item in sale.items.all():
        quantities[item.product_id] += item.quantity
    return quantities


def apply_sale_effects(sale):
    """Decrement product stock and add the due amount to the customer balance"""
    for product_id, quantity in sorted(_quantities_by_product(sale).items()):
        change_product_stock(product_id, -quantity)
    if sale.due:
        change_party_balance(Customer, sale.customer_id, sale.due)
    logger.info(f"Applied sale {sale.invoice_no}: total {sale.total}, due {sale.due}")


def reverse_sale_effects(sale):
    """Return stock and remove the due amount from the customer balance"""
    for product_id, quantity in sorted(_quantities_by_product(sale).items()):
        change_product_stock(product_id, quantity)
    if sale.due:
        change_party_balance(Customer, sale.customer_id, -sale.due)
    logger.info(f"Reversed sale {sale.invoice_no}")
