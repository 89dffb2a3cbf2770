"""
HTML documents rendered from tenant records

Each renderer takes (tenant, object_id, params) and returns a Document.
Missing records raise DocumentNotFound.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from iproduction.accounting.statements import STATEMENT_TYPES, build_statement, statement_window
from iproduction.catalog.models import Currency
from iproduction.core.models import CompanyProfile
from iproduction.production.models import Production
from iproduction.purchasing.models import Purchase
from iproduction.sales.models import Sale
from .barcodes import code128_data_url

logger = logging.getLogger(__name__)


class DocumentNotFound(Exception):
    pass


class UnknownDocument(Exception):
    pass


@dataclass
class Document:
    kind: str
    identifier: str
    subject: str
    html: str

    @property
    def filename(self):
        return f"{self.kind}-{self.identifier}.html"


COMMON_SYMBOLS = {'USD': '$', 'EUR': '€', 'GBP': '£', 'INR': '₹', 'BDT': '৳', 'JPY': '¥'}


def currency_symbol(tenant, code=None):
    """Symbol for the tenant's currency: its own Currency record first, then the common symbols"""
    code = (code or settings.DEFAULT_CURRENCY).upper()
    currency = Currency.objects.filter(tenant=tenant, code__iexact=code).exclude(symbol='').first()
    if currency is not None:
        return currency.symbol
    return COMMON_SYMBOLS.get(code, f"{code} ")


def _context(tenant, **extra):
    company = CompanyProfile.for_tenant(tenant)
    return {
        'company': company,
        'currency': currency_symbol(tenant, company.currency or tenant.currency),
        'generated_at': timezone.now(),
        **extra,
    }


def _get(model, tenant, object_id, label):
    try:
        return model.objects.get(pk=int(object_id), tenant=tenant)
    except (model.DoesNotExist, TypeError, ValueError):
        raise DocumentNotFound(f"{label} not found")


def _signer(user):
    return user.get_display_name() if user else None


def render_invoice(tenant, object_id, params=None):
    sale = _get(Sale, tenant, object_id, 'Sale')
    html = render_to_string('documents/invoice.html', _context(
        tenant, sale=sale, items=sale.items.select_related('product'),
    ))
    return Document('invoice', str(sale.pk), f"Invoice {sale.invoice_no}", html)


def render_purchase_order(tenant, object_id, params=None):
    purchase = _get(Purchase, tenant, object_id, 'Purchase')
    html = render_to_string('documents/purchase_order.html', _context(
        tenant, purchase=purchase, items=purchase.items.select_related('raw_material'),
        signer=_signer(purchase.created_by),
    ))
    return Document('purchase-order', str(purchase.pk), f"Purchase Order {purchase.invoice_no}", html)


def _render_challan(tenant, kind, title, challan_no, **context):
    context = _context(tenant, title=title, challan_no=challan_no, barcode=code128_data_url(challan_no), **context)
    return render_to_string('documents/challan.html', context)


def render_delivery_challan(tenant, object_id, params=None):
    """Outward challan for goods leaving with a sale"""
    sale = _get(Sale, tenant, object_id, 'Sale')
    company = CompanyProfile.for_tenant(tenant)
    challan_no = f"DC-{sale.invoice_no}"
    lines = [
        {'description': item.product.name, 'quantity': item.quantity, 'unit': item.product.unit, 'remarks': ''}
        for item in sale.items.select_related('product')
    ]
    html = _render_challan(
        tenant, 'delivery-challan', 'Delivery Challan', challan_no,
        date=sale.date, reference=sale.invoice_no, lines=lines,
        from_party=company, to_party=sale.customer,
        signer=_signer(sale.created_by), receiver_label='Customer Signature',
    )
    return Document('delivery-challan', str(sale.pk), f"Delivery Challan {challan_no}", html)


def render_receipt_challan(tenant, object_id, params=None):
    """Inward challan (gate pass) for raw materials arriving with a purchase"""
    purchase = _get(Purchase, tenant, object_id, 'Purchase')
    company = CompanyProfile.for_tenant(tenant)
    challan_no = f"RC-{purchase.invoice_no}"
    lines = [
        {'description': item.raw_material.name, 'quantity': item.quantity, 'unit': item.raw_material.unit, 'remarks': ''}
        for item in purchase.items.select_related('raw_material')
    ]
    html = _render_challan(
        tenant, 'receipt-challan', 'Receipt Challan', challan_no,
        date=purchase.date, reference=purchase.invoice_no, lines=lines,
        from_party=purchase.supplier, to_party=company,
        signer=_signer(purchase.created_by), receiver_label='Store Keeper',
    )
    return Document('receipt-challan', str(purchase.pk), f"Receipt Challan {challan_no}", html)


def render_production_report(tenant, object_id, params=None):
    production = _get(Production, tenant, object_id, 'Production')
    losses = list(production.losses.all())
    html = render_to_string('documents/production_report.html', _context(
        tenant,
        production=production,
        efficiency=production.efficiency,
        transitions=production.transitions.select_related('stage'),
        losses=losses,
        total_losses=sum((loss.quantity for loss in losses), Decimal('0')),
    ))
    return Document('production-report', str(production.pk), f"Production Report {production.reference_no}", html)


def render_financial_statement(tenant, statement_type, params=None):
    """statement_type is trial-balance, balance-sheet or profit-loss"""
    params = params or {}
    if statement_type not in STATEMENT_TYPES:
        raise UnknownDocument(f"Unknown statement type: {statement_type}")
    start_date, end_date = statement_window(params)
    statement = build_statement(tenant, statement_type, start_date, end_date)
    title = statement_type.replace('-', ' ').title()
    html = render_to_string('documents/financial_statement.html', _context(tenant, statement=statement, title=title))
    return Document(statement_type, end_date.isoformat(), f"{title} {end_date.isoformat()}", html)


# kind -> (renderer, module whose view permission is required)
RENDERERS = {
    'invoice': (render_invoice, 'sales'),
    'purchase-order': (render_purchase_order, 'purchases'),
    'delivery-challan': (render_delivery_challan, 'sales'),
    'receipt-challan': (render_receipt_challan, 'purchases'),
    'production-report': (render_production_report, 'production'),
    'financial-statement': (render_financial_statement, 'accounting'),
}


def render_document(kind, tenant, object_id, params=None):
    try:
        renderer, _ = RENDERERS[kind]
    except KeyError:
        raise UnknownDocument(f"Unknown document type: {kind}")
    return renderer(tenant, object_id, params)
