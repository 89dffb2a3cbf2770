"""
Tenant data export, import and reset.

COLLECTIONS lists every exported collection in dependency order: a model
only references models listed before it. Deletes run in reverse order.
"""
import logging

from django.apps import apps
from django.core import serializers as django_serializers
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import RestrictedError
from rest_framework.exceptions import ValidationError

from .cache_signals import suspend_cache_signals
from .cache_utils import bump_tenant_cache_version
from .demo import seed_demo_data
from .models import CompanyProfile, User
from .utils import json_safe

logger = logging.getLogger(__name__)

# (collection name, model label, lookup reaching the tenant)
COLLECTIONS = [
    ('outlets', 'outlets.Outlet', 'tenant'),
    ('units', 'catalog.Unit', 'tenant'),
    ('currencies', 'catalog.Currency', 'tenant'),
    ('product_categories', 'catalog.ProductCategory', 'tenant'),
    ('products', 'catalog.Product', 'tenant'),
    ('raw_material_categories', 'catalog.RawMaterialCategory', 'tenant'),
    ('raw_materials', 'catalog.RawMaterial', 'tenant'),
    ('bom_lines', 'catalog.BillOfMaterialLine', 'tenant'),
    ('non_inventory_items', 'catalog.NonInventoryItem', 'tenant'),
    ('customers', 'parties.Customer', 'tenant'),
    ('suppliers', 'parties.Supplier', 'tenant'),
    ('accounts', 'accounting.Account', 'tenant'),
    ('transactions', 'accounting.Transaction', 'tenant'),
    ('expense_categories', 'accounting.ExpenseCategory', 'tenant'),
    ('expenses', 'accounting.Expense', 'tenant'),
    ('accounting_periods', 'accounting.AccountingPeriod', 'tenant'),
    ('quotations', 'sales.Quotation', 'tenant'),
    ('quotation_items', 'sales.QuotationItem', 'quotation__tenant'),
    ('sales', 'sales.Sale', 'tenant'),
    ('sale_items', 'sales.SaleItem', 'sale__tenant'),
    ('purchases', 'purchasing.Purchase', 'tenant'),
    ('purchase_items', 'purchasing.PurchaseItem', 'purchase__tenant'),
    ('goods_receipts', 'purchasing.GoodsReceipt', 'tenant'),
    ('goods_receipt_items', 'purchasing.GoodsReceiptItem', 'goods_receipt__tenant'),
    ('customer_receives', 'parties.CustomerReceive', 'tenant'),
    ('supplier_payments', 'parties.SupplierPayment', 'tenant'),
    ('production_stages', 'production.ProductionStage', 'tenant'),
    ('productions', 'production.Production', 'tenant'),
    ('production_materials', 'production.ProductionMaterial', 'production__tenant'),
    ('stage_transitions', 'production.StageTransition', 'production__tenant'),
    ('production_losses', 'production.ProductionLoss', 'tenant'),
    ('qc_templates', 'production.QCTemplate', 'tenant'),
    ('non_conformance_reports', 'production.NonConformanceReport', 'tenant'),
    ('qc_inspections', 'production.QCInspection', 'tenant'),
    ('stock_adjustments', 'inventory.StockAdjustment', 'tenant'),
    ('raw_material_wastes', 'inventory.RawMaterialWaste', 'tenant'),
    ('product_wastes', 'inventory.ProductWaste', 'tenant'),
    ('employees', 'payroll.Employee', 'tenant'),
    ('attendance', 'payroll.Attendance', 'tenant'),
    ('payrolls', 'payroll.Payroll', 'tenant'),
]

COMPANY_PROFILE_FIELDS = ['name', 'email', 'phone', 'address', 'logo', 'tax_number', 'currency']


def _queryset(label, lookup, tenant):
    return apps.get_model(label).objects.filter(**{lookup: tenant}).order_by('pk')


def export_tenant_data(tenant):
    """{collection: [row, ...], 'company_profile': {...}} for one tenant"""
    data = {}
    for name, label, lookup in COLLECTIONS:
        rows = []
        for entry in django_serializers.serialize('python', _queryset(label, lookup, tenant)):
            fields = entry['fields']
            fields.pop('tenant', None)
            rows.append({'id': entry['pk'], **fields})
        data[name] = rows

    profile = CompanyProfile.for_tenant(tenant)
    data['company_profile'] = {field: getattr(profile, field) for field in COMPANY_PROFILE_FIELDS}
    return json_safe(data)


def delete_tenant_data(tenant):
    """Delete every exported collection of the tenant; returns {collection: count}"""
    counts = {}
    for name, label, lookup in reversed(COLLECTIONS):
        counts[name] = _queryset(label, lookup, tenant).count()
        _queryset(label, lookup, tenant).delete()
    return counts


def _build_instance(model, row, tenant, id_maps):
    if not isinstance(row, dict):
        raise TypeError(f"{model.__name__} rows must be objects")

    values = {}
    for field in model._meta.concrete_fields:
        if field.primary_key:
            continue
        if field.name == 'tenant':
            values['tenant'] = tenant
            continue
        if field.name not in row:
            continue

        raw = row[field.name]
        if field.is_relation:
            related_label = field.related_model._meta.label
            if raw is None:
                values[field.attname] = None
            elif related_label in id_maps:
                values[field.attname] = id_maps[related_label][raw]
            elif field.related_model is User:
                # Users are not part of the snapshot; keep only this tenant's users
                values[field.attname] = raw if User.objects.filter(pk=raw, tenant=tenant).exists() else None
            else:
                raise ValueError(f"{model.__name__}.{field.name} references an unknown collection")
        else:
            values[field.attname] = field.to_python(raw)

    instance = model(**values)
    instance.full_clean(exclude=[f.name for f in model._meta.concrete_fields if f.is_relation],
                        validate_unique=False)
    instance.save()
    return instance


def _load_collections(tenant, payload):
    counts = {}
    id_maps = {}
    for name, label, _ in COLLECTIONS:
        model = apps.get_model(label)
        rows = payload.get(name) or []
        if not isinstance(rows, list):
            raise TypeError(f"'{name}' must be a list")
        id_map = id_maps.setdefault(model._meta.label, {})
        for row in rows:
            instance = _build_instance(model, row, tenant, id_maps)
            id_map[row['id']] = instance.pk
        counts[name] = len(rows)

    profile_data = payload.get('company_profile')
    if profile_data:
        if not isinstance(profile_data, dict):
            raise TypeError("'company_profile' must be an object")
        profile = CompanyProfile.for_tenant(tenant)
        for field in COMPANY_PROFILE_FIELDS:
            if field in profile_data:
                setattr(profile, field, profile_data[field] or '')
        profile.full_clean()
        profile.save()
    return counts


def import_tenant_data(tenant, payload):
    """
    Replace the tenant's collections with an export snapshot.

    All or nothing: any bad row raises a DRF ValidationError and the
    previous data stays in place.
    """
    known = {name for name, _, _ in COLLECTIONS}
    if not isinstance(payload, dict) or not known & set(payload):
        raise ValidationError({'error': 'Payload is not a data export snapshot.'})

    try:
        with suspend_cache_signals(), transaction.atomic():
            delete_tenant_data(tenant)
            counts = _load_collections(tenant, payload)
    except KeyError as exc:
        logger.warning(f"Import for tenant {tenant.slug} rejected: unknown reference {exc}")
        raise ValidationError({'error': f'Unknown reference {exc} in import payload.'})
    except (TypeError, ValueError, DjangoValidationError, IntegrityError, RestrictedError) as exc:
        logger.warning(f"Import for tenant {tenant.slug} rejected: {exc}")
        raise ValidationError({'error': f'Invalid import payload: {exc}'})

    bump_tenant_cache_version(tenant.id)
    logger.info(f"Imported {sum(counts.values())} records for tenant {tenant.slug}")
    return counts


def reset_tenant_data(tenant, seed=True):
    """Delete the tenant's business data, then optionally load the demo dataset"""
    with suspend_cache_signals(), transaction.atomic():
        deleted = delete_tenant_data(tenant)
        seeded = seed_demo_data(tenant) if seed else {}

    bump_tenant_cache_version(tenant.id)
    logger.info(f"Reset data for tenant {tenant.slug}: deleted {sum(deleted.values())}, seeded {sum(seeded.values())}")
    return {'deleted': deleted, 'seeded': seeded}


def has_business_data(tenant):
    return any(_queryset(label, lookup, tenant).exists() for _, label, lookup in COLLECTIONS)
