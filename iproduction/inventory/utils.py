from decimal import Decimal

from django.db.models import DecimalField, ExpressionWrapper, F, Sum

from iproduction.catalog.models import Product, RawMaterial
from iproduction.production.models import Production, ProductionMaterial
from iproduction.purchasing.models import PurchaseItem
from iproduction.sales.models import SaleItem
from .models import ProductWaste, RawMaterialWaste, StockAdjustment

MONEY = DecimalField(max_digits=16, decimal_places=2)


def stock_valuation(tenant):
    """
    Stock value of products (stock x cost) and raw materials (stock x price)

    Returns {'products': [...], 'raw_materials': [...], 'product_total',
    'raw_material_total', 'total'} with Decimal values.
    """
    products = Product.objects.filter(tenant=tenant).annotate(
        value=ExpressionWrapper(F('stock') * F('cost'), output_field=MONEY)
    ).order_by('name')
    raw_materials = RawMaterial.objects.filter(tenant=tenant).annotate(
        value=ExpressionWrapper(F('stock') * F('price'), output_field=MONEY)
    ).order_by('name')

    product_rows = [
        {'id': p.id, 'name': p.name, 'sku': p.sku, 'stock': p.stock, 'unit': p.unit,
         'unit_cost': p.cost, 'value': p.value or Decimal('0.00')}
        for p in products
    ]
    material_rows = [
        {'id': m.id, 'name': m.name, 'sku': m.sku, 'stock': m.stock, 'unit': m.unit,
         'unit_cost': m.price, 'value': m.value or Decimal('0.00')}
        for m in raw_materials
    ]
    product_total = sum((row['value'] for row in product_rows), Decimal('0.00'))
    material_total = sum((row['value'] for row in material_rows), Decimal('0.00'))
    return {
        'products': product_rows,
        'raw_materials': material_rows,
        'product_total': product_total,
        'raw_material_total': material_total,
        'total': product_total + material_total,
    }


def _quantities_by(queryset, key):
    rows = queryset.values(key).annotate(qty=Sum('quantity')).order_by()
    return {row[key]: row['qty'] or Decimal('0') for row in rows}


def _merge(*signed_maps):
    merged = {}
    for sign, quantities in signed_maps:
        for pk, qty in quantities.items():
            merged[pk] = merged.get(pk, Decimal('0')) + sign * qty
    return merged


def movements_after(tenant, as_of):
    """
    Net stock change per product and raw material from records dated after as_of

    Returns (product_deltas, raw_material_deltas); subtracting a delta from
    the current stock gives the stock held at the end of as_of.
    """
    completed = Production.objects.filter(tenant=tenant, status='completed', end_date__gt=as_of)
    product_deltas = _merge(
        (-1, _quantities_by(SaleItem.objects.filter(sale__tenant=tenant, sale__date__gt=as_of), 'product_id')),
        (1, {row['product_id']: row['qty'] or Decimal('0') for row in
             completed.values('product_id').annotate(qty=Sum('completed_qty')).order_by()}),
        (-1, _quantities_by(ProductWaste.objects.filter(tenant=tenant, date__gt=as_of), 'product_id')),
    )

    adjustments = StockAdjustment.objects.filter(tenant=tenant, date__gt=as_of).values('raw_material_id').annotate(
        qty=Sum(F('new_stock') - F('previous_stock'))).order_by()
    raw_material_deltas = _merge(
        (1, _quantities_by(PurchaseItem.objects.filter(purchase__tenant=tenant, purchase__date__gt=as_of), 'raw_material_id')),
        (-1, _quantities_by(ProductionMaterial.objects.filter(
            production__tenant=tenant, production__start_date__gt=as_of), 'raw_material_id')),
        (1, _quantities_by(ProductionMaterial.objects.filter(
            production__tenant=tenant, production__status='cancelled', production__end_date__gt=as_of), 'raw_material_id')),
        (1, {row['raw_material_id']: row['qty'] or Decimal('0') for row in adjustments}),
        (-1, _quantities_by(RawMaterialWaste.objects.filter(tenant=tenant, date__gt=as_of), 'raw_material_id')),
    )
    return product_deltas, raw_material_deltas


def inventory_value(tenant, as_of=None):
    """
    Total stock value; used by the balance sheet and trial balance.

    With as_of, stock is first rolled back past later sales, purchases,
    productions, adjustments and waste, then valued at today's cost.
    """
    if as_of is None:
        totals = [
            Product.objects.filter(tenant=tenant).aggregate(
                v=Sum(ExpressionWrapper(F('stock') * F('cost'), output_field=MONEY)))['v'],
            RawMaterial.objects.filter(tenant=tenant).aggregate(
                v=Sum(ExpressionWrapper(F('stock') * F('price'), output_field=MONEY)))['v'],
        ]
        return sum((t or Decimal('0.00') for t in totals), Decimal('0.00')).quantize(Decimal('0.01'))

    product_deltas, raw_material_deltas = movements_after(tenant, as_of)
    total = Decimal('0.00')
    for pk, stock, cost in Product.objects.filter(tenant=tenant).values_list('id', 'stock', 'cost'):
        total += (stock - product_deltas.get(pk, Decimal('0'))) * cost
    for pk, stock, price in RawMaterial.objects.filter(tenant=tenant).values_list('id', 'stock', 'price'):
        total += (stock - raw_material_deltas.get(pk, Decimal('0'))) * price
    return total.quantize(Decimal('0.01'))
