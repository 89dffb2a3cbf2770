"""
Stock movement helpers for products and raw materials

Callers run inside transaction.atomic(); rows are locked with
select_for_update before their stock is changed.
"""
import logging
from decimal import Decimal

from rest_framework import serializers

from .models import Product, RawMaterial

logger = logging.getLogger(__name__)


def _change_stock(model, pk, delta, clamp=False):
    item = model.objects.select_for_update().get(pk=pk)
    new_stock = item.stock + Decimal(delta)
    if new_stock < 0:
        if not clamp:
            raise serializers.ValidationError({
                'stock': f"Insufficient stock for {item.name}: available {item.stock}, required {-Decimal(delta)}"
            })
        new_stock = Decimal('0')
    old_stock = item.stock
    item.stock = new_stock
    item.save(update_fields=['stock', 'updated_at'])
    logger.debug(f"{model.__name__} {item.pk} stock {old_stock} -> {new_stock}")
    return item


def change_product_stock(product_id, delta, clamp=False):
    """Add delta (may be negative) to a product's stock"""
    return _change_stock(Product, product_id, delta, clamp=clamp)


def change_raw_material_stock(raw_material_id, delta, clamp=False):
    """Add delta (may be negative) to a raw material's stock"""
    return _change_stock(RawMaterial, raw_material_id, delta, clamp=clamp)


def bom_requirements(product, quantity):
    """{raw_material: required quantity} to produce `quantity` units of product"""
    quantity = Decimal(quantity)
    return {
        line.raw_material: line.quantity * quantity
        for line in product.bom_lines.select_related('raw_material')
    }


def find_shortages(requirements):
    """List raw materials whose stock cannot cover the required quantities"""
    shortages = []
    locked = RawMaterial.objects.select_for_update().in_bulk([m.pk for m in requirements])
    for material, required in requirements.items():
        available = locked[material.pk].stock
        if available < required:
            shortages.append({
                'raw_material': material.pk,
                'name': material.name,
                'required': str(required),
                'available': str(available),
            })
    return shortages
