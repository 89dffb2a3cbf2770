from django.db import models
from decimal import Decimal

from iproduction.core.models import TenantScopedModel


class StockAdjustment(TenantScopedModel):
    """Manual raw-material stock correction (in/out)"""
    ADJUSTMENT_TYPE_CHOICES = [
        ('add', 'Stock In'),
        ('subtract', 'Stock Out'),
    ]

    raw_material = models.ForeignKey('catalog.RawMaterial', on_delete=models.CASCADE, related_name='adjustments')
    type = models.CharField(max_length=10, choices=ADJUSTMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    previous_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    new_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_adjustments')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'stock_adjustments'
        ordering = ['-date', '-id']


class RawMaterialWaste(TenantScopedModel):
    """Raw material written off as waste"""
    raw_material = models.ForeignKey('catalog.RawMaterial', on_delete=models.CASCADE, related_name='wastes')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'raw_material_wastes'
        ordering = ['-date', '-id']


class ProductWaste(TenantScopedModel):
    """Finished goods written off as waste"""
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='wastes')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'product_wastes'
        ordering = ['-date', '-id']
