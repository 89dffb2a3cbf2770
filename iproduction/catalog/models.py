from django.db import models
from decimal import Decimal

from iproduction.core.models import TenantScopedModel


class Unit(TenantScopedModel):
    """Units of measure (Kilogram / kg)"""
    name = models.CharField(max_length=100)
    short_name = models.CharField(max_length=20)

    def __str__(self):
        return self.short_name

    class Meta:
        db_table = 'units'
        ordering = ['name']


class Currency(TenantScopedModel):
    """Currencies with a conversion rate against the tenant currency"""
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=10)
    symbol = models.CharField(max_length=10)
    rate = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('1'))

    def __str__(self):
        return self.code

    class Meta:
        db_table = 'currencies'
        verbose_name_plural = 'currencies'
        ordering = ['code']
        unique_together = [['tenant', 'code']]


class ProductCategory(TenantScopedModel):
    """Finished product categories"""
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'product_categories'
        verbose_name_plural = 'product categories'
        ordering = ['name']


class RawMaterialCategory(TenantScopedModel):
    """Raw material categories"""
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'raw_material_categories'
        verbose_name_plural = 'raw material categories'
        ordering = ['name']


class Product(TenantScopedModel):
    """Finished goods master"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    category = models.ForeignKey(ProductCategory, on_delete=models.RESTRICT, null=True, blank=True, related_name='products')
    sku = models.CharField(max_length=100, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit = models.CharField(max_length=20, default='pcs')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def stock_value(self):
        return self.stock * self.cost

    class Meta:
        db_table = 'products'
        ordering = ['name']
        unique_together = [['tenant', 'sku']]


class RawMaterial(TenantScopedModel):
    """Raw material master; low stock when stock <= min_stock"""
    name = models.CharField(max_length=200, db_index=True)
    category = models.ForeignKey(RawMaterialCategory, on_delete=models.RESTRICT, null=True, blank=True, related_name='raw_materials')
    sku = models.CharField(max_length=100, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit = models.CharField(max_length=20, default='kg')
    min_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock

    @property
    def stock_value(self):
        return self.stock * self.price

    class Meta:
        db_table = 'raw_materials'
        ordering = ['name']
        unique_together = [['tenant', 'sku']]


class BillOfMaterialLine(TenantScopedModel):
    """Raw material consumed per unit of a product"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='bom_lines')
    raw_material = models.ForeignKey(RawMaterial, on_delete=models.RESTRICT, related_name='bom_lines')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)

    def __str__(self):
        return f"{self.product.name}: {self.quantity} x {self.raw_material.name}"

    class Meta:
        db_table = 'bill_of_material_lines'
        unique_together = [['product', 'raw_material']]


class NonInventoryItem(TenantScopedModel):
    """Services and consumables that are bought or sold without stock tracking"""
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50, blank=True)
    category = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=20, blank=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))  # percent
    supplier = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'non_inventory_items'
        ordering = ['name']
