from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer
from .models import (
    Unit, Currency, ProductCategory, RawMaterialCategory, Product, RawMaterial,
    BillOfMaterialLine, NonInventoryItem
)


class UnitSerializer(TenantScopedSerializer):
    class Meta:
        model = Unit
        fields = ['id', 'name', 'short_name']


class CurrencySerializer(TenantScopedSerializer):
    tenant_unique_fields = ('code',)

    class Meta:
        model = Currency
        fields = ['id', 'name', 'code', 'symbol', 'rate']


class ProductCategorySerializer(TenantScopedSerializer):
    product_count = serializers.IntegerField(source='products.count', read_only=True)

    class Meta:
        model = ProductCategory
        fields = ['id', 'name', 'description', 'product_count']


class RawMaterialCategorySerializer(TenantScopedSerializer):
    raw_material_count = serializers.IntegerField(source='raw_materials.count', read_only=True)

    class Meta:
        model = RawMaterialCategory
        fields = ['id', 'name', 'description', 'raw_material_count']


class BillOfMaterialLineSerializer(TenantScopedSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)
    unit = serializers.CharField(source='raw_material.unit', read_only=True)

    class Meta:
        model = BillOfMaterialLine
        fields = ['id', 'raw_material', 'raw_material_name', 'unit', 'quantity']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than 0.')
        return value


class ProductSerializer(TenantScopedSerializer):
    tenant_unique_fields = ('sku',)
    category_name = serializers.CharField(source='category.name', read_only=True)
    stock_value = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'category', 'category_name', 'sku', 'price', 'cost', 'stock', 'unit',
                  'status', 'stock_value', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_stock(self, value):
        if value < 0:
            raise serializers.ValidationError('Stock cannot be negative.')
        return value


class RawMaterialSerializer(TenantScopedSerializer):
    tenant_unique_fields = ('sku',)
    category_name = serializers.CharField(source='category.name', read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_value = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = RawMaterial
        fields = ['id', 'name', 'category', 'category_name', 'sku', 'price', 'stock', 'unit', 'min_stock',
                  'is_low_stock', 'stock_value', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_stock(self, value):
        if value < 0:
            raise serializers.ValidationError('Stock cannot be negative.')
        return value


class NonInventoryItemSerializer(TenantScopedSerializer):
    class Meta:
        model = NonInventoryItem
        fields = ['id', 'name', 'code', 'category', 'unit', 'description', 'price', 'tax', 'supplier', 'created_at']
        read_only_fields = ['created_at']
