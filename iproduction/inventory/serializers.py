from django.db import transaction
from rest_framework import serializers
from iproduction.catalog.utils import change_product_stock, change_raw_material_stock
from iproduction.catalog.models import RawMaterial
from iproduction.core.serializers import TenantScopedSerializer
from .models import StockAdjustment, RawMaterialWaste, ProductWaste


def _positive_quantity(value):
    if value <= 0:
        raise serializers.ValidationError('Quantity must be greater than 0.')
    return value


class StockAdjustmentSerializer(TenantScopedSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)

    class Meta:
        model = StockAdjustment
        fields = ['id', 'raw_material', 'raw_material_name', 'type', 'quantity', 'previous_stock', 'new_stock',
                  'date', 'reason', 'created_by', 'created_at']
        read_only_fields = ['previous_stock', 'new_stock', 'created_by', 'created_at']

    def validate_quantity(self, value):
        return _positive_quantity(value)

    @transaction.atomic
    def create(self, validated_data):
        delta = validated_data['quantity'] if validated_data['type'] == 'add' else -validated_data['quantity']
        validated_data['previous_stock'] = RawMaterial.objects.select_for_update().get(pk=validated_data['raw_material'].pk).stock
        # Stock out never goes below zero
        material = change_raw_material_stock(validated_data['raw_material'].pk, delta, clamp=True)
        validated_data['new_stock'] = material.stock
        return super().create(validated_data)


class RawMaterialWasteSerializer(TenantScopedSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)

    class Meta:
        model = RawMaterialWaste
        fields = ['id', 'raw_material', 'raw_material_name', 'quantity', 'date', 'reason', 'created_at']
        read_only_fields = ['created_at']

    def validate_quantity(self, value):
        return _positive_quantity(value)

    @transaction.atomic
    def create(self, validated_data):
        change_raw_material_stock(validated_data['raw_material'].pk, -validated_data['quantity'])
        return super().create(validated_data)


class ProductWasteSerializer(TenantScopedSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = ProductWaste
        fields = ['id', 'product', 'product_name', 'quantity', 'date', 'reason', 'created_at']
        read_only_fields = ['created_at']

    def validate_quantity(self, value):
        return _positive_quantity(value)

    @transaction.atomic
    def create(self, validated_data):
        change_product_stock(validated_data['product'].pk, -validated_data['quantity'])
        return super().create(validated_data)
