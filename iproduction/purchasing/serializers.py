from decimal import Decimal
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer, validate_line_items
from iproduction.core.utils import next_document_number
from .models import GoodsReceipt, GoodsReceiptItem, Purchase, PurchaseItem
from .utils import apply_purchase_effects, snapshot_purchase


class PurchaseItemSerializer(TenantScopedSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)
    raw_material_sku = serializers.CharField(source='raw_material.sku', read_only=True)
    unit = serializers.CharField(source='raw_material.unit', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseItem
        fields = ['id', 'raw_material', 'raw_material_name', 'raw_material_sku', 'unit', 'quantity', 'price', 'amount']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError(f'Quantity must be greater than 0. Got {value}.')
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative.')
        return value


class PurchaseSerializer(TenantScopedSerializer):
    items = PurchaseItemSerializer(many=True, read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)

    class Meta:
        model = Purchase
        fields = [
            'id', 'invoice_no', 'supplier', 'supplier_name', 'date', 'expected_date',
            'items', 'subtotal', 'tax_amount', 'total', 'paid', 'due', 'status', 'notes',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['invoice_no', 'subtotal', 'total', 'due', 'status', 'created_at', 'updated_at']
        extra_kwargs = {'date': {'required': False}}

    def validate_paid(self, value):
        if value < 0:
            raise serializers.ValidationError('Paid amount cannot be negative.')
        return value

    def validate_tax_amount(self, value):
        if value < 0:
            raise serializers.ValidationError('Tax amount cannot be negative.')
        return value

    def _finalize(self, purchase, previous=None):
        purchase.recalculate_totals()
        if purchase.paid > purchase.total:
            raise serializers.ValidationError({'paid': f'Paid amount cannot exceed the total ({purchase.total}).'})
        purchase.save()
        apply_purchase_effects(purchase, previous)
        return purchase

    @transaction.atomic
    def create(self, validated_data):
        tenant = self.context['tenant']
        items = validate_line_items(self.context.get('items_data'), PurchaseItemSerializer, tenant)
        validated_data.setdefault('date', timezone.now().date())
        validated_data['invoice_no'] = next_document_number(Purchase, tenant, 'invoice_no', 'PUR')
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user

        purchase = super().create(validated_data)
        for item in items:
            PurchaseItem.objects.create(purchase=purchase, **item)
        return self._finalize(purchase)

    @transaction.atomic
    def update(self, instance, validated_data):
        items_data = self.context.get('items_data')
        items = None
        if items_data is not None:
            items = validate_line_items(items_data, PurchaseItemSerializer, instance.tenant)

        settled = instance.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
        if settled:
            if 'supplier' in validated_data and validated_data['supplier'].pk != instance.supplier_id:
                raise serializers.ValidationError({'supplier': 'Supplier cannot change once payments were made.'})
            if validated_data.get('paid', instance.paid) < settled:
                raise serializers.ValidationError({'paid': f'Paid cannot be lower than the amount already paid out ({settled}).'})

        previous = snapshot_purchase(instance)
        purchase = super().update(instance, validated_data)
        if items is not None:
            purchase.items.all().delete()
            for item in items:
                PurchaseItem.objects.create(purchase=purchase, **item)
        return self._finalize(purchase, previous)


class GoodsReceiptItemSerializer(TenantScopedSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)
    unit = serializers.CharField(source='raw_material.unit', read_only=True)

    class Meta:
        model = GoodsReceiptItem
        fields = ['id', 'raw_material', 'raw_material_name', 'unit', 'ordered_quantity', 'received_quantity',
                  'accepted_quantity', 'rejected_quantity', 'batch_no', 'expiry_date', 'remarks', 'quality_status']
        read_only_fields = ['quality_status']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        received = attrs.get('received_quantity', Decimal('0'))
        accepted = attrs.get('accepted_quantity', Decimal('0'))
        rejected = attrs.get('rejected_quantity', Decimal('0'))
        if received <= 0:
            raise serializers.ValidationError({'received_quantity': 'Received quantity must be greater than 0.'})
        if accepted < 0 or rejected < 0:
            raise serializers.ValidationError('Accepted and rejected quantities cannot be negative.')
        if accepted + rejected > received:
            raise serializers.ValidationError(
                f'Accepted ({accepted}) plus rejected ({rejected}) cannot exceed the received quantity ({received}).'
            )
        return attrs


def add_receipt_items(goods_receipt, items):
    """Create GRN lines for materials on the purchase; ordered quantity comes from the purchase"""
    ordered = dict(
        goods_receipt.purchase.items.values('raw_material_id').annotate(qty=Sum('quantity')).values_list('raw_material_id', 'qty')
    )
    for item in items:
        material = item['raw_material']
        if material.pk not in ordered:
            raise serializers.ValidationError({'items': f"{material.name} is not on purchase {goods_receipt.purchase.invoice_no}."})
        item.setdefault('ordered_quantity', ordered[material.pk])
        GoodsReceiptItem.objects.create(goods_receipt=goods_receipt, **item)
    goods_receipt.recalculate_totals()
    goods_receipt.save(update_fields=['total_quantity', 'accepted_quantity', 'rejected_quantity', 'updated_at'])
    return goods_receipt


class GoodsReceiptSerializer(TenantScopedSerializer):
    items = GoodsReceiptItemSerializer(many=True, read_only=True)
    purchase_invoice_no = serializers.CharField(source='purchase.invoice_no', read_only=True)
    supplier_name = serializers.CharField(source='purchase.supplier.name', read_only=True)

    class Meta:
        model = GoodsReceipt
        fields = ['id', 'grn_no', 'purchase', 'purchase_invoice_no', 'supplier_name', 'received_date',
                  'warehouse_location', 'remarks', 'status', 'total_quantity', 'accepted_quantity',
                  'rejected_quantity', 'items', 'created_at', 'updated_at']
        read_only_fields = ['grn_no', 'status', 'total_quantity', 'accepted_quantity', 'rejected_quantity',
                            'created_at', 'updated_at']
        extra_kwargs = {'received_date': {'required': False}}

    def validate_purchase(self, value):
        if self.instance is not None and value != self.instance.purchase:
            raise serializers.ValidationError('A goods receipt cannot be moved to another purchase.')
        return value

    @transaction.atomic
    def create(self, validated_data):
        tenant = self.context['tenant']
        items_data = self.context.get('items_data')
        items = validate_line_items(items_data, GoodsReceiptItemSerializer, tenant) if items_data else []
        validated_data.setdefault('received_date', timezone.now().date())
        validated_data['grn_no'] = next_document_number(GoodsReceipt, tenant, 'grn_no', 'GRN')
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
        return add_receipt_items(super().create(validated_data), items)
