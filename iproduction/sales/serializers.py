from decimal import Decimal
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer, validate_line_items
from iproduction.core.utils import next_document_number
from .models import Quotation, QuotationItem, Sale, SaleItem
from .utils import apply_sale_effects, reverse_sale_effects


class QuotationItemSerializer(TenantScopedSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = QuotationItem
        fields = ['id', 'product', 'product_name', 'quantity', 'price', 'amount']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than 0.')
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative.')
        return value


class QuotationSerializer(TenantScopedSerializer):
    items = QuotationItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    sale_id = serializers.PrimaryKeyRelatedField(source='sale', read_only=True)

    class Meta:
        model = Quotation
        fields = ['id', 'quotation_no', 'customer', 'customer_name', 'items', 'total', 'valid_until',
                  'status', 'notes', 'sale_id', 'created_at', 'updated_at']
        read_only_fields = ['quotation_no', 'total', 'status', 'created_at', 'updated_at']

    def _replace_items(self, quotation, items):
        quotation.items.all().delete()
        for item in items:
            QuotationItem.objects.create(quotation=quotation, **item)
        quotation.recalculate_total()
        quotation.save(update_fields=['total', 'updated_at'])

    @transaction.atomic
    def create(self, validated_data):
        tenant = self.context['tenant']
        items = validate_line_items(self.context.get('items_data'), QuotationItemSerializer, tenant)
        validated_data['quotation_no'] = next_document_number(Quotation, tenant, 'quotation_no', 'QUO')
        quotation = super().create(validated_data)
        self._replace_items(quotation, items)
        return quotation

    @transaction.atomic
    def update(self, instance, validated_data):
        items_data = self.context.get('items_data')
        if items_data is not None and instance.status != 'draft':
            raise serializers.ValidationError({'items': 'Items can only be changed while the quotation is a draft.'})
        quotation = super().update(instance, validated_data)
        if items_data is not None:
            self._replace_items(quotation, validate_line_items(items_data, QuotationItemSerializer, quotation.tenant))
        return quotation


class SaleItemSerializer(TenantScopedSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    unit = serializers.CharField(source='product.unit', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = SaleItem
        fields = ['id', 'product', 'product_name', 'unit', 'quantity', 'price', 'discount', 'amount']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs['quantity'] <= 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than 0.'})
        if attrs['price'] < 0:
            raise serializers.ValidationError({'price': 'Price cannot be negative.'})
        discount = attrs.get('discount', Decimal('0.00'))
        if discount < 0 or discount > attrs['quantity'] * attrs['price']:
            raise serializers.ValidationError({'discount': 'Discount must be between 0 and the line value.'})
        return attrs


class SaleSerializer(TenantScopedSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    outlet_name = serializers.CharField(source='outlet.name', read_only=True)
    quotation_no = serializers.CharField(source='quotation.quotation_no', read_only=True)

    class Meta:
        model = Sale
        fields = ['id', 'invoice_no', 'customer', 'customer_name', 'outlet', 'outlet_name', 'date', 'due_date',
                  'items', 'subtotal', 'tax_rate', 'tax_amount', 'total', 'paid', 'due', 'status', 'notes',
                  'quotation', 'quotation_no', 'created_at', 'updated_at']
        read_only_fields = ['invoice_no', 'subtotal', 'tax_amount', 'total', 'due', 'status', 'quotation',
                            'created_at', 'updated_at']
        extra_kwargs = {'date': {'required': False}}

    def validate_paid(self, value):
        if value < 0:
            raise serializers.ValidationError('Paid amount cannot be negative.')
        return value

    def validate_tax_rate(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError('Tax rate must be between 0 and 100.')
        return value

    def _finalize(self, sale):
        """Totals, paid check and stock/balance effects after items are in place"""
        sale.recalculate_totals()
        if sale.paid > sale.total:
            raise serializers.ValidationError({'paid': f'Paid amount cannot exceed the total ({sale.total}).'})
        sale.save()
        apply_sale_effects(sale)
        return sale

    @transaction.atomic
    def create(self, validated_data):
        tenant = self.context['tenant']
        items = validate_line_items(self.context.get('items_data'), SaleItemSerializer, tenant)
        validated_data.setdefault('date', timezone.now().date())
        validated_data['invoice_no'] = next_document_number(Sale, tenant, 'invoice_no', 'INV')
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
        sale = super().create(validated_data)
        for item in items:
            SaleItem.objects.create(sale=sale, **item)
        return self._finalize(sale)

    @transaction.atomic
    def update(self, instance, validated_data):
        items_data = self.context.get('items_data')
        items = None
        if items_data is not None:
            items = validate_line_items(items_data, SaleItemSerializer, instance.tenant)

        received = instance.receives.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
        if received:
            if 'customer' in validated_data and validated_data['customer'].pk != instance.customer_id:
                raise serializers.ValidationError({'customer': 'Customer cannot change once payments were received.'})
            if validated_data.get('paid', instance.paid) < received:
                raise serializers.ValidationError({'paid': f'Paid cannot be lower than the amount already received ({received}).'})

        reverse_sale_effects(instance)
        sale = super().update(instance, validated_data)
        if items is not None:
            sale.items.all().delete()
            for item in items:
                SaleItem.objects.create(sale=sale, **item)
        return self._finalize(sale)
