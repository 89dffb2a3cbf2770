from django.db import transaction
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer
from .models import Customer, Supplier, CustomerReceive, SupplierPayment
from .utils import apply_party_payment


class CustomerSerializer(TenantScopedSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'phone', 'email', 'address', 'balance', 'created_at', 'updated_at']
        read_only_fields = ['balance', 'created_at', 'updated_at']


class SupplierSerializer(TenantScopedSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'name', 'phone', 'email', 'address', 'balance', 'created_at', 'updated_at']
        read_only_fields = ['balance', 'created_at', 'updated_at']


class PartyPaymentSerializer(TenantScopedSerializer):
    """Shared create logic for customer receives and supplier payments"""
    party_field = None
    document_field = None
    transaction_type = None

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0.')
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        party = attrs.get(self.party_field)
        document = attrs.get(self.document_field)
        if document is not None:
            if getattr(document, f'{self.party_field}_id') != party.id:
                raise serializers.ValidationError({self.document_field: f'Document belongs to another {self.party_field}.'})
            if attrs['amount'] > document.due:
                raise serializers.ValidationError({'amount': f'Amount exceeds the due amount ({document.due}).'})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        payment = super().create(validated_data)
        return apply_party_payment(payment, self.party_field, self.document_field, self.transaction_type)


class CustomerReceiveSerializer(PartyPaymentSerializer):
    party_field = 'customer'
    document_field = 'sale'
    transaction_type = 'deposit'

    customer_name = serializers.CharField(source='customer.name', read_only=True)
    invoice_no = serializers.CharField(source='sale.invoice_no', read_only=True)

    class Meta:
        model = CustomerReceive
        fields = ['id', 'customer', 'customer_name', 'sale', 'invoice_no', 'amount', 'date', 'payment_method',
                  'reference', 'account', 'transaction', 'created_at']
        read_only_fields = ['transaction', 'created_at']


class SupplierPaymentSerializer(PartyPaymentSerializer):
    party_field = 'supplier'
    document_field = 'purchase'
    transaction_type = 'withdraw'

    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    invoice_no = serializers.CharField(source='purchase.invoice_no', read_only=True)

    class Meta:
        model = SupplierPayment
        fields = ['id', 'supplier', 'supplier_name', 'purchase', 'invoice_no', 'amount', 'date', 'payment_method',
                  'reference', 'account', 'transaction', 'created_at']
        read_only_fields = ['transaction', 'created_at']
