from django.db import transaction
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer
from .models import Account, AccountingPeriod, Transaction, ExpenseCategory, Expense
from .utils import apply_transaction, unapply_transaction, post_transaction, reverse_transaction


class AccountSerializer(TenantScopedSerializer):
    class Meta:
        model = Account
        fields = ['id', 'name', 'type', 'balance', 'account_number', 'created_at']
        read_only_fields = ['created_at']

    def validate_balance(self, value):
        # Opening balance only; later movements go through transactions
        if self.instance is not None and value != self.instance.balance:
            raise serializers.ValidationError('Balance can only be changed through transactions.')
        return value


class TransactionSerializer(TenantScopedSerializer):
    account_name = serializers.CharField(source='account.name', read_only=True)

    class Meta:
        model = Transaction
        fields = ['id', 'account', 'account_name', 'type', 'amount', 'date', 'description', 'reference', 'created_at']
        read_only_fields = ['created_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0.')
        return value

    @transaction.atomic
    def create(self, validated_data):
        entry = super().create(validated_data)
        apply_transaction(entry)
        return entry

    @transaction.atomic
    def update(self, instance, validated_data):
        unapply_transaction(instance)
        entry = super().update(instance, validated_data)
        apply_transaction(entry)
        return entry


class ExpenseCategorySerializer(TenantScopedSerializer):
    tenant_unique_fields = ('name',)

    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'description']


class ExpenseSerializer(TenantScopedSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    account_name = serializers.CharField(source='account.name', read_only=True)

    class Meta:
        model = Expense
        fields = ['id', 'category', 'category_name', 'amount', 'date', 'description', 'payment_method',
                  'account', 'account_name', 'transaction', 'created_at']
        read_only_fields = ['transaction', 'created_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0.')
        return value

    def _post(self, expense):
        if expense.account_id:
            expense.transaction = post_transaction(
                expense.account, 'withdraw', expense.amount, expense.date,
                description=f"Expense: {expense.category.name}", reference=f"EXP-{expense.pk}",
            )
            expense.save(update_fields=['transaction'])
        return expense

    @transaction.atomic
    def create(self, validated_data):
        return self._post(super().create(validated_data))

    @transaction.atomic
    def update(self, instance, validated_data):
        if instance.transaction_id:
            reverse_transaction(instance.transaction)
            instance.transaction = None
        return self._post(super().update(instance, validated_data))


class AccountingPeriodSerializer(TenantScopedSerializer):
    closed_by_name = serializers.CharField(source='closed_by.get_display_name', read_only=True, default=None)

    class Meta:
        model = AccountingPeriod
        fields = ['id', 'name', 'start_date', 'end_date', 'status', 'notes',
                  'closed_by', 'closed_by_name', 'closed_at', 'reopened_by', 'reopened_at', 'created_at']
        read_only_fields = ['status', 'closed_by', 'closed_at', 'reopened_by', 'reopened_at', 'created_at']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None and self.instance.status == 'closed':
            raise serializers.ValidationError('A closed period cannot be changed; reopen it first.')
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date:
            if end_date < start_date:
                raise serializers.ValidationError({'end_date': 'End date cannot be before the start date.'})
            overlapping = AccountingPeriod.objects.filter(
                tenant=self.get_tenant(), start_date__lte=end_date, end_date__gte=start_date
            )
            if self.instance is not None:
                overlapping = overlapping.exclude(pk=self.instance.pk)
            clash = overlapping.first()
            if clash is not None:
                raise serializers.ValidationError(f"Period overlaps with {clash.name} ({clash.start_date} - {clash.end_date}).")
        return attrs
