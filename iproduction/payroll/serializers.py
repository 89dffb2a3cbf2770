from django.db import transaction
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer
from .models import Employee, Attendance, Payroll, month_validator


class EmployeeSerializer(TenantScopedSerializer):
    class Meta:
        model = Employee
        fields = ['id', 'name', 'email', 'phone', 'position', 'department', 'salary', 'join_date', 'status',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_salary(self, value):
        if value < 0:
            raise serializers.ValidationError('Salary cannot be negative.')
        return value


class AttendanceSerializer(TenantScopedSerializer):
    employee_name = serializers.CharField(source='employee.name', read_only=True)

    class Meta:
        model = Attendance
        fields = ['id', 'employee', 'employee_name', 'date', 'in_time', 'out_time', 'status', 'note']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        in_time = attrs.get('in_time', getattr(self.instance, 'in_time', None))
        out_time = attrs.get('out_time', getattr(self.instance, 'out_time', None))
        if in_time and out_time and out_time < in_time:
            raise serializers.ValidationError({'out_time': 'Out time cannot be before in time.'})
        return attrs


class PayrollSerializer(TenantScopedSerializer):
    employee_name = serializers.CharField(source='employee.name', read_only=True)
    account_name = serializers.CharField(source='account.name', read_only=True)

    class Meta:
        model = Payroll
        fields = ['id', 'employee', 'employee_name', 'month', 'basic_salary', 'bonus', 'deductions', 'net_salary',
                  'status', 'paid_at', 'account', 'account_name', 'transaction', 'created_at']
        read_only_fields = ['net_salary', 'status', 'paid_at', 'transaction', 'created_at']
        extra_kwargs = {'basic_salary': {'required': False}}

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None and self.instance.status == 'paid':
            raise serializers.ValidationError({'status': 'A paid payroll cannot be changed.'})
        for field in ('basic_salary', 'bonus', 'deductions'):
            if attrs.get(field) is not None and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Amount cannot be negative.'})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        if validated_data.get('basic_salary') is None:
            validated_data['basic_salary'] = validated_data['employee'].salary
        payroll = Payroll(tenant=self.context['tenant'], **validated_data)
        payroll.compute_net_salary()
        payroll.save()
        return payroll

    @transaction.atomic
    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.compute_net_salary()
        instance.save()
        return instance


class PayrollGenerateSerializer(serializers.Serializer):
    month = serializers.CharField(max_length=7, validators=[month_validator])


class PayrollPaySerializer(TenantScopedSerializer):
    """Only picks the optional paying account"""
    class Meta:
        model = Payroll
        fields = ['account']
