from django.db import transaction
from django.utils import timezone
from rest_framework import serializers
from iproduction.core.serializers import TenantScopedSerializer
from iproduction.core.utils import next_document_number
from .models import (
    ProductionStage, Production, ProductionMaterial, StageTransition, ProductionLoss,
    QCTemplate, QCInspection, NonConformanceReport
)
from .utils import inspection_outcome, start_production


class ProductionStageSerializer(TenantScopedSerializer):
    tenant_unique_fields = ('order',)

    class Meta:
        model = ProductionStage
        fields = ['id', 'name', 'order']


class StageTransitionSerializer(serializers.ModelSerializer):
    stage_name = serializers.CharField(source='stage.name', read_only=True)

    class Meta:
        model = StageTransition
        fields = ['id', 'stage', 'stage_name', 'status', 'started_at', 'completed_at', 'notes']


class ProductionMaterialSerializer(serializers.ModelSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)
    unit = serializers.CharField(source='raw_material.unit', read_only=True)

    class Meta:
        model = ProductionMaterial
        fields = ['raw_material', 'raw_material_name', 'unit', 'quantity']


class ProductionSerializer(TenantScopedSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    stage_name = serializers.CharField(source='stage.name', read_only=True)
    efficiency = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    transitions = StageTransitionSerializer(many=True, read_only=True)
    materials = ProductionMaterialSerializer(many=True, read_only=True)

    class Meta:
        model = Production
        fields = ['id', 'reference_no', 'product', 'product_name', 'quantity', 'completed_qty', 'efficiency',
                  'start_date', 'end_date', 'status', 'stage', 'stage_name', 'notes', 'materials', 'transitions',
                  'created_at', 'updated_at']
        read_only_fields = ['reference_no', 'completed_qty', 'status', 'created_at', 'updated_at']
        extra_kwargs = {'start_date': {'required': False}}

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than 0.')
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None:
            for field in ('product', 'quantity', 'stage'):
                if field in attrs and attrs[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({field: f'{field.capitalize()} cannot be changed after the production started.'})
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date cannot be before the start date.'})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        tenant = self.context['tenant']
        validated_data.setdefault('start_date', timezone.now().date())
        validated_data['reference_no'] = next_document_number(Production, tenant, 'reference_no', 'PRD')
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
        production = super().create(validated_data)
        return start_production(production)


class ProductionCompleteSerializer(serializers.Serializer):
    completed_qty = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, min_value=0)
    end_date = serializers.DateField(required=False)


class ProductionLossSerializer(TenantScopedSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    production_reference = serializers.CharField(source='production.reference_no', read_only=True)

    class Meta:
        model = ProductionLoss
        fields = ['id', 'product', 'product_name', 'production', 'production_reference', 'quantity',
                  'loss_type', 'date', 'reason', 'notes', 'created_at']
        read_only_fields = ['created_at']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than 0.')
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        production = attrs.get('production', getattr(self.instance, 'production', None))
        product = attrs.get('product', getattr(self.instance, 'product', None))
        if production is not None and product is not None and production.product_id != product.pk:
            raise serializers.ValidationError({'production': 'Production is for a different product.'})
        return attrs


class QCTemplateSerializer(TenantScopedSerializer):
    tenant_unique_fields = ('name',)
    inspection_count = serializers.IntegerField(source='inspections.count', read_only=True)

    class Meta:
        model = QCTemplate
        fields = ['id', 'name', 'description', 'type', 'parameters', 'inspection_count', 'created_at']
        read_only_fields = ['created_at']

    def validate_parameters(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Parameters must be a list.')
        return value


class NonConformanceReportSerializer(TenantScopedSerializer):
    inspection_count = serializers.IntegerField(source='inspections.count', read_only=True)

    class Meta:
        model = NonConformanceReport
        fields = ['id', 'report_no', 'description', 'severity', 'status', 'root_cause', 'corrective_action',
                  'inspection_count', 'created_at', 'updated_at']
        read_only_fields = ['report_no', 'created_at', 'updated_at']

    @transaction.atomic
    def create(self, validated_data):
        validated_data['report_no'] = next_document_number(NonConformanceReport, self.context['tenant'], 'report_no', 'NCR')
        return super().create(validated_data)


class QCInspectionSerializer(TenantScopedSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True)
    production_reference = serializers.CharField(source='production.reference_no', read_only=True, default=None)
    non_conformance_no = serializers.CharField(source='non_conformance.report_no', read_only=True, default=None)

    class Meta:
        model = QCInspection
        fields = ['id', 'template', 'template_name', 'production', 'production_reference', 'purchase', 'sale',
                  'non_conformance', 'non_conformance_no', 'batch_no', 'inspection_date', 'results',
                  'passed_quantity', 'rejected_quantity', 'defect_count', 'defect_notes', 'status',
                  'inspected_by', 'created_at']
        read_only_fields = ['defect_count', 'status', 'inspected_by', 'created_at']
        extra_kwargs = {'inspection_date': {'required': False}}

    def validate_results(self, value):
        if not isinstance(value, dict) or not value:
            raise serializers.ValidationError('Results must map each tested parameter to its outcome.')
        for name, result in value.items():
            if not isinstance(result, dict) or not isinstance(result.get('passed'), bool):
                raise serializers.ValidationError(f"Result for '{name}' needs a boolean 'passed'.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        for field in ('passed_quantity', 'rejected_quantity'):
            if attrs.get(field, 0) < 0:
                raise serializers.ValidationError({field: 'Quantity cannot be negative.'})
        if 'results' in attrs:
            attrs['status'], attrs['defect_count'] = inspection_outcome(attrs['results'])
        return attrs

    def create(self, validated_data):
        validated_data.setdefault('inspection_date', timezone.now().date())
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['inspected_by'] = request.user
        return super().create(validated_data)
