from django.contrib import admin
from .models import (
    ProductionStage, Production, ProductionMaterial, StageTransition, ProductionLoss,
    QCTemplate, QCInspection, NonConformanceReport
)


@admin.register(ProductionStage)
class ProductionStageAdmin(admin.ModelAdmin):
    list_display = ['name', 'order', 'tenant']
    list_filter = ['tenant']


class ProductionMaterialInline(admin.TabularInline):
    model = ProductionMaterial
    extra = 0


class StageTransitionInline(admin.TabularInline):
    model = StageTransition
    extra = 0


@admin.register(Production)
class ProductionAdmin(admin.ModelAdmin):
    list_display = ['reference_no', 'product', 'quantity', 'completed_qty', 'status', 'stage', 'start_date', 'end_date', 'tenant']
    list_filter = ['status', 'tenant']
    search_fields = ['reference_no', 'product__name']
    inlines = [ProductionMaterialInline, StageTransitionInline]


@admin.register(ProductionLoss)
class ProductionLossAdmin(admin.ModelAdmin):
    list_display = ['product', 'production', 'quantity', 'loss_type', 'date', 'tenant']
    list_filter = ['loss_type', 'tenant']


@admin.register(QCTemplate)
class QCTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'tenant']
    list_filter = ['type', 'tenant']


@admin.register(QCInspection)
class QCInspectionAdmin(admin.ModelAdmin):
    list_display = ['template', 'inspection_date', 'batch_no', 'status', 'defect_count', 'production', 'tenant']
    list_filter = ['status', 'tenant']
    search_fields = ['batch_no']


@admin.register(NonConformanceReport)
class NonConformanceReportAdmin(admin.ModelAdmin):
    list_display = ['report_no', 'severity', 'status', 'created_at', 'tenant']
    list_filter = ['severity', 'status', 'tenant']
