from django.contrib import admin
from .models import StockAdjustment, RawMaterialWaste, ProductWaste


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(admin.ModelAdmin):
    list_display = ['raw_material', 'type', 'quantity', 'previous_stock', 'new_stock', 'date', 'tenant']
    list_filter = ['type', 'tenant']


@admin.register(RawMaterialWaste)
class RawMaterialWasteAdmin(admin.ModelAdmin):
    list_display = ['raw_material', 'quantity', 'date', 'reason', 'tenant']
    list_filter = ['tenant']


@admin.register(ProductWaste)
class ProductWasteAdmin(admin.ModelAdmin):
    list_display = ['product', 'quantity', 'date', 'reason', 'tenant']
    list_filter = ['tenant']
