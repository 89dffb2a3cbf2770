from django.contrib import admin
from .models import (
    Unit, Currency, ProductCategory, RawMaterialCategory, Product, RawMaterial,
    BillOfMaterialLine, NonInventoryItem
)


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ['name', 'short_name', 'tenant']
    list_filter = ['tenant']


@admin.register(Currency)
class CurrencyAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'symbol', 'rate', 'tenant']
    list_filter = ['tenant']


@admin.register(ProductCategory)
class ProductCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'tenant']
    list_filter = ['tenant']
    search_fields = ['name']


@admin.register(RawMaterialCategory)
class RawMaterialCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'tenant']
    list_filter = ['tenant']
    search_fields = ['name']


class BillOfMaterialLineInline(admin.TabularInline):
    model = BillOfMaterialLine
    fk_name = 'product'
    extra = 0
    fields = ['raw_material', 'quantity', 'tenant']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'cost', 'stock', 'unit', 'status', 'tenant']
    list_filter = ['status', 'tenant', 'category']
    search_fields = ['name', 'sku']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [BillOfMaterialLineInline]


@admin.register(RawMaterial)
class RawMaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'stock', 'min_stock', 'unit', 'tenant']
    list_filter = ['tenant', 'category']
    search_fields = ['name', 'sku']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(NonInventoryItem)
class NonInventoryItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'category', 'price', 'tax', 'supplier', 'tenant']
    list_filter = ['tenant']
    search_fields = ['name', 'code']
