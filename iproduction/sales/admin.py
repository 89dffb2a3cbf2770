from django.contrib import admin
from .models import Quotation, QuotationItem, Sale, SaleItem


class QuotationItemInline(admin.TabularInline):
    model = QuotationItem
    extra = 0


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ['quotation_no', 'customer', 'total', 'valid_until', 'status', 'tenant', 'created_at']
    list_filter = ['status', 'tenant']
    search_fields = ['quotation_no', 'customer__name']
    inlines = [QuotationItemInline]


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['invoice_no', 'customer', 'date', 'total', 'paid', 'due', 'status', 'tenant']
    list_filter = ['status', 'tenant', 'date']
    search_fields = ['invoice_no', 'customer__name']
    readonly_fields = ['subtotal', 'tax_amount', 'total', 'due', 'status', 'created_at', 'updated_at']
    inlines = [SaleItemInline]
