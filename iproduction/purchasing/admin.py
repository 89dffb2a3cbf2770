from django.contrib import admin
from .models import GoodsReceipt, GoodsReceiptItem, Purchase, PurchaseItem


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ['invoice_no', 'supplier', 'date', 'total', 'paid', 'due', 'status', 'tenant']
    list_filter = ['status', 'tenant', 'date']
    search_fields = ['invoice_no', 'supplier__name']
    readonly_fields = ['subtotal', 'total', 'due', 'status', 'created_at', 'updated_at']
    inlines = [PurchaseItemInline]


class GoodsReceiptItemInline(admin.TabularInline):
    model = GoodsReceiptItem
    extra = 0


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(admin.ModelAdmin):
    list_display = ['grn_no', 'purchase', 'received_date', 'status', 'total_quantity', 'accepted_quantity', 'rejected_quantity', 'tenant']
    list_filter = ['status', 'tenant']
    search_fields = ['grn_no', 'purchase__invoice_no']
    readonly_fields = ['total_quantity', 'accepted_quantity', 'rejected_quantity', 'created_at', 'updated_at']
    inlines = [GoodsReceiptItemInline]
