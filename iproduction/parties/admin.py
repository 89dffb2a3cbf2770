from django.contrib import admin
from .models import Customer, Supplier, CustomerReceive, SupplierPayment


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'balance', 'tenant', 'created_at']
    list_filter = ['tenant']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['balance', 'created_at', 'updated_at']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'balance', 'tenant', 'created_at']
    list_filter = ['tenant']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['balance', 'created_at', 'updated_at']


@admin.register(CustomerReceive)
class CustomerReceiveAdmin(admin.ModelAdmin):
    list_display = ['customer', 'sale', 'amount', 'date', 'payment_method', 'account', 'tenant']
    list_filter = ['payment_method', 'tenant']
    search_fields = ['customer__name', 'reference']
    readonly_fields = ['transaction', 'created_at']


@admin.register(SupplierPayment)
class SupplierPaymentAdmin(admin.ModelAdmin):
    list_display = ['supplier', 'purchase', 'amount', 'date', 'payment_method', 'account', 'tenant']
    list_filter = ['payment_method', 'tenant']
    search_fields = ['supplier__name', 'reference']
    readonly_fields = ['transaction', 'created_at']
