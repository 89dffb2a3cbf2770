from django.contrib import admin
from .models import Account, AccountingPeriod, Transaction, ExpenseCategory, Expense


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'balance', 'account_number', 'tenant']
    list_filter = ['type', 'tenant']
    search_fields = ['name', 'account_number']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['account', 'type', 'amount', 'date', 'reference', 'tenant']
    list_filter = ['type', 'tenant', 'date']
    search_fields = ['description', 'reference']


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'tenant']
    list_filter = ['tenant']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['category', 'amount', 'date', 'payment_method', 'account', 'tenant']
    list_filter = ['tenant', 'category']


@admin.register(AccountingPeriod)
class AccountingPeriodAdmin(admin.ModelAdmin):
    list_display = ['name', 'start_date', 'end_date', 'status', 'closed_at', 'tenant']
    list_filter = ['status', 'tenant']
