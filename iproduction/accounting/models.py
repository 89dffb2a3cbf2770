from django.db import models
from decimal import Decimal

from iproduction.core.models import TenantScopedModel


class Account(TenantScopedModel):
    """Bank, cash and mobile-money accounts"""
    TYPE_CHOICES = [
        ('bank', 'Bank'),
        ('cash', 'Cash'),
        ('mobile', 'Mobile Banking'),
    ]

    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='cash')
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    account_number = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'accounts'
        ordering = ['name']


class Transaction(TenantScopedModel):
    """Deposit or withdrawal moving an account balance"""
    TYPE_CHOICES = [
        ('deposit', 'Deposit'),
        ('withdraw', 'Withdraw'),
    ]

    account = models.ForeignKey(Account, on_delete=models.RESTRICT, related_name='transactions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField(db_index=True)
    description = models.TextField(blank=True)
    reference = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.get_type_display()} {self.amount} ({self.account.name})"

    @property
    def signed_amount(self):
        return self.amount if self.type == 'deposit' else -self.amount

    class Meta:
        db_table = 'transactions'
        ordering = ['-date', '-id']


class ExpenseCategory(TenantScopedModel):
    """Expense heads (rent, utilities, ...)"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'expense_categories'
        verbose_name_plural = 'expense categories'
        ordering = ['name']


class Expense(TenantScopedModel):
    """Operating expense, optionally paid from an account"""
    category = models.ForeignKey(ExpenseCategory, on_delete=models.RESTRICT, related_name='expenses')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField(db_index=True)
    description = models.TextField(blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    account = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    transaction = models.OneToOneField(Transaction, on_delete=models.SET_NULL, null=True, blank=True, related_name='expense')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.category.name}: {self.amount}"

    class Meta:
        db_table = 'expenses'
        ordering = ['-date', '-id']


class AccountingPeriod(TenantScopedModel):
    """Date range whose postings are frozen once the period is closed"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('closed', 'Closed'),
    ]

    name = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    notes = models.TextField(blank=True)
    closed_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    closed_at = models.DateTimeField(null=True, blank=True)
    reopened_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    reopened_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.start_date} - {self.end_date})"

    class Meta:
        db_table = 'accounting_periods'
        ordering = ['-start_date']
        indexes = [
            models.Index(fields=['tenant', 'start_date', 'end_date'], name='idx_period_tenant_dates'),
        ]
