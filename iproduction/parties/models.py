from django.db import models
from decimal import Decimal

from iproduction.core.models import TenantScopedModel


class Customer(TenantScopedModel):
    """Customers; balance is what the customer owes us"""
    name = models.CharField(max_length=200, db_index=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['name']


class Supplier(TenantScopedModel):
    """Suppliers; balance is what we owe the supplier"""
    name = models.CharField(max_length=200, db_index=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']


class PartyPayment(TenantScopedModel):
    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('bank', 'Bank Transfer'),
        ('cheque', 'Cheque'),
        ('mobile', 'Mobile Banking'),
        ('card', 'Card'),
        ('other', 'Other'),
    ]

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField(db_index=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    reference = models.CharField(max_length=100, blank=True)
    account = models.ForeignKey('accounting.Account', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    transaction = models.OneToOneField('accounting.Transaction', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ['-date', '-id']


class CustomerReceive(PartyPayment):
    """Money received from a customer, optionally against a sale"""
    customer = models.ForeignKey(Customer, on_delete=models.RESTRICT, related_name='receives')
    sale = models.ForeignKey('sales.Sale', on_delete=models.RESTRICT, null=True, blank=True, related_name='receives')

    def __str__(self):
        return f"Receive {self.amount} from {self.customer.name}"

    class Meta(PartyPayment.Meta):
        db_table = 'customer_receives'


class SupplierPayment(PartyPayment):
    """Money paid to a supplier, optionally against a purchase"""
    supplier = models.ForeignKey(Supplier, on_delete=models.RESTRICT, related_name='payments')
    purchase = models.ForeignKey('purchasing.Purchase', on_delete=models.RESTRICT, null=True, blank=True, related_name='payments')

    def __str__(self):
        return f"Payment {self.amount} to {self.supplier.name}"

    class Meta(PartyPayment.Meta):
        db_table = 'supplier_payments'
