from django.db import models
from decimal import Decimal, ROUND_HALF_UP

from iproduction.core.models import User, TenantScopedModel, SettledDocument


class Quotation(TenantScopedModel):
    """Price offer to a customer; may be converted into a sale once accepted"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('sent', 'Sent'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
    ]
    TRANSITIONS = {
        'draft': {'sent', 'rejected'},
        'sent': {'accepted', 'rejected'},
    }

    quotation_no = models.CharField(max_length=50)
    customer = models.ForeignKey('parties.Customer', on_delete=models.RESTRICT, related_name='quotations')
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    valid_until = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.quotation_no

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, set())

    def recalculate_total(self):
        self.total = sum((item.amount for item in self.items.all()), Decimal('0.00'))

    class Meta:
        db_table = 'quotations'
        ordering = ['-created_at', '-id']
        unique_together = [['tenant', 'quotation_no']]


class QuotationItem(models.Model):
    """Quotation line items"""
    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.RESTRICT, related_name='quotation_items')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2)

    @property
    def amount(self):
        return (self.quantity * self.price).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    class Meta:
        db_table = 'quotation_items'
        ordering = ['id']


class Sale(SettledDocument):
    """Sales invoice"""
    invoice_no = models.CharField(max_length=50)
    customer = models.ForeignKey('parties.Customer', on_delete=models.RESTRICT, related_name='sales')
    outlet = models.ForeignKey('outlets.Outlet', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    date = models.DateField(db_index=True)
    due_date = models.DateField(null=True, blank=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))  # percent
    notes = models.TextField(blank=True)
    quotation = models.OneToOneField(Quotation, on_delete=models.SET_NULL, null=True, blank=True, related_name='sale')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_no

    def recalculate_totals(self):
        """subtotal from lines, tax from tax_rate, then due and status"""
        self.subtotal = sum((item.amount for item in self.items.all()), Decimal('0.00'))
        self.tax_amount = (self.subtotal * self.tax_rate / Decimal('100')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        self.total = self.subtotal + self.tax_amount
        self.refresh_payment_status()

    class Meta:
        db_table = 'sales'
        ordering = ['-date', '-id']
        unique_together = [['tenant', 'invoice_no']]
        indexes = [
            models.Index(fields=['tenant', 'status'], name='idx_sale_tenant_status'),
            models.Index(fields=['tenant', '-date'], name='idx_sale_tenant_date'),
        ]


class SaleItem(models.Model):
    """Sale line items"""
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.RESTRICT, related_name='sale_items')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    @property
    def amount(self):
        """quantity x price - discount"""
        return (self.quantity * self.price - self.discount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    class Meta:
        db_table = 'sale_items'
        ordering = ['id']
