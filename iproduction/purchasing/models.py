from django.db import models
from decimal import Decimal, ROUND_HALF_UP

from iproduction.core.models import User, SettledDocument, TenantScopedModel


class Purchase(SettledDocument):
    """Raw material purchase/bill from a supplier"""
    invoice_no = models.CharField(max_length=50)
    supplier = models.ForeignKey('parties.Supplier', on_delete=models.RESTRICT, related_name='purchases')
    date = models.DateField(db_index=True)
    expected_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_no

    def recalculate_totals(self):
        """subtotal from lines plus the given tax amount, then due and status"""
        self.subtotal = sum((item.amount for item in self.items.all()), Decimal('0.00'))
        self.total = self.subtotal + self.tax_amount
        self.refresh_payment_status()

    class Meta:
        db_table = 'purchases'
        ordering = ['-date', '-id']
        unique_together = [['tenant', 'invoice_no']]
        indexes = [
            models.Index(fields=['tenant', 'status'], name='idx_purchase_tenant_status'),
            models.Index(fields=['tenant', '-date'], name='idx_purchase_tenant_date'),
        ]


class PurchaseItem(models.Model):
    """Purchase line items"""
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='items')
    raw_material = models.ForeignKey('catalog.RawMaterial', on_delete=models.RESTRICT, related_name='purchase_items')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2)

    @property
    def amount(self):
        """Calculate line total"""
        return (self.quantity * self.price).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    class Meta:
        db_table = 'purchase_items'
        ordering = ['id']


class GoodsReceipt(TenantScopedModel):
    """Goods received note (GRN) recording what actually arrived against a purchase"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('partial', 'Partially Accepted'),
        ('rejected', 'Rejected'),
    ]

    grn_no = models.CharField(max_length=50)
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='goods_receipts')
    received_date = models.DateField(db_index=True)
    warehouse_location = models.CharField(max_length=200, blank=True)
    remarks = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    total_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    accepted_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    rejected_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.grn_no

    def recalculate_totals(self):
        items = list(self.items.all())
        self.total_quantity = sum((item.received_quantity for item in items), Decimal('0'))
        self.accepted_quantity = sum((item.accepted_quantity for item in items), Decimal('0'))
        self.rejected_quantity = sum((item.rejected_quantity for item in items), Decimal('0'))

    class Meta:
        db_table = 'goods_receipts'
        ordering = ['-received_date', '-id']
        unique_together = [['tenant', 'grn_no']]


class GoodsReceiptItem(models.Model):
    """Received, accepted and rejected quantity of one raw material on a GRN"""
    QUALITY_CHOICES = [
        ('pending', 'Pending'),
        ('passed', 'Passed'),
        ('failed', 'Failed'),
    ]

    goods_receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name='items')
    raw_material = models.ForeignKey('catalog.RawMaterial', on_delete=models.RESTRICT, related_name='receipt_items')
    ordered_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    received_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    accepted_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    rejected_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    batch_no = models.CharField(max_length=100, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    quality_status = models.CharField(max_length=20, choices=QUALITY_CHOICES, default='pending')

    class Meta:
        db_table = 'goods_receipt_items'
        ordering = ['id']
