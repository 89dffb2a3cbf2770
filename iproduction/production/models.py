from django.db import models
from decimal import Decimal

from iproduction.core.models import User, TenantScopedModel


class ProductionStage(TenantScopedModel):
    """Ordered shop-floor stage (Cutting, Sewing, Finishing, ...)"""
    name = models.CharField(max_length=100)
    order = models.PositiveIntegerField()

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'production_stages'
        ordering = ['order']
        unique_together = [['tenant', 'order']]


class Production(TenantScopedModel):
    """Production run of a product"""
    STATUS_CHOICES = [
        ('running', 'Running'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    reference_no = models.CharField(max_length=50)
    product = models.ForeignKey('catalog.Product', on_delete=models.RESTRICT, related_name='productions')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    completed_qty = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    start_date = models.DateField(db_index=True)
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='running', db_index=True)
    stage = models.ForeignKey(ProductionStage, on_delete=models.SET_NULL, null=True, blank=True, related_name='productions')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.reference_no

    @property
    def efficiency(self):
        """completed / planned x 100"""
        if not self.quantity:
            return Decimal('0')
        return self.completed_qty / self.quantity * 100

    @property
    def duration_days(self):
        if not self.end_date:
            return None
        return (self.end_date - self.start_date).days

    class Meta:
        db_table = 'productions'
        ordering = ['-start_date', '-id']
        unique_together = [['tenant', 'reference_no']]


class ProductionMaterial(models.Model):
    """Raw material taken out of stock when the production started"""
    production = models.ForeignKey(Production, on_delete=models.CASCADE, related_name='materials')
    raw_material = models.ForeignKey('catalog.RawMaterial', on_delete=models.RESTRICT, related_name='production_materials')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)

    class Meta:
        db_table = 'production_materials'


class StageTransition(models.Model):
    """Time a production spent in a stage"""
    STATUS_CHOICES = [
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    production = models.ForeignKey(Production, on_delete=models.CASCADE, related_name='transitions')
    stage = models.ForeignKey(ProductionStage, on_delete=models.RESTRICT, related_name='transitions')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='in_progress')
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.production.reference_no} @ {self.stage.name}"

    class Meta:
        db_table = 'stage_transitions'
        ordering = ['started_at', 'id']


class ProductionLoss(TenantScopedModel):
    """Recorded loss of finished goods (does not move stock)"""
    LOSS_TYPE_CHOICES = [
        ('damage', 'Damage'),
        ('defect', 'Defect'),
        ('expiry', 'Expiry'),
        ('spillage', 'Spillage'),
        ('theft', 'Theft'),
        ('other', 'Other'),
    ]

    product = models.ForeignKey('catalog.Product', on_delete=models.RESTRICT, related_name='losses')
    production = models.ForeignKey(Production, on_delete=models.SET_NULL, null=True, blank=True, related_name='losses')
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    loss_type = models.CharField(max_length=20, choices=LOSS_TYPE_CHOICES, default='other')
    date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name}: {self.quantity} ({self.loss_type})"

    class Meta:
        db_table = 'production_losses'
        ordering = ['-date', '-id']


class QCTemplate(TenantScopedModel):
    """Named checklist of test parameters for one inspection stage"""
    TYPE_CHOICES = [
        ('incoming', 'Incoming'),
        ('inprocess', 'In-process'),
        ('final', 'Final'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='final')
    parameters = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'qc_templates'
        ordering = ['name']


class NonConformanceReport(TenantScopedModel):
    """NCR raised when inspections find a quality problem"""
    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('investigating', 'Investigating'),
        ('resolved', 'Resolved'),
        ('closed', 'Closed'),
    ]

    report_no = models.CharField(max_length=50)
    description = models.TextField()
    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    root_cause = models.TextField(blank=True)
    corrective_action = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.report_no

    class Meta:
        db_table = 'non_conformance_reports'
        ordering = ['-created_at', '-id']
        unique_together = [['tenant', 'report_no']]


class QCInspection(TenantScopedModel):
    """
    Inspection run against a template.

    `results` maps each tested parameter to {"passed": bool, ...}; status and
    defect_count are derived from it when the inspection is saved through the API.
    """
    STATUS_CHOICES = [
        ('passed', 'Passed'),
        ('failed', 'Failed'),
    ]

    template = models.ForeignKey(QCTemplate, on_delete=models.RESTRICT, related_name='inspections')
    production = models.ForeignKey(Production, on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    purchase = models.ForeignKey('purchasing.Purchase', on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    sale = models.ForeignKey('sales.Sale', on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    non_conformance = models.ForeignKey(NonConformanceReport, on_delete=models.SET_NULL, null=True, blank=True, related_name='inspections')
    batch_no = models.CharField(max_length=100, blank=True)
    inspection_date = models.DateField(db_index=True)
    results = models.JSONField(default=dict)
    passed_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    rejected_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    defect_count = models.PositiveIntegerField(default=0)
    defect_notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='passed')
    inspected_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.template.name} {self.inspection_date} ({self.status})"

    class Meta:
        db_table = 'qc_inspections'
        ordering = ['-inspection_date', '-id']
