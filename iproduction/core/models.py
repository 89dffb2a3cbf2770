from django.contrib.auth.models import AbstractUser
from decimal import Decimal
from django.db import models


class Tenant(models.Model):
    """Customer organization owning a set of business records"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('suspended', 'Suspended'),
    ]

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    tax_number = models.CharField(max_length=50, blank=True)
    currency = models.CharField(max_length=10, default='USD')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_active(self):
        return self.status == 'active'

    class Meta:
        db_table = 'tenants'
        ordering = ['name']


class TenantScopedModel(models.Model):
    """Base for every record that belongs to exactly one tenant"""
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name='%(app_label)s_%(class)s_set')

    class Meta:
        abstract = True


class Role(TenantScopedModel):
    """Named set of module permissions, e.g. ["sales.view", "production.*"]"""
    name = models.CharField(max_length=100)
    permissions = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def grants(self, module, level):
        perms = set(self.permissions or [])
        return bool(perms & {'*', f'{module}.*', f'{module}.{level}'})

    class Meta:
        db_table = 'roles'
        ordering = ['name']
        unique_together = [['tenant', 'name']]


class User(AbstractUser):
    """Extended user model. Users without a tenant are platform operators."""
    phone = models.CharField(max_length=20, blank=True, null=True)
    full_name = models.CharField(max_length=200, blank=True)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, null=True, blank=True, related_name='users')
    role = models.ForeignKey(Role, on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def get_display_name(self):
        return self.full_name or self.get_full_name() or self.username

    class Meta:
        db_table = 'users'


class CompanyProfile(models.Model):
    """Letterhead details printed on documents"""
    tenant = models.OneToOneField(Tenant, on_delete=models.CASCADE, related_name='company_profile')
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    logo = models.TextField(blank=True, help_text='Logo URL or data URL')
    tax_number = models.CharField(max_length=50, blank=True)
    currency = models.CharField(max_length=10, default='USD')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @classmethod
    def for_tenant(cls, tenant):
        profile, _ = cls.objects.get_or_create(
            tenant=tenant,
            defaults={
                'name': tenant.name,
                'email': tenant.email,
                'phone': tenant.phone,
                'address': tenant.address,
                'tax_number': tenant.tax_number,
                'currency': tenant.currency,
            }
        )
        return profile

    class Meta:
        db_table = 'company_profiles'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('stock_adjust', 'Stock Adjustment'),
        ('payment_add', 'Payment Added'),
        ('payment_receive', 'Payment Received'),
        ('production_advance', 'Production Stage Advanced'),
        ('production_complete', 'Production Completed'),
        ('production_cancel', 'Production Cancelled'),
        ('payroll_pay', 'Payroll Paid'),
        ('data_import', 'Data Imported'),
        ('data_reset', 'Data Reset'),
        ('document_email', 'Document E-mailed'),
        ('period_close', 'Accounting Period Closed'),
        ('period_reopen', 'Accounting Period Reopened'),
    ]

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, null=True, blank=True, related_name='audit_logs')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., invoice number, production reference)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]


class SettledDocument(TenantScopedModel):
    """Sale/purchase style document with a total that is paid off over time"""
    PAYMENT_STATUS_CHOICES = [
        ('paid', 'Paid'),
        ('partial', 'Partial'),
        ('unpaid', 'Unpaid'),
    ]

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid', db_index=True)

    def refresh_payment_status(self):
        """Recompute due and status from total and paid"""
        self.due = self.total - self.paid
        if self.due <= 0:
            self.status = 'paid'
        elif self.paid == 0:
            self.status = 'unpaid'
        else:
            self.status = 'partial'

    class Meta:
        abstract = True
