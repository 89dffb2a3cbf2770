from django.core.validators import RegexValidator
from django.db import models
from decimal import Decimal

from iproduction.core.models import TenantScopedModel

month_validator = RegexValidator(r'^\d{4}-(0[1-9]|1[0-2])$', 'Month must be in YYYY-MM format.')


class Employee(TenantScopedModel):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    position = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), help_text='Monthly basic salary')
    join_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'employees'
        ordering = ['name']


class Attendance(TenantScopedModel):
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('late', 'Late'),
        ('half-day', 'Half Day'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField(db_index=True)
    in_time = models.TimeField(null=True, blank=True)
    out_time = models.TimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='present')
    note = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.employee.name} {self.date}: {self.status}"

    class Meta:
        db_table = 'attendance'
        verbose_name_plural = 'attendance'
        ordering = ['-date', 'employee__name']
        unique_together = [['employee', 'date']]


class Payroll(TenantScopedModel):
    """Monthly salary sheet line for one employee"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.RESTRICT, related_name='payrolls')
    month = models.CharField(max_length=7, validators=[month_validator], db_index=True)
    basic_salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    bonus = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    account = models.ForeignKey('accounting.Account', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    transaction = models.OneToOneField('accounting.Transaction', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.employee.name} {self.month}"

    def compute_net_salary(self):
        """basic + bonus - deductions, never below zero"""
        self.net_salary = max(Decimal('0.00'), self.basic_salary + self.bonus - self.deductions)
        return self.net_salary

    class Meta:
        db_table = 'payrolls'
        ordering = ['-month', 'employee__name']
        unique_together = [['employee', 'month']]
