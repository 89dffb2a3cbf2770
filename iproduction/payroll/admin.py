from django.contrib import admin
from .models import Employee, Attendance, Payroll


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['name', 'position', 'department', 'salary', 'status', 'tenant']
    list_filter = ['status', 'department', 'tenant']
    search_fields = ['name', 'email', 'phone']


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ['employee', 'date', 'status', 'in_time', 'out_time', 'tenant']
    list_filter = ['status', 'tenant', 'date']


@admin.register(Payroll)
class PayrollAdmin(admin.ModelAdmin):
    list_display = ['employee', 'month', 'basic_salary', 'bonus', 'deductions', 'net_salary', 'status', 'tenant']
    list_filter = ['status', 'month', 'tenant']
    readonly_fields = ['net_salary', 'paid_at', 'transaction']
