from django.urls import path
from .views import (
    employee_list_create, employee_detail,
    attendance_list_create, attendance_summary, attendance_detail,
    payroll_list_create, payroll_generate, payroll_detail, payroll_pay
)

urlpatterns = [
    path('employees/', employee_list_create, name='employee-list-create'),
    path('employees/<int:pk>/', employee_detail, name='employee-detail'),
    path('attendance/', attendance_list_create, name='attendance-list-create'),
    path('attendance/summary/', attendance_summary, name='attendance-summary'),
    path('attendance/<int:pk>/', attendance_detail, name='attendance-detail'),
    path('payrolls/', payroll_list_create, name='payroll-list-create'),
    path('payrolls/generate/', payroll_generate, name='payroll-generate'),
    path('payrolls/<int:pk>/', payroll_detail, name='payroll-detail'),
    path('payrolls/<int:pk>/pay/', payroll_pay, name='payroll-pay'),
]
