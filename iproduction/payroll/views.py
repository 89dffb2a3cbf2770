import logging
from collections import defaultdict
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, RestrictedError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from iproduction.accounting.utils import post_transaction
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log
from .models import Employee, Attendance, Payroll
from .serializers import (
    EmployeeSerializer, AttendanceSerializer, PayrollSerializer,
    PayrollGenerateSerializer, PayrollPaySerializer
)

logger = logging.getLogger(__name__)

PayrollPermission = module_permission('payroll')


# Employee views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def employee_list_create(request):
    """List employees or add a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        employees = Employee.objects.filter(tenant=tenant)
        status_filter = request.query_params.get('status', None)
        department = request.query_params.get('department', None)
        search = request.query_params.get('search', None)
        if status_filter:
            employees = employees.filter(status=status_filter)
        if department:
            employees = employees.filter(department__iexact=department)
        if search:
            employees = employees.filter(name__icontains=search)
        serializer = EmployeeSerializer(employees, many=True)
        return Response(serializer.data)
    else:
        serializer = EmployeeSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            employee = serializer.save()
            create_audit_log(request=request, action='create', model_name='Employee', object_id=employee.id, object_reference=employee.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def employee_detail(request, pk):
    """Retrieve, update or delete an employee"""
    employee = get_object_or_404(Employee, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = EmployeeSerializer(employee)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = EmployeeSerializer(employee, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            employee.delete()
        except RestrictedError:
            return Response({'error': f"'{employee}' has payroll records; mark the employee inactive instead"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Attendance views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def attendance_list_create(request):
    """List attendance (by employee and date range) or record a day"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        records = Attendance.objects.filter(tenant=tenant).select_related('employee')
        employee = request.query_params.get('employee', None)
        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        status_filter = request.query_params.get('status', None)
        if employee:
            records = records.filter(employee_id=employee)
        if date_from:
            records = records.filter(date__gte=date_from)
        if date_to:
            records = records.filter(date__lte=date_to)
        if status_filter:
            records = records.filter(status=status_filter)
        serializer = AttendanceSerializer(records, many=True)
        return Response(serializer.data)
    else:
        serializer = AttendanceSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def attendance_detail(request, pk):
    """Retrieve, update or delete an attendance record"""
    tenant = get_tenant(request)
    record = get_object_or_404(Attendance, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = AttendanceSerializer(record)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AttendanceSerializer(record, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        record.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def attendance_summary(request):
    """Per-employee attendance status counts for ?month=YYYY-MM"""
    month = request.query_params.get('month') or timezone.now().strftime('%Y-%m')
    serializer = PayrollGenerateSerializer(data={'month': month})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    year, month_number = (int(part) for part in month.split('-'))

    rows = (
        Attendance.objects.filter(tenant=get_tenant(request), date__year=year, date__month=month_number)
        .values('employee_id', 'employee__name', 'status')
        .annotate(count=Count('id'))
    )
    summary = defaultdict(lambda: {'present': 0, 'absent': 0, 'late': 0, 'half-day': 0, 'total': 0})
    names = {}
    for row in rows:
        names[row['employee_id']] = row['employee__name']
        summary[row['employee_id']][row['status']] += row['count']
        summary[row['employee_id']]['total'] += row['count']

    return Response({
        'month': month,
        'employees': [
            {'employee': employee_id, 'employee_name': names[employee_id], **counts}
            for employee_id, counts in sorted(summary.items(), key=lambda pair: names[pair[0]])
        ],
    })


# Payroll views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def payroll_list_create(request):
    """List payrolls (filter by month, employee, status) or add one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        payrolls = Payroll.objects.filter(tenant=tenant).select_related('employee', 'account')
        month = request.query_params.get('month', None)
        employee = request.query_params.get('employee', None)
        status_filter = request.query_params.get('status', None)
        if month:
            payrolls = payrolls.filter(month=month)
        if employee:
            payrolls = payrolls.filter(employee_id=employee)
        if status_filter:
            payrolls = payrolls.filter(status=status_filter)
        serializer = PayrollSerializer(payrolls, many=True)
        return Response(serializer.data)
    else:
        serializer = PayrollSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            payroll = serializer.save()
            create_audit_log(request=request, action='create', model_name='Payroll', object_id=payroll.id,
                             object_reference=f"{payroll.employee.name} {payroll.month}",
                             changes={'net_salary': str(payroll.net_salary)})
            return Response(PayrollSerializer(payroll).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def payroll_detail(request, pk):
    """Retrieve, update or delete a pending payroll"""
    tenant = get_tenant(request)
    payroll = get_object_or_404(Payroll, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = PayrollSerializer(payroll)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PayrollSerializer(payroll, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            payroll = serializer.save()
            return Response(PayrollSerializer(payroll).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if payroll.status == 'paid':
            return Response({'error': 'A paid payroll cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        payroll.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def payroll_generate(request):
    """Create pending payrolls for every active employee missing one for the month"""
    tenant = get_tenant(request)
    serializer = PayrollGenerateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    month = serializer.validated_data['month']

    created = 0
    skipped = 0
    with transaction.atomic():
        existing = set(Payroll.objects.filter(tenant=tenant, month=month).values_list('employee_id', flat=True))
        for employee in Employee.objects.filter(tenant=tenant, status='active'):
            if employee.id in existing:
                skipped += 1
                continue
            payroll = Payroll(tenant=tenant, employee=employee, month=month, basic_salary=employee.salary)
            payroll.compute_net_salary()
            payroll.save()
            created += 1

    logger.info(f"Generated payroll for {month}: {created} created, {skipped} skipped (tenant {tenant.slug})")
    return Response({'month': month, 'created': created, 'skipped': skipped}, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, PayrollPermission])
def payroll_pay(request, pk):
    """Mark a payroll paid, withdrawing the net salary from an account when one is given"""
    tenant = get_tenant(request)
    get_object_or_404(Payroll, pk=pk, tenant=tenant)
    serializer = PayrollPaySerializer(data=request.data, context={'tenant': tenant})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        payroll = Payroll.objects.select_for_update().get(pk=pk)
        if payroll.status == 'paid':
            return Response({'error': 'Payroll is already paid'}, status=status.HTTP_400_BAD_REQUEST)
        account = serializer.validated_data.get('account') or payroll.account
        payroll.status = 'paid'
        payroll.paid_at = timezone.now()
        payroll.account = account
        if account is not None and payroll.net_salary > 0:
            payroll.transaction = post_transaction(
                account, 'withdraw', payroll.net_salary, payroll.paid_at.date(),
                description=f"Salary {payroll.month}: {payroll.employee.name}", reference=f"PAYROLL-{payroll.pk}",
            )
        payroll.save()

    create_audit_log(request=request, action='payroll_pay', model_name='Payroll', object_id=payroll.id,
                     object_reference=f"{payroll.employee.name} {payroll.month}",
                     changes={'net_salary': str(payroll.net_salary), 'account': account.name if account else None})
    return Response(PayrollSerializer(payroll).data)
