"""
Test suite for employees, attendance and payroll
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from iproduction.accounting.models import Transaction
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.payroll.models import Attendance, Payroll


class EmployeeTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_filter(self):
        response = self.client.post('/api/v1/employees/', {
            'name': 'Mike Johnson', 'position': 'Production Manager', 'department': 'Production',
            'salary': '5000.00', 'join_date': '2023-01-15'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        TestDataFactory.create_employee(self.tenant, name='Old Hand', status='inactive')

        response = self.client.get('/api/v1/employees/', {'status': 'active'})
        self.assertEqual([e['name'] for e in response.data], ['Mike Johnson'])
        response = self.client.get('/api/v1/employees/', {'department': 'production'})
        self.assertEqual(len(response.data), 1)

    def test_negative_salary_rejected(self):
        response = self.client.post('/api/v1/employees/', {'name': 'X', 'salary': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_employee_with_payroll_cannot_be_deleted(self):
        employee = TestDataFactory.create_employee(self.tenant)
        Payroll.objects.create(tenant=self.tenant, employee=employee, month='2024-01', basic_salary=employee.salary)
        response = self.client.delete(f'/api/v1/employees/{employee.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AttendanceTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.mike = TestDataFactory.create_employee(self.tenant, name='Mike Johnson')
        self.sarah = TestDataFactory.create_employee(self.tenant, name='Sarah Williams')

    def _record(self, employee, date, status_value='present', **extra):
        payload = {'employee': employee.id, 'date': date, 'status': status_value}
        payload.update(extra)
        return self.client.post('/api/v1/attendance/', payload, format='json')

    def test_one_record_per_employee_and_day(self):
        self.assertEqual(self._record(self.mike, '2024-01-15').status_code, status.HTTP_201_CREATED)
        self.assertEqual(self._record(self.mike, '2024-01-15').status_code, status.HTTP_400_BAD_REQUEST)

    def test_out_time_before_in_time_rejected(self):
        response = self._record(self.mike, '2024-01-15', in_time='17:00', out_time='09:00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_employee_rejected(self):
        foreign = TestDataFactory.create_employee(TestDataFactory.create_tenant())
        self.assertEqual(self._record(foreign, '2024-01-15').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Attendance.objects.exists())

    def test_monthly_summary(self):
        self._record(self.mike, '2024-01-15', in_time='09:00', out_time='17:00')
        self._record(self.mike, '2024-01-16', 'late')
        self._record(self.sarah, '2024-01-15', 'absent')
        self._record(self.sarah, '2024-02-01')

        response = self.client.get('/api/v1/attendance/summary/', {'month': '2024-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mike, sarah = response.data['employees']
        self.assertEqual(mike['employee_name'], 'Mike Johnson')
        self.assertEqual((mike['present'], mike['late'], mike['total']), (1, 1, 2))
        self.assertEqual((sarah['absent'], sarah['total']), (1, 1))

    def test_summary_rejects_bad_month(self):
        response = self.client.get('/api/v1/attendance/summary/', {'month': '2024-13'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PayrollTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.mike = TestDataFactory.create_employee(self.tenant, name='Mike Johnson', salary=Decimal('3000.00'))
        self.account = TestDataFactory.create_account(self.tenant, balance=Decimal('10000.00'))

    def test_create_computes_net_salary(self):
        response = self.client.post('/api/v1/payrolls/', {
            'employee': self.mike.id, 'month': '2024-01', 'bonus': '200.00', 'deductions': '100.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['basic_salary'], '3000.00')
        self.assertEqual(response.data['net_salary'], '3100.00')
        self.assertEqual(response.data['status'], 'pending')

    def test_net_salary_never_negative(self):
        response = self.client.post('/api/v1/payrolls/', {
            'employee': self.mike.id, 'month': '2024-01', 'deductions': '5000.00'
        }, format='json')
        self.assertEqual(response.data['net_salary'], '0.00')

    def test_duplicate_month_and_bad_month_rejected(self):
        self.client.post('/api/v1/payrolls/', {'employee': self.mike.id, 'month': '2024-01'}, format='json')
        response = self.client.post('/api/v1/payrolls/', {'employee': self.mike.id, 'month': '2024-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/payrolls/', {'employee': self.mike.id, 'month': 'Jan 2024'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_generate_skips_existing_and_inactive(self):
        TestDataFactory.create_employee(self.tenant, name='Sarah Williams')
        TestDataFactory.create_employee(self.tenant, name='Gone', status='inactive')
        Payroll.objects.create(tenant=self.tenant, employee=self.mike, month='2024-01', basic_salary=Decimal('3000.00'))

        response = self.client.post('/api/v1/payrolls/generate/', {'month': '2024-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual((response.data['created'], response.data['skipped']), (1, 1))

        response = self.client.post('/api/v1/payrolls/generate/', {'month': '2024-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 0)

    def test_pay_withdraws_from_account(self):
        payroll_id = self.client.post('/api/v1/payrolls/', {
            'employee': self.mike.id, 'month': '2024-01', 'bonus': '200.00', 'deductions': '100.00'
        }, format='json').data['id']

        response = self.client.post(f'/api/v1/payrolls/{payroll_id}/pay/', {'account': self.account.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'paid')
        self.assertIsNotNone(response.data['paid_at'])

        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('6900.00'))
        transaction = Transaction.objects.get(pk=response.data['transaction'])
        self.assertEqual(transaction.type, 'withdraw')
        self.assertEqual(transaction.amount, Decimal('3100.00'))

        response = self.client.post(f'/api/v1/payrolls/{payroll_id}/pay/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paid_payroll_is_frozen(self):
        payroll = Payroll.objects.create(tenant=self.tenant, employee=self.mike, month='2024-01',
                                         basic_salary=Decimal('3000.00'), net_salary=Decimal('3000.00'))
        self.client.post(f'/api/v1/payrolls/{payroll.id}/pay/', format='json')

        response = self.client.patch(f'/api/v1/payrolls/{payroll.id}/', {'bonus': '50.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/payrolls/{payroll.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_payroll_update_recomputes(self):
        payroll = Payroll.objects.create(tenant=self.tenant, employee=self.mike, month='2024-01',
                                         basic_salary=Decimal('3000.00'), net_salary=Decimal('3000.00'))
        response = self.client.patch(f'/api/v1/payrolls/{payroll.id}/', {'bonus': '500.00'}, format='json')
        self.assertEqual(response.data['net_salary'], '3500.00')
