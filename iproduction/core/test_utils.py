"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from iproduction.core.models import Tenant, Role
from iproduction.outlets.models import Outlet
from iproduction.catalog.models import ProductCategory, Product, RawMaterialCategory, RawMaterial, BillOfMaterialLine
from iproduction.parties.models import Customer, Supplier
from iproduction.accounting.models import Account, ExpenseCategory
from iproduction.production.models import ProductionStage
from iproduction.payroll.models import Employee
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_tenant(name=None, slug=None, status='active'):
        """Create a test tenant"""
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'company-{TestDataFactory.random_string(8).lower()}'
        return Tenant.objects.create(name=name, slug=slug, email=f'{slug}@test.com', status=status)

    @staticmethod
    def create_role(tenant, name=None, permissions=None):
        """Create a role; defaults to full access"""
        if not name:
            name = f'Role_{TestDataFactory.random_string(6)}'
        return Role.objects.create(tenant=tenant, name=name, permissions=permissions if permissions is not None else ['*'])

    @staticmethod
    def create_user(tenant=None, username=None, email=None, password='testpass123', permissions=None,
                    is_staff=False, is_superuser=False):
        """
        Create a test user.

        With a tenant the user gets a role carrying `permissions` (full access
        by default); without one the user is a platform operator.
        """
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        role = TestDataFactory.create_role(tenant, permissions=permissions) if tenant else None
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            tenant=tenant,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_outlet(tenant, name=None, code=None):
        """Create a test outlet"""
        if not name:
            name = f'Outlet_{TestDataFactory.random_string(6)}'
        if not code:
            code = f'OUT_{TestDataFactory.random_string(6).upper()}'
        return Outlet.objects.create(tenant=tenant, name=name, code=code, address=f'Test Address {name}', phone='1234567890')

    @staticmethod
    def create_product(tenant, name=None, sku=None, category=None, price=None, cost=None, stock=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        if category is None:
            category = ProductCategory.objects.create(tenant=tenant, name=f'Category_{TestDataFactory.random_string(6)}')
        return Product.objects.create(
            tenant=tenant,
            name=name,
            sku=sku,
            category=category,
            price=price if price is not None else Decimal('100.00'),
            cost=cost if cost is not None else Decimal('60.00'),
            stock=stock if stock is not None else Decimal('0')
        )

    @staticmethod
    def create_raw_material(tenant, name=None, sku=None, price=None, stock=None, min_stock=None):
        """Create a test raw material"""
        if not name:
            name = f'Material_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'RM_{TestDataFactory.random_string(8)}'
        category = RawMaterialCategory.objects.create(tenant=tenant, name=f'RM Category_{TestDataFactory.random_string(6)}')
        return RawMaterial.objects.create(
            tenant=tenant,
            name=name,
            sku=sku,
            category=category,
            price=price if price is not None else Decimal('10.00'),
            stock=stock if stock is not None else Decimal('100'),
            min_stock=min_stock if min_stock is not None else Decimal('10')
        )

    @staticmethod
    def create_bom_line(product, raw_material, quantity):
        """Raw material needed per unit of product"""
        return BillOfMaterialLine.objects.create(
            tenant=product.tenant,
            product=product,
            raw_material=raw_material,
            quantity=Decimal(quantity)
        )

    @staticmethod
    def create_customer(tenant, name=None, phone=None, email=None, balance=None):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'9{random.randint(100000000, 999999999)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Customer.objects.create(tenant=tenant, name=name, phone=phone, email=email,
                                       balance=balance if balance is not None else Decimal('0.00'))

    @staticmethod
    def create_supplier(tenant, name=None, phone=None, email=None, balance=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'9{random.randint(100000000, 999999999)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Supplier.objects.create(tenant=tenant, name=name, phone=phone, email=email,
                                       balance=balance if balance is not None else Decimal('0.00'))

    @staticmethod
    def create_account(tenant, name=None, type='bank', balance=None):
        """Create a test money account"""
        if not name:
            name = f'Account_{TestDataFactory.random_string(6)}'
        return Account.objects.create(tenant=tenant, name=name, type=type,
                                      balance=balance if balance is not None else Decimal('1000.00'))

    @staticmethod
    def create_expense_category(tenant, name=None):
        if not name:
            name = f'Expense_{TestDataFactory.random_string(6)}'
        return ExpenseCategory.objects.create(tenant=tenant, name=name)

    @staticmethod
    def create_stages(tenant, names=('Cutting', 'Assembly', 'Packaging')):
        """Create ordered production stages starting at order 1"""
        return [
            ProductionStage.objects.create(tenant=tenant, name=name, order=order)
            for order, name in enumerate(names, start=1)
        ]

    @staticmethod
    def create_employee(tenant, name=None, salary=None, status='active'):
        """Create a test employee"""
        if not name:
            name = f'Employee_{TestDataFactory.random_string(6)}'
        return Employee.objects.create(
            tenant=tenant,
            name=name,
            email=f'{name.lower()}@test.com',
            salary=salary if salary is not None else Decimal('3000.00'),
            join_date=timezone.now().date(),
            status=status
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
