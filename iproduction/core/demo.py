"""
Demo dataset loaded on data reset and by the seed_demo command.

Stock levels and party balances are stored as they stand after the seeded
documents, so sale/purchase dues and customer/supplier balances agree.
"""
import logging
from datetime import date, datetime, time
from decimal import Decimal

from django.utils import timezone

from iproduction.accounting.models import Account, Transaction, ExpenseCategory, Expense
from iproduction.catalog.models import (
    Unit, Currency, ProductCategory, Product, RawMaterialCategory, RawMaterial,
    BillOfMaterialLine, NonInventoryItem,
)
from iproduction.inventory.models import RawMaterialWaste, ProductWaste
from iproduction.outlets.models import Outlet
from iproduction.parties.models import Customer, Supplier, CustomerReceive, SupplierPayment
from iproduction.payroll.models import Employee, Attendance, Payroll
from iproduction.production.models import ProductionStage, Production, StageTransition, ProductionLoss
from iproduction.purchasing.models import Purchase, PurchaseItem
from iproduction.sales.models import Quotation, QuotationItem, Sale, SaleItem

from .models import CompanyProfile

logger = logging.getLogger(__name__)

D = Decimal


def _at(day, hour=9):
    return timezone.make_aware(datetime.combine(day, time(hour, 0)))


def _settle(document, paid):
    document.recalculate_totals()
    document.paid = paid
    document.refresh_payment_status()
    document.save()


def seed_demo_data(tenant):
    """Create the demo records for `tenant`; returns {collection: count}"""
    counts = {}

    def track(name, objects):
        counts[name] = counts.get(name, 0) + len(objects)
        return objects

    profile = CompanyProfile.for_tenant(tenant)
    profile.name = 'IProduction Company'
    profile.email = 'info@iproduction.com'
    profile.phone = '123-456-7890'
    profile.address = '123 Business Park, City, Country'
    profile.tax_number = 'TAX-123456'
    profile.currency = 'USD'
    profile.save()

    track('outlets', [
        Outlet.objects.create(tenant=tenant, name='Main Branch', code='MAIN', phone='123-456-7890',
                              email='main@company.com', address='123 Main St, City'),
        Outlet.objects.create(tenant=tenant, name='Downtown Store', code='DTWN', phone='098-765-4321',
                              email='downtown@company.com', address='456 Downtown Ave, City'),
    ])

    track('units', [
        Unit.objects.create(tenant=tenant, name=name, short_name=short)
        for name, short in [('Piece', 'pcs'), ('Kilogram', 'kg'), ('Meter', 'm'), ('Liter', 'L')]
    ])
    track('currencies', [
        Currency.objects.create(tenant=tenant, name='US Dollar', code='USD', symbol='$', rate=D('1')),
        Currency.objects.create(tenant=tenant, name='Euro', code='EUR', symbol='€', rate=D('0.85')),
    ])

    widgets = ProductCategory.objects.create(tenant=tenant, name='Widgets', description='Various widget products')
    gadgets = ProductCategory.objects.create(tenant=tenant, name='Gadgets', description='Electronic gadgets')
    track('product_categories', [widgets, gadgets])

    widget_a = Product.objects.create(tenant=tenant, name='Widget A', category=widgets, sku='WGT-001',
                                      price=D('29.99'), cost=D('15.00'), stock=D('150'), unit='pcs')
    widget_b = Product.objects.create(tenant=tenant, name='Widget B', category=widgets, sku='WGT-002',
                                      price=D('49.99'), cost=D('25.00'), stock=D('80'), unit='pcs')
    gadget_x = Product.objects.create(tenant=tenant, name='Gadget X', category=gadgets, sku='GDG-001',
                                      price=D('99.99'), cost=D('50.00'), stock=D('45'), unit='pcs')
    track('products', [widget_a, widget_b, gadget_x])

    metals = RawMaterialCategory.objects.create(tenant=tenant, name='Metals', description='Metal raw materials')
    plastics = RawMaterialCategory.objects.create(tenant=tenant, name='Plastics', description='Plastic raw materials')
    track('raw_material_categories', [metals, plastics])

    steel = RawMaterial.objects.create(tenant=tenant, name='Steel Sheet', category=metals, sku='RM-001',
                                       price=D('50.00'), stock=D('500'), unit='kg', min_stock=D('100'))
    pellets = RawMaterial.objects.create(tenant=tenant, name='Plastic Pellets', category=plastics, sku='RM-002',
                                         price=D('15.00'), stock=D('1000'), unit='kg', min_stock=D('200'))
    copper = RawMaterial.objects.create(tenant=tenant, name='Copper Wire', category=metals, sku='RM-003',
                                        price=D('80.00'), stock=D('50'), unit='meter', min_stock=D('100'))
    track('raw_materials', [steel, pellets, copper])

    track('bom_lines', [
        BillOfMaterialLine.objects.create(tenant=tenant, product=widget_a, raw_material=steel, quantity=D('0.5')),
        BillOfMaterialLine.objects.create(tenant=tenant, product=widget_a, raw_material=pellets, quantity=D('0.2')),
        BillOfMaterialLine.objects.create(tenant=tenant, product=widget_b, raw_material=steel, quantity=D('0.8')),
        BillOfMaterialLine.objects.create(tenant=tenant, product=gadget_x, raw_material=copper, quantity=D('1.5')),
        BillOfMaterialLine.objects.create(tenant=tenant, product=gadget_x, raw_material=pellets, quantity=D('0.3')),
    ])

    track('non_inventory_items', [
        NonInventoryItem.objects.create(tenant=tenant, name='Office Supplies', code='OS-001', category='office-supplies',
                                        unit='pack', description='General office supplies', price=D('50.00'),
                                        tax=D('5.00'), supplier='ABC Office Co.'),
        NonInventoryItem.objects.create(tenant=tenant, name='Annual Software License', code='SL-001', category='licenses',
                                        unit='service', description='Enterprise software license for 1 year',
                                        price=D('1000.00'), tax=D('100.00'), supplier='Tech Solutions Inc.'),
    ])

    john = Customer.objects.create(tenant=tenant, name='John Doe', phone='111-222-3333', email='john@email.com',
                                   address='123 Customer St', balance=D('0.00'))
    jane = Customer.objects.create(tenant=tenant, name='Jane Smith', phone='444-555-6666', email='jane@email.com',
                                   address='456 Client Ave', balance=D('149.95'))
    track('customers', [john, jane])
    abc = Supplier.objects.create(tenant=tenant, name='ABC Suppliers', phone='777-888-9999', email='abc@supplier.com',
                                  address='789 Supplier Rd', balance=D('0.00'))
    xyz = Supplier.objects.create(tenant=tenant, name='XYZ Materials', phone='000-111-2222', email='xyz@materials.com',
                                  address='321 Material Ln', balance=D('2500.00'))
    track('suppliers', [abc, xyz])

    bank = Account.objects.create(tenant=tenant, name='Main Bank Account', type='bank', balance=D('50000.00'),
                                  account_number='1234567890')
    petty = Account.objects.create(tenant=tenant, name='Petty Cash', type='cash', balance=D('2000.00'))
    track('accounts', [bank, petty])
    track('transactions', [
        Transaction.objects.create(tenant=tenant, account=bank, type='deposit', amount=D('10000.00'),
                                   date=date(2024, 1, 15), description='Customer payment'),
        Transaction.objects.create(tenant=tenant, account=petty, type='withdraw', amount=D('500.00'),
                                   date=date(2024, 1, 20), description='Office supplies'),
    ])

    office = ExpenseCategory.objects.create(tenant=tenant, name='Office Supplies', description='Stationery and office equipment')
    utilities = ExpenseCategory.objects.create(tenant=tenant, name='Utilities', description='Electricity, water, internet')
    travel = ExpenseCategory.objects.create(tenant=tenant, name='Travel', description='Transportation and travel expenses')
    track('expense_categories', [office, utilities, travel])
    track('expenses', [
        Expense.objects.create(tenant=tenant, category=office, amount=D('500.00'), date=date(2024, 1, 20),
                               description='Office supplies', payment_method='Cash'),
        Expense.objects.create(tenant=tenant, category=utilities, amount=D('1200.00'), date=date(2024, 1, 21),
                               description='Electricity bill', payment_method='Bank Transfer'),
    ])

    quotation = Quotation.objects.create(tenant=tenant, quotation_no='QUO-001', customer=john,
                                         valid_until=date(2024, 2, 20), status='sent')
    QuotationItem.objects.create(quotation=quotation, product=widget_a, quantity=D('50'), price=D('27.99'))
    quotation.recalculate_total()
    quotation.save(update_fields=['total'])
    track('quotations', [quotation])

    sale_1 = Sale.objects.create(tenant=tenant, invoice_no='INV-001', customer=john, date=date(2024, 1, 20))
    SaleItem.objects.create(sale=sale_1, product=widget_a, quantity=D('10'), price=D('29.99'))
    _settle(sale_1, D('299.90'))
    sale_2 = Sale.objects.create(tenant=tenant, invoice_no='INV-002', customer=jane, date=date(2024, 1, 22))
    SaleItem.objects.create(sale=sale_2, product=widget_b, quantity=D('5'), price=D('49.99'))
    _settle(sale_2, D('100.00'))
    track('sales', [sale_1, sale_2])

    purchase = Purchase.objects.create(tenant=tenant, invoice_no='PUR-001', supplier=abc, date=date(2024, 1, 15))
    PurchaseItem.objects.create(purchase=purchase, raw_material=steel, quantity=D('100'), price=D('50.00'))
    _settle(purchase, D('5000.00'))
    track('purchases', [purchase])

    track('customer_receives', [
        CustomerReceive.objects.create(tenant=tenant, customer=john, sale=sale_1, amount=D('299.90'),
                                       date=date(2024, 1, 20), payment_method='cash', reference='REC-001'),
    ])
    track('supplier_payments', [
        SupplierPayment.objects.create(tenant=tenant, supplier=abc, purchase=purchase, amount=D('5000.00'),
                                       date=date(2024, 1, 15), payment_method='bank', reference='PAY-001'),
    ])

    stages = [
        ProductionStage.objects.create(tenant=tenant, name=name, order=order)
        for order, name in enumerate(['Cutting', 'Assembly', 'Quality Check', 'Packaging'], start=1)
    ]
    track('production_stages', stages)
    cutting, assembly, packaging = stages[0], stages[1], stages[3]

    running = Production.objects.create(tenant=tenant, reference_no='PRD-001', product=widget_a, quantity=D('100'),
                                        start_date=date(2024, 1, 20), status='running', stage=assembly,
                                        notes='Priority order')
    StageTransition.objects.create(production=running, stage=cutting, status='completed',
                                   started_at=_at(date(2024, 1, 20)), completed_at=_at(date(2024, 1, 20), 17))
    StageTransition.objects.create(production=running, stage=assembly, status='in_progress',
                                   started_at=_at(date(2024, 1, 21)))
    completed = Production.objects.create(tenant=tenant, reference_no='PRD-002', product=widget_b, quantity=D('50'),
                                          completed_qty=D('50'), start_date=date(2024, 1, 18),
                                          end_date=date(2024, 1, 22), status='completed', stage=packaging)
    StageTransition.objects.create(production=completed, stage=packaging, status='completed',
                                   started_at=_at(date(2024, 1, 21)), completed_at=_at(date(2024, 1, 22), 17))
    track('productions', [running, completed])

    track('production_losses', [
        ProductionLoss.objects.create(tenant=tenant, product=widget_a, production=running, quantity=D('5'),
                                      loss_type='defect', date=date(2024, 1, 20), reason='Quality control rejection',
                                      notes='Recheck process needed'),
    ])

    track('raw_material_wastes', [
        RawMaterialWaste.objects.create(tenant=tenant, raw_material=steel, quantity=D('5'), date=date(2024, 1, 20),
                                        reason='Defective batch'),
    ])
    track('product_wastes', [
        ProductWaste.objects.create(tenant=tenant, product=widget_a, quantity=D('3'), date=date(2024, 1, 21),
                                    reason='Quality control rejection'),
    ])

    mike = Employee.objects.create(tenant=tenant, name='Mike Johnson', email='mike@company.com', phone='111-111-1111',
                                   position='Production Manager', department='Production', salary=D('3000.00'),
                                   join_date=date(2023, 6, 1))
    sarah = Employee.objects.create(tenant=tenant, name='Sarah Wilson', email='sarah@company.com', phone='222-222-2222',
                                    position='Sales Executive', department='Sales', salary=D('2500.00'),
                                    join_date=date(2023, 8, 15))
    track('employees', [mike, sarah])
    track('attendance', [
        Attendance.objects.create(tenant=tenant, employee=mike, date=date(2024, 1, 22), in_time=time(9, 0),
                                  out_time=time(17, 0), status='present'),
        Attendance.objects.create(tenant=tenant, employee=sarah, date=date(2024, 1, 22), in_time=time(9, 15),
                                  out_time=time(17, 0), status='late', note='Traffic delay'),
    ])
    payroll = Payroll(tenant=tenant, employee=mike, month='2024-01', basic_salary=D('3000.00'), bonus=D('200.00'),
                      deductions=D('100.00'), status='paid', paid_at=_at(date(2024, 1, 31)))
    payroll.compute_net_salary()
    payroll.save()
    track('payrolls', [payroll])

    logger.info(f"Seeded demo data for tenant {tenant.slug}: {sum(counts.values())} records")
    return counts
