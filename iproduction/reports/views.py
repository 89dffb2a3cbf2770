import logging
from decimal import Decimal
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Avg, Count, F, Q, Sum

from iproduction.accounting.models import Expense
from iproduction.catalog.models import RawMaterial
from iproduction.core.cache_utils import cached_tenant_query
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import MAX_PAGE_SIZE, date_range_from_params, json_safe, positive_int_param
from iproduction.inventory.utils import stock_valuation
from iproduction.parties.models import Customer, Supplier
from iproduction.production.models import Production, ProductionLoss
from iproduction.purchasing.models import Purchase
from iproduction.sales.models import Quotation, Sale
from .exporting import csv_response, wants_csv

logger = logging.getLogger(__name__)

ReportsPermission = module_permission('reports')

ZERO = Decimal('0.00')


def _period(date_from, date_to):
    return {'from': date_from.isoformat(), 'to': date_to.isoformat()}


def _report(request, data, rows_key, columns, filename):
    """JSON report, or its rows as CSV with ?export=csv"""
    if wants_csv(request):
        logger.info(f"User {request.user.username} exported {filename}")
        return csv_response(filename, columns, data[rows_key])
    return Response(json_safe(data))


def _limit(request, default=10):
    return positive_int_param(request.query_params, 'limit', default, maximum=MAX_PAGE_SIZE)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def sales_report(request):
    """Sales in the period with totals and a daily breakdown"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    sales = Sale.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to).select_related('customer')

    totals = sales.aggregate(total=Sum('total'), paid=Sum('paid'), due=Sum('due'), avg=Avg('total'), count=Count('id'))
    daily = sales.values('date').annotate(total=Sum('total'), count=Count('id')).order_by('date')

    rows = [
        {'invoice_no': s.invoice_no, 'date': s.date, 'customer': s.customer.name, 'subtotal': s.subtotal,
         'tax_amount': s.tax_amount, 'total': s.total, 'paid': s.paid, 'due': s.due, 'status': s.status}
        for s in sales.order_by('date', 'id')
    ]
    data = {
        'period': _period(date_from, date_to),
        'summary': {
            'total_sales': totals['total'] or ZERO,
            'total_received': totals['paid'] or ZERO,
            'total_due': totals['due'] or ZERO,
            'invoice_count': totals['count'],
            'avg_invoice_value': (totals['avg'] or ZERO).quantize(Decimal('0.01')),
        },
        'daily_breakdown': list(daily),
        'rows': rows,
    }
    columns = [('invoice_no', 'Invoice'), ('date', 'Date'), ('customer', 'Customer'), ('subtotal', 'Subtotal'),
               ('tax_amount', 'Tax'), ('total', 'Total'), ('paid', 'Paid'), ('due', 'Due'), ('status', 'Status')]
    return _report(request, data, 'rows', columns, f'sales-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def purchases_report(request):
    """Purchases in the period with totals and a daily breakdown"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    purchases = Purchase.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to).select_related('supplier')

    totals = purchases.aggregate(total=Sum('total'), paid=Sum('paid'), due=Sum('due'), count=Count('id'))
    daily = purchases.values('date').annotate(total=Sum('total'), count=Count('id')).order_by('date')

    rows = [
        {'invoice_no': p.invoice_no, 'date': p.date, 'supplier': p.supplier.name, 'total': p.total,
         'paid': p.paid, 'due': p.due, 'status': p.status}
        for p in purchases.order_by('date', 'id')
    ]
    data = {
        'period': _period(date_from, date_to),
        'summary': {
            'total_purchases': totals['total'] or ZERO,
            'total_paid': totals['paid'] or ZERO,
            'total_due': totals['due'] or ZERO,
            'purchase_count': totals['count'],
        },
        'daily_breakdown': list(daily),
        'rows': rows,
    }
    columns = [('invoice_no', 'Invoice'), ('date', 'Date'), ('supplier', 'Supplier'), ('total', 'Total'),
               ('paid', 'Paid'), ('due', 'Due'), ('status', 'Status')]
    return _report(request, data, 'rows', columns, f'purchases-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def production_report(request):
    """Production runs started in the period"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    productions = Production.objects.filter(
        tenant=tenant, start_date__gte=date_from, start_date__lte=date_to
    ).select_related('product', 'stage')

    totals = productions.aggregate(
        count=Count('id'),
        running=Count('id', filter=Q(status='running')),
        completed=Count('id', filter=Q(status='completed')),
        cancelled=Count('id', filter=Q(status='cancelled')),
        planned=Sum('quantity'),
        produced=Sum('completed_qty'),
    )
    rows = [
        {'reference_no': p.reference_no, 'product': p.product.name, 'quantity': p.quantity,
         'completed_qty': p.completed_qty, 'efficiency': round(p.efficiency, 2), 'status': p.status,
         'stage': p.stage.name if p.stage_id else '', 'start_date': p.start_date, 'end_date': p.end_date}
        for p in productions.order_by('start_date', 'id')
    ]
    data = {
        'period': _period(date_from, date_to),
        'summary': {
            'total': totals['count'],
            'running': totals['running'],
            'completed': totals['completed'],
            'cancelled': totals['cancelled'],
            'planned_quantity': totals['planned'] or Decimal('0'),
            'completed_quantity': totals['produced'] or Decimal('0'),
        },
        'rows': rows,
    }
    columns = [('reference_no', 'Reference'), ('product', 'Product'), ('quantity', 'Planned'),
               ('completed_qty', 'Completed'), ('efficiency', 'Efficiency %'), ('status', 'Status'),
               ('stage', 'Stage'), ('start_date', 'Start Date'), ('end_date', 'End Date')]
    return _report(request, data, 'rows', columns, f'production-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def expenses_report(request):
    """Expenses in the period grouped by category"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    expenses = Expense.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to)

    by_category = (
        expenses.values('category__name')
        .annotate(total=Sum('amount'), count=Count('id'))
        .order_by('-total')
    )
    rows = [{'category': row['category__name'], 'count': row['count'], 'total': row['total']} for row in by_category]
    data = {
        'period': _period(date_from, date_to),
        'summary': {
            'total_expenses': expenses.aggregate(total=Sum('amount'))['total'] or ZERO,
            'expense_count': expenses.count(),
        },
        'rows': rows,
    }
    columns = [('category', 'Category'), ('count', 'Entries'), ('total', 'Total')]
    return _report(request, data, 'rows', columns, f'expenses-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def inventory_report(request):
    """Current stock and value of products and raw materials"""
    tenant = get_tenant(request)
    valuation = stock_valuation(tenant)
    low_stock_ids = set(
        RawMaterial.objects.filter(tenant=tenant, stock__lte=F('min_stock')).values_list('id', flat=True)
    )

    rows = [{'type': 'product', 'low_stock': False, **row} for row in valuation['products']]
    rows += [{'type': 'raw_material', 'low_stock': row['id'] in low_stock_ids, **row} for row in valuation['raw_materials']]
    data = {
        'summary': {
            'product_count': len(valuation['products']),
            'raw_material_count': len(valuation['raw_materials']),
            'low_stock_count': len(low_stock_ids),
            'product_value': valuation['product_total'],
            'raw_material_value': valuation['raw_material_total'],
            'total_value': valuation['total'],
        },
        'rows': rows,
    }
    columns = [('type', 'Type'), ('name', 'Name'), ('sku', 'SKU'), ('stock', 'Stock'), ('unit', 'Unit'),
               ('unit_cost', 'Unit Cost'), ('value', 'Value'), ('low_stock', 'Low Stock')]
    return _report(request, data, 'rows', columns, 'inventory-report.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def customers_report(request):
    """Top customers by revenue in the period"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    in_period = Q(sales__date__gte=date_from, sales__date__lte=date_to)

    customers = (
        Customer.objects.filter(tenant=tenant)
        .annotate(
            invoice_count=Count('sales', filter=in_period),
            revenue=Sum('sales__total', filter=in_period),
            received=Sum('sales__paid', filter=in_period),
        )
        .filter(invoice_count__gt=0)
        .order_by('-revenue', 'name')[:_limit(request)]
    )
    rows = [
        {'id': c.id, 'name': c.name, 'phone': c.phone, 'invoice_count': c.invoice_count,
         'revenue': c.revenue or ZERO, 'received': c.received or ZERO, 'balance': c.balance}
        for c in customers
    ]
    data = {'period': _period(date_from, date_to), 'rows': rows}
    columns = [('name', 'Customer'), ('phone', 'Phone'), ('invoice_count', 'Invoices'), ('revenue', 'Revenue'),
               ('received', 'Received'), ('balance', 'Balance')]
    return _report(request, data, 'rows', columns, f'customers-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def suppliers_report(request):
    """Top suppliers by spending in the period"""
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    in_period = Q(purchases__date__gte=date_from, purchases__date__lte=date_to)

    suppliers = (
        Supplier.objects.filter(tenant=tenant)
        .annotate(
            purchase_count=Count('purchases', filter=in_period),
            spending=Sum('purchases__total', filter=in_period),
            paid=Sum('purchases__paid', filter=in_period),
        )
        .filter(purchase_count__gt=0)
        .order_by('-spending', 'name')[:_limit(request)]
    )
    rows = [
        {'id': s.id, 'name': s.name, 'phone': s.phone, 'purchase_count': s.purchase_count,
         'spending': s.spending or ZERO, 'paid': s.paid or ZERO, 'balance': s.balance}
        for s in suppliers
    ]
    data = {'period': _period(date_from, date_to), 'rows': rows}
    columns = [('name', 'Supplier'), ('phone', 'Phone'), ('purchase_count', 'Purchases'), ('spending', 'Spending'),
               ('paid', 'Paid'), ('balance', 'Balance')]
    return _report(request, data, 'rows', columns, f'suppliers-report-{date_from}-{date_to}.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def production_efficiency_report(request):
    """
    Efficiency of runs completed in the period, per product

    on_time_rate stays null: runs carry no planned duration to compare against.
    loss_rate is recorded losses over planned quantity.
    """
    tenant = get_tenant(request)
    date_from, date_to = date_range_from_params(request.query_params)
    completed = Production.objects.filter(
        tenant=tenant, status='completed', end_date__gte=date_from, end_date__lte=date_to
    ).select_related('product')

    per_product = {}
    durations = []
    for production in completed:
        durations.append(production.duration_days)
        row = per_product.setdefault(production.product_id, {
            'product': production.product.name, 'runs': 0,
            'planned': Decimal('0'), 'completed': Decimal('0'), 'losses': Decimal('0'),
        })
        row['runs'] += 1
        row['planned'] += production.quantity
        row['completed'] += production.completed_qty

    losses = ProductionLoss.objects.filter(production__in=completed).values('product_id').annotate(total=Sum('quantity'))
    for loss in losses:
        if loss['product_id'] in per_product:
            per_product[loss['product_id']]['losses'] = loss['total']

    rows = []
    for row in sorted(per_product.values(), key=lambda r: r['product']):
        row['efficiency'] = round(row['completed'] / row['planned'] * 100, 2) if row['planned'] else None
        row['loss_rate'] = round(row['losses'] / row['planned'] * 100, 2) if row['planned'] else None
        rows.append(row)

    planned = sum((r['planned'] for r in rows), Decimal('0'))
    produced = sum((r['completed'] for r in rows), Decimal('0'))
    lost = sum((r['losses'] for r in rows), Decimal('0'))
    data = {
        'period': _period(date_from, date_to),
        'summary': {
            'completed_runs': len(durations),
            'average_duration_days': round(Decimal(sum(durations)) / len(durations), 2) if durations else None,
            'on_time_rate': None,
            'efficiency': round(produced / planned * 100, 2) if planned else None,
            'loss_rate': round(lost / planned * 100, 2) if planned else None,
        },
        'rows': rows,
    }
    columns = [('product', 'Product'), ('runs', 'Runs'), ('planned', 'Planned'), ('completed', 'Completed'),
               ('efficiency', 'Efficiency %'), ('losses', 'Losses'), ('loss_rate', 'Loss Rate %')]
    return _report(request, data, 'rows', columns, f'production-efficiency-{date_from}-{date_to}.csv')


@cached_tenant_query('dashboard_stats')
def dashboard_stats(tenant, date_from, date_to):
    """Headline totals for the dashboard; cached per tenant until its data changes"""
    sales = Sale.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to).aggregate(
        total=Sum('total'), count=Count('id'), due=Sum('due'))
    purchases = Purchase.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to).aggregate(
        total=Sum('total'), count=Count('id'))
    productions = Production.objects.filter(tenant=tenant).aggregate(
        running=Count('id', filter=Q(status='running')),
        completed=Count('id', filter=Q(status='completed', end_date__gte=date_from, end_date__lte=date_to)),
    )
    expenses = Expense.objects.filter(tenant=tenant, date__gte=date_from, date__lte=date_to).aggregate(total=Sum('amount'))

    return json_safe({
        'period': _period(date_from, date_to),
        'sales': {'total': sales['total'] or ZERO, 'count': sales['count'], 'due': sales['due'] or ZERO},
        'purchases': {'total': purchases['total'] or ZERO, 'count': purchases['count']},
        'productions': productions,
        'expenses': {'total': expenses['total'] or ZERO},
        'low_stock_count': RawMaterial.objects.filter(tenant=tenant, stock__lte=F('min_stock')).count(),
        'pending_quotations': Quotation.objects.filter(tenant=tenant, status__in=['draft', 'sent']).count(),
        'customers': Customer.objects.filter(tenant=tenant).count(),
        'suppliers': Supplier.objects.filter(tenant=tenant).count(),
        'receivables': Customer.objects.filter(tenant=tenant).aggregate(total=Sum('balance'))['total'] or ZERO,
        'payables': Supplier.objects.filter(tenant=tenant).aggregate(total=Sum('balance'))['total'] or ZERO,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ReportsPermission])
def dashboard(request):
    """Dashboard KPIs for the period"""
    date_from, date_to = date_range_from_params(request.query_params)
    response = Response(dashboard_stats(get_tenant(request), date_from, date_to))
    response['Cache-Control'] = 'private, max-age=60'
    return response
