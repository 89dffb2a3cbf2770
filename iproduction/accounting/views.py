import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import RestrictedError, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log, json_safe, paginated_response, parse_date_param
from .models import Account, AccountingPeriod, Transaction, ExpenseCategory, Expense
from .serializers import (
    AccountSerializer, AccountingPeriodSerializer, TransactionSerializer, ExpenseCategorySerializer, ExpenseSerializer
)
from .statements import balance_sheet, profit_and_loss, statement_window, trial_balance
from .utils import closed_period_for, reverse_transaction, transaction_owner

logger = logging.getLogger(__name__)

AccountingPermission = module_permission('accounting')


def _date_filtered(queryset, request):
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return queryset


# Account views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def account_list_create(request):
    """List accounts or open a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        accounts = Account.objects.filter(tenant=tenant)
        account_type = request.query_params.get('type', None)
        if account_type:
            accounts = accounts.filter(type=account_type)
        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)
    else:
        serializer = AccountSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            account = serializer.save()
            create_audit_log(request=request, action='create', model_name='Account', object_id=account.id,
                             object_reference=account.name, changes={'balance': str(account.balance)})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def account_detail(request, pk):
    """Retrieve, update or delete an account"""
    account = get_object_or_404(Account, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = AccountSerializer(account)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AccountSerializer(account, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            account.delete()
        except RestrictedError:
            return Response({'error': f"Account '{account}' has transactions and cannot be deleted"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Transaction views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def transaction_list_create(request):
    """List transactions (paginated) or post a manual deposit/withdrawal"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Transaction.objects.filter(tenant=tenant).select_related('account')
        account = request.query_params.get('account', None)
        transaction_type = request.query_params.get('type', None)
        if account:
            queryset = queryset.filter(account_id=account)
        if transaction_type:
            queryset = queryset.filter(type=transaction_type)
        return paginated_response(_date_filtered(queryset, request), request, TransactionSerializer, default_limit=50)
    else:
        serializer = TransactionSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            entry = serializer.save()
            create_audit_log(request=request, action='create', model_name='Transaction', object_id=entry.id,
                             object_reference=entry.reference or None,
                             changes={'account': entry.account.name, 'type': entry.type, 'amount': str(entry.amount)})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def transaction_detail(request, pk):
    """Retrieve, update or delete a manual transaction"""
    tenant = get_tenant(request)
    entry = get_object_or_404(Transaction, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = TransactionSerializer(entry)
        return Response(serializer.data)

    owner = transaction_owner(entry)
    if owner is not None:
        return Response({'error': f"Transaction was posted by a {owner}; change the {owner} instead"}, status=status.HTTP_400_BAD_REQUEST)

    if request.method in ('PUT', 'PATCH'):
        serializer = TransactionSerializer(entry, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            reverse_transaction(entry)
        create_audit_log(request=request, action='delete', model_name='Transaction', object_id=pk,
                         changes={'type': entry.type, 'amount': str(entry.amount)})
        return Response(status=status.HTTP_204_NO_CONTENT)


# Expense category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def expense_category_list_create(request):
    """List expense categories or create a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        categories = ExpenseCategory.objects.filter(tenant=tenant)
        serializer = ExpenseCategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = ExpenseCategorySerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def expense_category_detail(request, pk):
    """Retrieve, update or delete an expense category"""
    category = get_object_or_404(ExpenseCategory, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = ExpenseCategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            category.delete()
        except RestrictedError:
            return Response({'error': f"'{category}' is used by expenses and cannot be deleted"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Expense views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def expense_list_create(request):
    """List expenses or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Expense.objects.filter(tenant=tenant).select_related('category', 'account')
        category = request.query_params.get('category', None)
        if category:
            queryset = queryset.filter(category_id=category)
        queryset = _date_filtered(queryset, request)
        if request.query_params.get('page'):
            return paginated_response(queryset, request, ExpenseSerializer, default_limit=50)
        serializer = ExpenseSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = ExpenseSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            expense = serializer.save()
            create_audit_log(request=request, action='create', model_name='Expense', object_id=expense.id,
                             changes={'category': expense.category.name, 'amount': str(expense.amount)})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def expense_detail(request, pk):
    """Retrieve, update or delete an expense"""
    tenant = get_tenant(request)
    expense = get_object_or_404(Expense, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = ExpenseSerializer(expense)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            if expense.transaction_id:
                reverse_transaction(expense.transaction)
            expense.delete()
        create_audit_log(request=request, action='delete', model_name='Expense', object_id=pk, changes={'amount': str(expense.amount)})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def expense_summary(request):
    """Expense totals per category for a date range"""
    queryset = _date_filtered(Expense.objects.filter(tenant=get_tenant(request)), request)
    rows = queryset.values('category_id', 'category__name').annotate(total=Sum('amount')).order_by('-total')
    return Response({
        'total': str(queryset.aggregate(total=Sum('amount'))['total'] or 0),
        'by_category': [
            {'category': row['category_id'], 'name': row['category__name'], 'total': str(row['total'])}
            for row in rows
        ],
    })


# Financial statements
@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def profit_loss_statement(request):
    """Profit and loss for ?start_date=&end_date="""
    start_date, end_date = statement_window(request.query_params)
    return Response(json_safe(profit_and_loss(get_tenant(request), start_date, end_date)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def balance_sheet_statement(request):
    """Balance sheet as of ?end_date="""
    _, end_date = statement_window(request.query_params)
    return Response(json_safe(balance_sheet(get_tenant(request), end_date)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def trial_balance_statement(request):
    """Trial balance for ?start_date=&end_date="""
    start_date, end_date = statement_window(request.query_params)
    return Response(json_safe(trial_balance(get_tenant(request), start_date, end_date)))


# Accounting period views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def period_list_create(request):
    """List accounting periods (latest first) or create one that overlaps no other"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        periods = AccountingPeriod.objects.filter(tenant=tenant).select_related('closed_by')
        status_filter = request.query_params.get('status', None)
        if status_filter:
            periods = periods.filter(status=status_filter)
        serializer = AccountingPeriodSerializer(periods, many=True)
        return Response(serializer.data)
    else:
        serializer = AccountingPeriodSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            period = serializer.save()
            create_audit_log(request=request, action='create', model_name='AccountingPeriod', object_id=period.id,
                             object_reference=period.name,
                             changes={'start_date': str(period.start_date), 'end_date': str(period.end_date)})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def period_detail(request, pk):
    """Retrieve, update or delete an open accounting period"""
    tenant = get_tenant(request)
    period = get_object_or_404(AccountingPeriod, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = AccountingPeriodSerializer(period)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AccountingPeriodSerializer(period, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if period.status == 'closed':
            return Response({'error': 'A closed period cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        if Transaction.objects.filter(tenant=tenant, date__gte=period.start_date, date__lte=period.end_date).exists():
            return Response({'error': f"{period.name} has transactions and cannot be deleted"}, status=status.HTTP_400_BAD_REQUEST)
        period.delete()
        create_audit_log(request=request, action='delete', model_name='AccountingPeriod', object_id=pk, object_reference=period.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _set_period_status(request, pk, closing):
    with transaction.atomic():
        period = get_object_or_404(AccountingPeriod.objects.select_for_update(), pk=pk, tenant=get_tenant(request))
        if closing and period.status == 'closed':
            return Response({'error': 'Period is already closed'}, status=status.HTTP_400_BAD_REQUEST)
        if not closing and period.status != 'closed':
            return Response({'error': 'Period is not closed'}, status=status.HTTP_400_BAD_REQUEST)
        if closing:
            period.status, period.closed_by, period.closed_at = 'closed', request.user, timezone.now()
        else:
            period.status, period.reopened_by, period.reopened_at = 'open', request.user, timezone.now()
        period.save()
    logger.info(f"Accounting period {period.name} {'closed' if closing else 'reopened'} by {request.user.username}")
    create_audit_log(request=request, action='period_close' if closing else 'period_reopen', model_name='AccountingPeriod',
                     object_id=period.id, object_reference=period.name)
    return Response(AccountingPeriodSerializer(period).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def period_close(request, pk):
    """Close a period; postings dated inside it are refused until it is reopened"""
    return _set_period_status(request, pk, closing=True)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def period_reopen(request, pk):
    """Reopen a closed period"""
    return _set_period_status(request, pk, closing=False)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, AccountingPermission])
def period_check(request):
    """Whether ?date= falls in a closed period, and the open period containing it"""
    tenant = get_tenant(request)
    day = parse_date_param(request.query_params.get('date'), timezone.now().date())
    closed = closed_period_for(tenant.id, day)
    active = AccountingPeriod.objects.filter(tenant=tenant, status='open', start_date__lte=day, end_date__gte=day).first()
    return Response({
        'date': day.isoformat(),
        'closed': closed is not None,
        'closed_period': AccountingPeriodSerializer(closed).data if closed else None,
        'active_period': AccountingPeriodSerializer(active).data if active else None,
    })
