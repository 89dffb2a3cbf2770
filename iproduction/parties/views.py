import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q, RestrictedError, Sum
from django.shortcuts import get_object_or_404
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log, paginated_response
from .models import Customer, Supplier, CustomerReceive, SupplierPayment
from .serializers import CustomerSerializer, SupplierSerializer, CustomerReceiveSerializer, SupplierPaymentSerializer
from .utils import reverse_party_payment, build_statement

logger = logging.getLogger(__name__)

SalesPermission = module_permission('sales')
PurchasesPermission = module_permission('purchases')


def _filter_payments(queryset, params):
    date_from = params.get('date_from', None)
    date_to = params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return queryset


def _upfront_paid(document, payment_relation):
    """Part of a document's paid amount not covered by linked payments"""
    linked = getattr(document, payment_relation).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    return document.paid - linked


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def customer_list_create(request):
    """List all customers or create a new customer"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Customer.objects.filter(tenant=tenant)
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search) | Q(email__icontains=search))
        if request.query_params.get('with_balance') == 'true':
            queryset = queryset.filter(balance__gt=0)
        serializer = CustomerSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = CustomerSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            customer = serializer.save()
            create_audit_log(request=request, action='create', model_name='Customer', object_id=customer.id, object_reference=customer.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = CustomerSerializer(customer)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            customer.delete()
        except RestrictedError:
            return Response({'error': 'Customer has sales or receipts and cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Customer', object_id=pk, object_reference=customer.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def customer_statement(request, pk):
    """Sales and receipts of a customer with running balance"""
    customer = get_object_or_404(Customer, pk=pk, tenant=get_tenant(request))
    sales = customer.sales.prefetch_related('receives').order_by('date', 'id')
    documents = [
        (sale.date, sale.invoice_no, sale.total, _upfront_paid(sale, 'receives'))
        for sale in sales
    ]
    payments = [
        (receive.date, receive.reference or f"Receive #{receive.id}", receive.amount)
        for receive in customer.receives.order_by('date', 'id')
    ]
    return Response(build_statement(customer, documents, payments))


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Supplier.objects.filter(tenant=tenant)
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search) | Q(email__icontains=search))
        if request.query_params.get('with_balance') == 'true':
            queryset = queryset.filter(balance__gt=0)
        serializer = SupplierSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = SupplierSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            supplier = serializer.save()
            create_audit_log(request=request, action='create', model_name='Supplier', object_id=supplier.id, object_reference=supplier.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            supplier.delete()
        except RestrictedError:
            return Response({'error': 'Supplier has purchases or payments and cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Supplier', object_id=pk, object_reference=supplier.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def supplier_statement(request, pk):
    """Purchases and payments of a supplier with running balance"""
    supplier = get_object_or_404(Supplier, pk=pk, tenant=get_tenant(request))
    purchases = supplier.purchases.prefetch_related('payments').order_by('date', 'id')
    documents = [
        (purchase.date, purchase.invoice_no, purchase.total, _upfront_paid(purchase, 'payments'))
        for purchase in purchases
    ]
    payments = [
        (payment.date, payment.reference or f"Payment #{payment.id}", payment.amount)
        for payment in supplier.payments.order_by('date', 'id')
    ]
    return Response(build_statement(supplier, documents, payments))


# Customer receive views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def customer_receive_list_create(request):
    """List customer receipts or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = CustomerReceive.objects.filter(tenant=tenant).select_related('customer', 'sale')
        customer_id = request.query_params.get('customer', None)
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)
        queryset = _filter_payments(queryset, request.query_params)
        return paginated_response(queryset, request, CustomerReceiveSerializer, default_limit=50)
    else:
        serializer = CustomerReceiveSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            receive = serializer.save()
            create_audit_log(
                request=request, action='payment_receive', model_name='CustomerReceive', object_id=receive.id,
                object_reference=receive.sale.invoice_no if receive.sale_id else receive.customer.name,
                changes={'amount': str(receive.amount), 'customer': receive.customer_id}
            )
            return Response(CustomerReceiveSerializer(receive).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def customer_receive_detail(request, pk):
    """Retrieve or delete (reverse) a customer receipt"""
    receive = get_object_or_404(CustomerReceive, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        return Response(CustomerReceiveSerializer(receive).data)
    with transaction.atomic():
        reverse_party_payment(receive, 'customer', 'sale')
        receive.delete()
    create_audit_log(request=request, action='delete', model_name='CustomerReceive', object_id=pk, changes={'amount': str(receive.amount)})
    return Response(status=status.HTTP_204_NO_CONTENT)


# Supplier payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def supplier_payment_list_create(request):
    """List supplier payments or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = SupplierPayment.objects.filter(tenant=tenant).select_related('supplier', 'purchase')
        supplier_id = request.query_params.get('supplier', None)
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)
        queryset = _filter_payments(queryset, request.query_params)
        return paginated_response(queryset, request, SupplierPaymentSerializer, default_limit=50)
    else:
        serializer = SupplierPaymentSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            payment = serializer.save()
            create_audit_log(
                request=request, action='payment_add', model_name='SupplierPayment', object_id=payment.id,
                object_reference=payment.purchase.invoice_no if payment.purchase_id else payment.supplier.name,
                changes={'amount': str(payment.amount), 'supplier': payment.supplier_id}
            )
            return Response(SupplierPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def supplier_payment_detail(request, pk):
    """Retrieve or delete (reverse) a supplier payment"""
    payment = get_object_or_404(SupplierPayment, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        return Response(SupplierPaymentSerializer(payment).data)
    with transaction.atomic():
        reverse_party_payment(payment, 'supplier', 'purchase')
        payment.delete()
    create_audit_log(request=request, action='delete', model_name='SupplierPayment', object_id=pk, changes={'amount': str(payment.amount)})
    return Response(status=status.HTTP_204_NO_CONTENT)
