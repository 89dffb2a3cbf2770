import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log, paginated_response
from .models import Quotation, Sale
from .serializers import QuotationSerializer, SaleSerializer
from .utils import reverse_sale_effects

logger = logging.getLogger(__name__)

SalesPermission = module_permission('sales')


def _split_items(request):
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


# Quotation views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_list_create(request):
    """List quotations or create a new draft quotation"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Quotation.objects.filter(tenant=tenant).select_related('customer').prefetch_related('items', 'items__product')
        customer = request.query_params.get('customer', None)
        status_filter = request.query_params.get('status', None)
        if customer:
            queryset = queryset.filter(customer_id=customer)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return paginated_response(queryset, request, QuotationSerializer)
    else:
        data, items_data = _split_items(request)
        serializer = QuotationSerializer(data=data, context={'tenant': tenant, 'items_data': items_data, 'request': request})
        if serializer.is_valid():
            quotation = serializer.save(created_by=request.user)
            create_audit_log(request=request, action='create', model_name='Quotation', object_id=quotation.id, object_reference=quotation.quotation_no)
            return Response(QuotationSerializer(quotation).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_detail(request, pk):
    """Retrieve, update or delete a quotation"""
    tenant = get_tenant(request)
    quotation = get_object_or_404(Quotation, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = QuotationSerializer(quotation)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = QuotationSerializer(
            quotation, data=data, partial=request.method == 'PATCH',
            context={'tenant': tenant, 'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            quotation = serializer.save()
            return Response(QuotationSerializer(quotation).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if quotation.status == 'accepted' and hasattr(quotation, 'sale'):
            return Response({'error': 'Quotation was converted to a sale and cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Quotation', object_id=quotation.id, object_reference=quotation.quotation_no)
        quotation.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def _transition(request, pk, new_status):
    quotation = get_object_or_404(Quotation, pk=pk, tenant=get_tenant(request))
    if not quotation.can_transition_to(new_status):
        return Response(
            {'error': f"Cannot change quotation status from '{quotation.status}' to '{new_status}'"},
            status=status.HTTP_400_BAD_REQUEST
        )
    old_status = quotation.status
    quotation.status = new_status
    quotation.save(update_fields=['status', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='Quotation', object_id=quotation.id,
                     object_reference=quotation.quotation_no, changes={'status': [old_status, new_status]})
    return Response(QuotationSerializer(quotation).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_send(request, pk):
    """Mark a draft quotation as sent"""
    return _transition(request, pk, 'sent')


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_accept(request, pk):
    """Mark a sent quotation as accepted"""
    return _transition(request, pk, 'accepted')


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_reject(request, pk):
    """Reject a draft or sent quotation"""
    return _transition(request, pk, 'rejected')


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def quotation_convert(request, pk):
    """Create a sale from an accepted quotation (only once)"""
    tenant = get_tenant(request)
    get_object_or_404(Quotation, pk=pk, tenant=tenant)
    already_converted = {'error': 'Quotation has already been converted to a sale'}
    with transaction.atomic():
        # Concurrent conversions of the same quotation queue here
        quotation = Quotation.objects.select_for_update().get(pk=pk)
        if quotation.status != 'accepted':
            return Response({'error': 'Only accepted quotations can be converted to a sale'}, status=status.HTTP_400_BAD_REQUEST)
        if Sale.objects.filter(quotation=quotation).exists():
            return Response(already_converted, status=status.HTTP_400_BAD_REQUEST)

        items_data = [
            {'product': item.product_id, 'quantity': str(item.quantity), 'price': str(item.price), 'discount': '0'}
            for item in quotation.items.all()
        ]
        data = {
            'customer': quotation.customer_id,
            'date': request.data.get('date') or timezone.now().date().isoformat(),
            'due_date': request.data.get('due_date') or quotation.valid_until,
            'tax_rate': request.data.get('tax_rate', '0'),
            'paid': request.data.get('paid', '0'),
            'outlet': request.data.get('outlet'),
            'notes': quotation.notes,
        }
        serializer = SaleSerializer(data=data, context={'tenant': tenant, 'items_data': items_data, 'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            with transaction.atomic():
                sale = serializer.save(quotation=quotation)
        except IntegrityError:
            logger.warning(f"Quotation {quotation.quotation_no} was converted concurrently")
            return Response(already_converted, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='create', model_name='Sale', object_id=sale.id, object_reference=sale.invoice_no,
                     changes={'quotation': quotation.quotation_no})
    return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)


# Sale views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def sale_list_create(request):
    """List sales (paginated) or create a new sale"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Sale.objects.filter(tenant=tenant).select_related('customer', 'outlet', 'quotation').prefetch_related('items', 'items__product')

        # Filters
        customer = request.query_params.get('customer', None)
        status_filter = request.query_params.get('status', None)
        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        search = request.query_params.get('search', None)

        if customer:
            queryset = queryset.filter(customer_id=customer)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        if search:
            queryset = queryset.filter(Q(invoice_no__icontains=search) | Q(customer__name__icontains=search))

        queryset = queryset.order_by('-date', '-id')
        return paginated_response(queryset, request, SaleSerializer)
    else:  # POST
        data, items_data = _split_items(request)
        serializer = SaleSerializer(data=data, context={'tenant': tenant, 'items_data': items_data, 'request': request})
        if serializer.is_valid():
            sale = serializer.save()
            create_audit_log(request=request, action='create', model_name='Sale', object_id=sale.id, object_reference=sale.invoice_no,
                             changes={'total': str(sale.total), 'paid': str(sale.paid)})
            return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def sale_detail(request, pk):
    """Retrieve, update or delete a sale"""
    tenant = get_tenant(request)
    sale = get_object_or_404(Sale, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = SaleSerializer(sale)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        old_values = {'total': str(sale.total), 'paid': str(sale.paid)}
        serializer = SaleSerializer(
            sale, data=data, partial=request.method == 'PATCH',
            context={'tenant': tenant, 'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            sale = serializer.save()
            create_audit_log(request=request, action='update', model_name='Sale', object_id=sale.id, object_reference=sale.invoice_no,
                             changes={'before': old_values, 'after': {'total': str(sale.total), 'paid': str(sale.paid)}})
            return Response(SaleSerializer(sale).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if sale.receives.exists():
            return Response({'error': 'Sale has received payments; delete them first'}, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            reverse_sale_effects(sale)
            sale.delete()
        create_audit_log(request=request, action='delete', model_name='Sale', object_id=pk, object_reference=sale.invoice_no,
                         changes={'total': str(sale.total)})
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, SalesPermission])
def sale_stats(request):
    """Count, revenue and status breakdown of the tenant's sales"""
    queryset = Sale.objects.filter(tenant=get_tenant(request))
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)

    totals = queryset.aggregate(
        count=Count('id'),
        revenue=Sum('total'),
        received=Sum('paid'),
        due=Sum('due'),
        paid_count=Count('id', filter=Q(status='paid')),
        partial_count=Count('id', filter=Q(status='partial')),
        unpaid_count=Count('id', filter=Q(status='unpaid')),
    )
    return Response({
        'count': totals['count'],
        'revenue': str(totals['revenue'] or Decimal('0.00')),
        'received': str(totals['received'] or Decimal('0.00')),
        'due': str(totals['due'] or Decimal('0.00')),
        'by_status': {
            'paid': totals['paid_count'],
            'partial': totals['partial_count'],
            'unpaid': totals['unpaid_count'],
        },
    })
