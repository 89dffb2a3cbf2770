import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.shortcuts import get_object_or_404
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.serializers import validate_line_items
from iproduction.core.utils import create_audit_log, paginated_response
from .models import GoodsReceipt, GoodsReceiptItem, Purchase
from .serializers import GoodsReceiptItemSerializer, GoodsReceiptSerializer, PurchaseSerializer, add_receipt_items
from .utils import reverse_purchase_effects

logger = logging.getLogger(__name__)

PurchasesPermission = module_permission('purchases')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def purchase_list_create(request):
    """List all purchases or create a new purchase"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Purchase.objects.filter(tenant=tenant).select_related('supplier').prefetch_related('items', 'items__raw_material')

        # Filters
        supplier = request.query_params.get('supplier', None)
        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        status_filter = request.query_params.get('status', None)
        search = request.query_params.get('search', None)

        if supplier:
            queryset = queryset.filter(supplier_id=supplier)
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if search:
            queryset = queryset.filter(Q(invoice_no__icontains=search) | Q(supplier__name__icontains=search))

        # Latest purchases first
        queryset = queryset.order_by('-date', '-id')
        return paginated_response(queryset, request, PurchaseSerializer)
    else:  # POST
        data = request.data.copy()
        items_data = data.pop('items', [])

        serializer = PurchaseSerializer(
            data=data,
            context={'items_data': items_data, 'request': request, 'tenant': tenant}
        )
        if serializer.is_valid():
            purchase = serializer.save()
            create_audit_log(request=request, action='create', model_name='Purchase', object_id=purchase.id,
                             object_reference=purchase.invoice_no, changes={'total': str(purchase.total), 'paid': str(purchase.paid)})
            return Response(PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def purchase_detail(request, pk):
    """Retrieve, update or delete a purchase"""
    tenant = get_tenant(request)
    purchase = get_object_or_404(Purchase, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = PurchaseSerializer(purchase)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy()
        items_data = data.pop('items', None)
        old_values = {'total': str(purchase.total), 'paid': str(purchase.paid)}

        serializer = PurchaseSerializer(
            purchase,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request, 'tenant': tenant}
        )
        if serializer.is_valid():
            purchase = serializer.save()
            create_audit_log(request=request, action='update', model_name='Purchase', object_id=purchase.id, object_reference=purchase.invoice_no,
                             changes={'before': old_values, 'after': {'total': str(purchase.total), 'paid': str(purchase.paid)}})
            return Response(PurchaseSerializer(purchase).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if purchase.payments.exists():
            return Response({'error': 'Purchase has supplier payments; delete them first'}, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            reverse_purchase_effects(purchase)
            purchase.delete()
        logger.info(f"Purchase {purchase.invoice_no} deleted by {request.user.username}")
        create_audit_log(request=request, action='delete', model_name='Purchase', object_id=pk, object_reference=purchase.invoice_no,
                         changes={'total': str(purchase.total)})
        return Response(status=status.HTTP_204_NO_CONTENT)


# Goods received notes
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_list_create(request):
    """List GRNs or record a new receipt against a purchase"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = GoodsReceipt.objects.filter(tenant=tenant).select_related('purchase', 'purchase__supplier').prefetch_related(
            'items', 'items__raw_material'
        )
        purchase = request.query_params.get('purchase', None)
        status_filter = request.query_params.get('status', None)
        if purchase:
            queryset = queryset.filter(purchase_id=purchase)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return paginated_response(queryset, request, GoodsReceiptSerializer)
    else:
        data = request.data.copy()
        items_data = data.pop('items', None)
        serializer = GoodsReceiptSerializer(data=data, context={'items_data': items_data, 'request': request, 'tenant': tenant})
        if serializer.is_valid():
            receipt = serializer.save()
            create_audit_log(request=request, action='create', model_name='GoodsReceipt', object_id=receipt.id,
                             object_reference=receipt.grn_no,
                             changes={'purchase': receipt.purchase.invoice_no, 'received': str(receipt.total_quantity)})
            return Response(GoodsReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_detail(request, pk):
    """Retrieve, update (date, location, remarks) or delete a GRN"""
    tenant = get_tenant(request)
    receipt = get_object_or_404(GoodsReceipt, pk=pk, tenant=tenant)

    if request.method == 'GET':
        return Response(GoodsReceiptSerializer(receipt).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = GoodsReceiptSerializer(receipt, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        receipt.delete()
        create_audit_log(request=request, action='delete', model_name='GoodsReceipt', object_id=pk, object_reference=receipt.grn_no)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_add_items(request, pk):
    """Add received lines to a pending GRN"""
    tenant = get_tenant(request)
    with transaction.atomic():
        receipt = get_object_or_404(GoodsReceipt.objects.select_for_update(), pk=pk, tenant=tenant)
        if receipt.status != 'pending':
            return Response({'error': f"{receipt.grn_no} is {receipt.status}; only pending receipts take new lines"},
                            status=status.HTTP_400_BAD_REQUEST)
        items_data = request.data.get('items')
        if items_data is None:
            items_data = [request.data]
        add_receipt_items(receipt, validate_line_items(items_data, GoodsReceiptItemSerializer, tenant))
    return Response(GoodsReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_status(request, pk):
    """Set a GRN's status after recomputing its accepted and rejected totals"""
    new_status = request.data.get('status')
    if new_status not in dict(GoodsReceipt.STATUS_CHOICES):
        return Response({'status': f"Expected one of: {', '.join(dict(GoodsReceipt.STATUS_CHOICES))}."},
                        status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        receipt = get_object_or_404(GoodsReceipt.objects.select_for_update(), pk=pk, tenant=get_tenant(request))
        old_status = receipt.status
        receipt.recalculate_totals()
        receipt.status = new_status
        receipt.save()
    create_audit_log(request=request, action='status_change', model_name='GoodsReceipt', object_id=receipt.id,
                     object_reference=receipt.grn_no, changes={'status': [old_status, new_status]})
    return Response(GoodsReceiptSerializer(receipt).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_item_quality(request, pk):
    """Mark one GRN line as passed or failed inspection"""
    item = get_object_or_404(GoodsReceiptItem, pk=pk, goods_receipt__tenant=get_tenant(request))
    quality_status = request.data.get('quality_status')
    if quality_status not in dict(GoodsReceiptItem.QUALITY_CHOICES):
        return Response({'quality_status': f"Expected one of: {', '.join(dict(GoodsReceiptItem.QUALITY_CHOICES))}."},
                        status=status.HTTP_400_BAD_REQUEST)
    item.quality_status = quality_status
    item.save(update_fields=['quality_status'])
    return Response(GoodsReceiptItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, PurchasesPermission])
def goods_receipt_dashboard(request):
    """GRN counts by status plus received, accepted and rejected quantities"""
    totals = GoodsReceipt.objects.filter(tenant=get_tenant(request)).aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status='pending')),
        accepted=Count('id', filter=Q(status='accepted')),
        partial=Count('id', filter=Q(status='partial')),
        rejected=Count('id', filter=Q(status='rejected')),
        received_qty=Sum('total_quantity'),
        accepted_qty=Sum('accepted_quantity'),
        rejected_qty=Sum('rejected_quantity'),
    )
    for key in ('received_qty', 'accepted_qty', 'rejected_qty'):
        totals[key] = str(totals[key] or 0)
    return Response(totals)
