import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from iproduction.catalog.utils import change_product_stock, change_raw_material_stock
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log
from .models import StockAdjustment, RawMaterialWaste, ProductWaste
from .serializers import StockAdjustmentSerializer, RawMaterialWasteSerializer, ProductWasteSerializer
from .utils import stock_valuation

logger = logging.getLogger(__name__)

InventoryPermission = module_permission('inventory')


def _date_filtered(queryset, request):
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return queryset


# StockAdjustment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def stock_adjustment_list_create(request):
    """List raw-material stock adjustments or apply a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        adjustments = StockAdjustment.objects.filter(tenant=tenant).select_related('raw_material')
        raw_material = request.query_params.get('raw_material', None)
        if raw_material:
            adjustments = adjustments.filter(raw_material_id=raw_material)
        serializer = StockAdjustmentSerializer(_date_filtered(adjustments, request), many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = StockAdjustmentSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            adjustment = serializer.save(created_by=request.user)
            create_audit_log(
                request=request, action='stock_adjust', model_name='RawMaterial',
                object_id=adjustment.raw_material_id, object_reference=adjustment.raw_material.sku,
                changes={'stock': [str(adjustment.previous_stock), str(adjustment.new_stock)], 'reason': adjustment.reason}
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def stock_adjustment_detail(request, pk):
    """Retrieve a stock adjustment"""
    adjustment = get_object_or_404(StockAdjustment, pk=pk, tenant=get_tenant(request))
    return Response(StockAdjustmentSerializer(adjustment).data)


# Raw material waste views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_waste_list_create(request):
    """List raw-material wastes or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        wastes = RawMaterialWaste.objects.filter(tenant=tenant).select_related('raw_material')
        serializer = RawMaterialWasteSerializer(_date_filtered(wastes, request), many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = RawMaterialWasteSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            waste = serializer.save()
            create_audit_log(request=request, action='stock_adjust', model_name='RawMaterial', object_id=waste.raw_material_id,
                             object_reference=waste.raw_material.sku, changes={'waste': str(waste.quantity), 'reason': waste.reason})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_waste_detail(request, pk):
    """Retrieve a raw-material waste, or delete it and restore the stock"""
    waste = get_object_or_404(RawMaterialWaste, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        return Response(RawMaterialWasteSerializer(waste).data)
    else:  # DELETE
        with transaction.atomic():
            change_raw_material_stock(waste.raw_material_id, waste.quantity)
            waste.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product waste views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_waste_list_create(request):
    """List product wastes or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        wastes = ProductWaste.objects.filter(tenant=tenant).select_related('product')
        serializer = ProductWasteSerializer(_date_filtered(wastes, request), many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = ProductWasteSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            waste = serializer.save()
            create_audit_log(request=request, action='stock_adjust', model_name='Product', object_id=waste.product_id,
                             object_reference=waste.product.sku, changes={'waste': str(waste.quantity), 'reason': waste.reason})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_waste_detail(request, pk):
    """Retrieve a product waste, or delete it and restore the stock"""
    waste = get_object_or_404(ProductWaste, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        return Response(ProductWasteSerializer(waste).data)
    else:  # DELETE
        with transaction.atomic():
            change_product_stock(waste.product_id, waste.quantity)
            waste.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def inventory_valuation(request):
    """Stock value of products and raw materials"""
    valuation = stock_valuation(get_tenant(request))
    for key in ('products', 'raw_materials'):
        valuation[key] = [
            {**row, 'stock': str(row['stock']), 'unit_cost': str(row['unit_cost']), 'value': str(row['value'])}
            for row in valuation[key]
        ]
    for key in ('product_total', 'raw_material_total', 'total'):
        valuation[key] = str(valuation[key])
    return Response(valuation)
