import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import F, RestrictedError
from django.shortcuts import get_object_or_404
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log
from .filters import ProductFilter, RawMaterialFilter
from .models import (
    Unit, Currency, ProductCategory, RawMaterialCategory, Product, RawMaterial,
    BillOfMaterialLine, NonInventoryItem
)
from .serializers import (
    UnitSerializer, CurrencySerializer, ProductCategorySerializer, RawMaterialCategorySerializer,
    ProductSerializer, RawMaterialSerializer, BillOfMaterialLineSerializer, NonInventoryItemSerializer
)

logger = logging.getLogger(__name__)

InventoryPermission = module_permission('inventory')
SettingsPermission = module_permission('settings')


def _in_use_response(obj, used_by):
    return Response(
        {'error': f"'{obj}' is used by {used_by} and cannot be deleted"},
        status=status.HTTP_400_BAD_REQUEST
    )


# Unit views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def unit_list_create(request):
    """List all units or create a new unit"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        units = Unit.objects.filter(tenant=tenant)
        serializer = UnitSerializer(units, many=True)
        return Response(serializer.data)
    else:
        serializer = UnitSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def unit_detail(request, pk):
    """Retrieve, update or delete a unit"""
    unit = get_object_or_404(Unit, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = UnitSerializer(unit)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UnitSerializer(unit, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        unit.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Currency views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def currency_list_create(request):
    """List all currencies or create a new currency"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        currencies = Currency.objects.filter(tenant=tenant)
        serializer = CurrencySerializer(currencies, many=True)
        return Response(serializer.data)
    else:
        serializer = CurrencySerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def currency_detail(request, pk):
    """Retrieve, update or delete a currency"""
    currency = get_object_or_404(Currency, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = CurrencySerializer(currency)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CurrencySerializer(currency, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        currency.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_category_list_create(request):
    """List all product categories or create a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        categories = ProductCategory.objects.filter(tenant=tenant)
        serializer = ProductCategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductCategorySerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_category_detail(request, pk):
    """Retrieve, update or delete a product category"""
    category = get_object_or_404(ProductCategory, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = ProductCategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            category.delete()
        except RestrictedError:
            return _in_use_response(category, 'products')
        return Response(status=status.HTTP_204_NO_CONTENT)


# Raw material category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_category_list_create(request):
    """List all raw material categories or create a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        categories = RawMaterialCategory.objects.filter(tenant=tenant)
        serializer = RawMaterialCategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = RawMaterialCategorySerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_category_detail(request, pk):
    """Retrieve, update or delete a raw material category"""
    category = get_object_or_404(RawMaterialCategory, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = RawMaterialCategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RawMaterialCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            category.delete()
        except RestrictedError:
            return _in_use_response(category, 'raw materials')
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_list_create(request):
    """List products (filterable) or create a new product"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Product.objects.filter(tenant=tenant).select_related('category')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        serializer = ProductSerializer(filterset.qs, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(request=request, action='create', model_name='Product', object_id=product.id, object_reference=product.sku)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_stock = product.stock
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            if product.stock != old_stock:
                create_audit_log(request=request, action='stock_adjust', model_name='Product', object_id=product.id,
                                 object_reference=product.sku, changes={'stock': [str(old_stock), str(product.stock)]})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            product.delete()
        except RestrictedError:
            return _in_use_response(product, 'sales, quotations or productions')
        create_audit_log(request=request, action='delete', model_name='Product', object_id=pk, object_reference=product.sku)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_bom(request, pk):
    """List a product's bill of materials or add/replace one line"""
    tenant = get_tenant(request)
    product = get_object_or_404(Product, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = BillOfMaterialLineSerializer(product.bom_lines.select_related('raw_material'), many=True)
        return Response(serializer.data)

    existing = None
    raw_material_id = request.data.get('raw_material')
    if raw_material_id:
        existing = product.bom_lines.filter(raw_material_id=raw_material_id).first()
    serializer = BillOfMaterialLineSerializer(existing, data=request.data, context={'tenant': tenant})
    if serializer.is_valid():
        serializer.save(product=product)
        return Response(serializer.data, status=status.HTTP_200_OK if existing else status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def product_bom_line_detail(request, pk, line_pk):
    """Remove a line from a product's bill of materials"""
    line = get_object_or_404(BillOfMaterialLine, pk=line_pk, product_id=pk, tenant=get_tenant(request))
    line.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Raw material views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_list_create(request):
    """List raw materials (filterable) or create a new raw material"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = RawMaterial.objects.filter(tenant=tenant).select_related('category')
        filterset = RawMaterialFilter(request.query_params, queryset=queryset)
        serializer = RawMaterialSerializer(filterset.qs, many=True)
        return Response(serializer.data)
    else:
        serializer = RawMaterialSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            material = serializer.save()
            create_audit_log(request=request, action='create', model_name='RawMaterial', object_id=material.id, object_reference=material.sku)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_low_stock(request):
    """Raw materials at or below their minimum stock"""
    materials = RawMaterial.objects.filter(
        tenant=get_tenant(request), stock__lte=F('min_stock')
    ).select_related('category').order_by('stock')
    serializer = RawMaterialSerializer(materials, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def raw_material_detail(request, pk):
    """Retrieve, update or delete a raw material"""
    material = get_object_or_404(RawMaterial, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = RawMaterialSerializer(material)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_stock = material.stock
        serializer = RawMaterialSerializer(material, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            material = serializer.save()
            if material.stock != old_stock:
                create_audit_log(request=request, action='stock_adjust', model_name='RawMaterial', object_id=material.id,
                                 object_reference=material.sku, changes={'stock': [str(old_stock), str(material.stock)]})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            material.delete()
        except RestrictedError:
            return _in_use_response(material, 'purchases or bills of materials')
        create_audit_log(request=request, action='delete', model_name='RawMaterial', object_id=pk, object_reference=material.sku)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Non-inventory item views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def non_inventory_item_list_create(request):
    """List all non-inventory items or create a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        items = NonInventoryItem.objects.filter(tenant=tenant)
        search = request.query_params.get('search', None)
        if search:
            items = items.filter(name__icontains=search)
        serializer = NonInventoryItemSerializer(items, many=True)
        return Response(serializer.data)
    else:
        serializer = NonInventoryItemSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, InventoryPermission])
def non_inventory_item_detail(request, pk):
    """Retrieve, update or delete a non-inventory item"""
    item = get_object_or_404(NonInventoryItem, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = NonInventoryItemSerializer(item)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = NonInventoryItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
