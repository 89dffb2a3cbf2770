import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log
from .models import Outlet
from .serializers import OutletSerializer

logger = logging.getLogger(__name__)

OutletPermission = module_permission('outlets')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, OutletPermission])
def outlet_list_create(request):
    """List all outlets or create a new outlet"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        outlets = Outlet.objects.filter(tenant=tenant)
        status_filter = request.query_params.get('status', None)
        if status_filter:
            outlets = outlets.filter(status=status_filter)
        serializer = OutletSerializer(outlets, many=True)
        return Response(serializer.data)
    else:
        serializer = OutletSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            outlet = serializer.save()
            logger.info(f"Outlet '{outlet.name}' created by {request.user.username}")
            create_audit_log(request=request, action='create', model_name='Outlet', object_id=outlet.id, object_reference=outlet.code)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, OutletPermission])
def outlet_detail(request, pk):
    """Retrieve, update or delete an outlet"""
    outlet = get_object_or_404(Outlet, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = OutletSerializer(outlet)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = OutletSerializer(outlet, data=request.data, partial=request.method == 'PATCH', context={'tenant': outlet.tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request=request, action='delete', model_name='Outlet', object_id=outlet.id, object_reference=outlet.code)
        outlet.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
