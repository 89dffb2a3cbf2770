import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q, Sum, RestrictedError
from django.shortcuts import get_object_or_404
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission
from iproduction.core.utils import create_audit_log, paginated_response
from .models import ProductionStage, Production, ProductionLoss, QCTemplate, QCInspection, NonConformanceReport
from .serializers import (
    ProductionStageSerializer, ProductionSerializer, ProductionCompleteSerializer, ProductionLossSerializer,
    QCTemplateSerializer, QCInspectionSerializer, NonConformanceReportSerializer
)
from .utils import advance_production, complete_production, cancel_production, lock_production, return_materials

logger = logging.getLogger(__name__)

ProductionPermission = module_permission('production')


# Stage views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def stage_list_create(request):
    """List production stages by order or create a new stage"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        stages = ProductionStage.objects.filter(tenant=tenant).order_by('order')
        serializer = ProductionStageSerializer(stages, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductionStageSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def stage_detail(request, pk):
    """Retrieve, update or delete a production stage"""
    stage = get_object_or_404(ProductionStage, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = ProductionStageSerializer(stage)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductionStageSerializer(stage, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            stage.delete()
        except RestrictedError:
            return Response({'error': f"Stage '{stage}' has production history and cannot be deleted"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Production views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_list_create(request):
    """List productions (paginated) or start a new production run"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = Production.objects.filter(tenant=tenant).select_related('product', 'stage').prefetch_related(
            'transitions', 'transitions__stage', 'materials', 'materials__raw_material'
        )
        product = request.query_params.get('product', None)
        status_filter = request.query_params.get('status', None)
        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        search = request.query_params.get('search', None)

        if product:
            queryset = queryset.filter(product_id=product)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if date_from:
            queryset = queryset.filter(start_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(start_date__lte=date_to)
        if search:
            queryset = queryset.filter(Q(reference_no__icontains=search) | Q(product__name__icontains=search))
        return paginated_response(queryset, request, ProductionSerializer)
    else:
        serializer = ProductionSerializer(data=request.data, context={'tenant': tenant, 'request': request})
        if serializer.is_valid():
            production = serializer.save()
            create_audit_log(request=request, action='create', model_name='Production', object_id=production.id,
                             object_reference=production.reference_no,
                             changes={'product': production.product.name, 'quantity': str(production.quantity)})
            return Response(ProductionSerializer(production).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_detail(request, pk):
    """Retrieve, update (dates and notes) or delete a production"""
    tenant = get_tenant(request)
    production = get_object_or_404(Production, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = ProductionSerializer(production)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductionSerializer(production, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            production = lock_production(production)
            if production.status == 'completed':
                return Response({'error': 'Completed productions cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
            if production.status == 'running':
                return_materials(production)
            production.delete()
        create_audit_log(request=request, action='delete', model_name='Production', object_id=pk, object_reference=production.reference_no)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_advance(request, pk):
    """Move a running production to its next stage"""
    production = get_object_or_404(Production, pk=pk, tenant=get_tenant(request))
    with transaction.atomic():
        production = lock_production(production)
        old_stage = production.stage.name if production.stage_id else None
        production = advance_production(production, notes=request.data.get('notes', ''))
    create_audit_log(request=request, action='production_advance', model_name='Production', object_id=production.id,
                     object_reference=production.reference_no, changes={'stage': [old_stage, production.stage.name]})
    return Response(ProductionSerializer(production).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_complete(request, pk):
    """Complete a running production and add its output to product stock"""
    production = get_object_or_404(Production, pk=pk, tenant=get_tenant(request))
    serializer = ProductionCompleteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        production = complete_production(production, **serializer.validated_data)
    create_audit_log(request=request, action='production_complete', model_name='Production', object_id=production.id,
                     object_reference=production.reference_no, changes={'completed_qty': str(production.completed_qty)})
    return Response(ProductionSerializer(production).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_cancel(request, pk):
    """Cancel a running production and return its raw materials"""
    production = get_object_or_404(Production, pk=pk, tenant=get_tenant(request))
    with transaction.atomic():
        production = cancel_production(production, reason=request.data.get('reason', ''))
    create_audit_log(request=request, action='production_cancel', model_name='Production', object_id=production.id,
                     object_reference=production.reference_no)
    return Response(ProductionSerializer(production).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def production_stats(request):
    """Production counts by status plus planned and completed quantities"""
    totals = Production.objects.filter(tenant=get_tenant(request)).aggregate(
        total=Count('id'),
        running=Count('id', filter=Q(status='running')),
        completed=Count('id', filter=Q(status='completed')),
        cancelled=Count('id', filter=Q(status='cancelled')),
        planned_qty=Sum('quantity', filter=Q(status='completed')),
        completed_qty=Sum('completed_qty', filter=Q(status='completed')),
    )
    planned = totals.pop('planned_qty') or Decimal('0')
    completed = totals.pop('completed_qty') or Decimal('0')
    totals['average_efficiency'] = str(round(completed / planned * 100, 2)) if planned else None
    return Response(totals)


# Loss views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def loss_list_create(request):
    """List production losses or record a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = ProductionLoss.objects.filter(tenant=tenant).select_related('product', 'production')
        production = request.query_params.get('production', None)
        loss_type = request.query_params.get('loss_type', None)
        if production:
            queryset = queryset.filter(production_id=production)
        if loss_type:
            queryset = queryset.filter(loss_type=loss_type)
        serializer = ProductionLossSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductionLossSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            loss = serializer.save()
            create_audit_log(request=request, action='create', model_name='ProductionLoss', object_id=loss.id,
                             changes={'product': loss.product.name, 'quantity': str(loss.quantity), 'loss_type': loss.loss_type})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def loss_detail(request, pk):
    """Retrieve, update or delete a production loss"""
    loss = get_object_or_404(ProductionLoss, pk=pk, tenant=get_tenant(request))

    if request.method == 'GET':
        serializer = ProductionLossSerializer(loss)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductionLossSerializer(loss, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        loss.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Quality control views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def qc_template_list_create(request):
    """List QC templates or create one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        templates = QCTemplate.objects.filter(tenant=tenant)
        template_type = request.query_params.get('type', None)
        if template_type:
            templates = templates.filter(type=template_type)
        serializer = QCTemplateSerializer(templates, many=True)
        return Response(serializer.data)
    else:
        serializer = QCTemplateSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def qc_template_detail(request, pk):
    """Retrieve, update or delete a QC template"""
    tenant = get_tenant(request)
    template = get_object_or_404(QCTemplate, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = QCTemplateSerializer(template)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = QCTemplateSerializer(template, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            template.delete()
        except RestrictedError:
            return Response({'error': f"'{template}' has inspections and cannot be deleted"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def qc_inspection_list_create(request):
    """List inspections (paginated) or record one; status follows the parameter results"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        queryset = QCInspection.objects.filter(tenant=tenant).select_related('template', 'production', 'non_conformance')
        for param in ('template', 'production', 'purchase', 'sale', 'status'):
            value = request.query_params.get(param, None)
            if value:
                queryset = queryset.filter(**{param: value})
        return paginated_response(queryset, request, QCInspectionSerializer)
    else:
        serializer = QCInspectionSerializer(data=request.data, context={'tenant': tenant, 'request': request})
        if serializer.is_valid():
            inspection = serializer.save()
            logger.info(f"QC inspection {inspection.id} ({inspection.template.name}) {inspection.status}")
            create_audit_log(request=request, action='create', model_name='QCInspection', object_id=inspection.id,
                             object_reference=inspection.batch_no or None,
                             changes={'template': inspection.template.name, 'status': inspection.status,
                                      'defect_count': inspection.defect_count})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def qc_inspection_detail(request, pk):
    """Retrieve, update or delete an inspection"""
    tenant = get_tenant(request)
    inspection = get_object_or_404(QCInspection, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = QCInspectionSerializer(inspection)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = QCInspectionSerializer(inspection, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        inspection.delete()
        create_audit_log(request=request, action='delete', model_name='QCInspection', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def ncr_list_create(request):
    """List non-conformance reports or raise a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        reports = NonConformanceReport.objects.filter(tenant=tenant)
        status_filter = request.query_params.get('status', None)
        if status_filter:
            reports = reports.filter(status=status_filter)
        serializer = NonConformanceReportSerializer(reports, many=True)
        return Response(serializer.data)
    else:
        serializer = NonConformanceReportSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            report = serializer.save()
            create_audit_log(request=request, action='create', model_name='NonConformanceReport', object_id=report.id,
                             object_reference=report.report_no, changes={'severity': report.severity})
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def ncr_detail(request, pk):
    """Retrieve or update a non-conformance report (status, root cause, corrective action)"""
    tenant = get_tenant(request)
    report = get_object_or_404(NonConformanceReport, pk=pk, tenant=tenant)
    if request.method == 'GET':
        return Response(NonConformanceReportSerializer(report).data)
    old_status = report.status
    serializer = NonConformanceReportSerializer(report, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
    if serializer.is_valid():
        report = serializer.save()
        if report.status != old_status:
            create_audit_log(request=request, action='status_change', model_name='NonConformanceReport', object_id=report.id,
                             object_reference=report.report_no, changes={'status': [old_status, report.status]})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, ProductionPermission])
def qc_dashboard(request):
    """Inspection counts, pass rate and open NCRs"""
    tenant = get_tenant(request)
    totals = QCInspection.objects.filter(tenant=tenant).aggregate(
        total=Count('id'),
        passed=Count('id', filter=Q(status='passed')),
        failed=Count('id', filter=Q(status='failed')),
    )
    totals['pass_rate'] = str(round(Decimal(totals['passed']) / totals['total'] * 100, 2)) if totals['total'] else '0'
    totals['open_ncrs'] = NonConformanceReport.objects.filter(tenant=tenant, status='open').count()
    return Response(totals)
