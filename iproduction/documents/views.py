import logging
from smtplib import SMTPException
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.http import HttpResponse
from django.utils.html import strip_tags
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from iproduction.core.tenancy import HasTenant, get_tenant, module_permission, user_has_module_permission
from iproduction.core.utils import create_audit_log
from .renderers import RENDERERS, DocumentNotFound, UnknownDocument, render_document
from .serializers import DocumentEmailSerializer

logger = logging.getLogger(__name__)


def _document_response(request, kind, object_id):
    tenant = get_tenant(request)
    try:
        document = render_document(kind, tenant, object_id, request.query_params)
    except DocumentNotFound as e:
        logger.warning(f"{kind} {object_id} requested by {request.user.username}: {e}")
        return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except UnknownDocument as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    response = HttpResponse(document.html, content_type='text/html; charset=utf-8')
    response['Content-Disposition'] = f'inline; filename="{document.filename}"'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('sales')])
def invoice(request, pk):
    """Invoice HTML for a sale"""
    return _document_response(request, 'invoice', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('purchases')])
def purchase_order(request, pk):
    """Purchase order HTML for a purchase"""
    return _document_response(request, 'purchase-order', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('sales')])
def delivery_challan(request, pk):
    """Outward delivery challan for a sale"""
    return _document_response(request, 'delivery-challan', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('purchases')])
def receipt_challan(request, pk):
    """Inward receipt challan for a purchase"""
    return _document_response(request, 'receipt-challan', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('production')])
def production_report(request, pk):
    """Production report HTML"""
    return _document_response(request, 'production-report', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, module_permission('accounting')])
def financial_statement(request):
    """?type=trial-balance|balance-sheet|profit-loss&start_date=&end_date="""
    return _document_response(request, 'financial-statement', request.query_params.get('type', 'trial-balance'))


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant])
def email_document(request):
    """Render a document and e-mail it as an HTML message"""
    serializer = DocumentEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    _, module = RENDERERS[data['type']]
    if not user_has_module_permission(request.user, module, 'view'):
        return Response({'detail': f'You do not have permission to access {module}.'}, status=status.HTTP_403_FORBIDDEN)

    params = {key: data[key].isoformat() for key in ('start_date', 'end_date') if key in data}
    try:
        document = render_document(data['type'], get_tenant(request), data['id'], params)
    except DocumentNotFound as e:
        return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except UnknownDocument as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    subject = data.get('subject') or document.subject
    text_body = data.get('message') or strip_tags(document.html)
    message = EmailMultiAlternatives(subject, text_body, settings.DEFAULT_FROM_EMAIL, [data['email']])
    message.attach_alternative(document.html, 'text/html')
    try:
        message.send()
    except (SMTPException, OSError) as e:
        logger.error(f"Failed to e-mail {document.filename} to {data['email']}: {e}")
        return Response({'message': 'Failed to send e-mail'}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(request=request, action='document_email', model_name=data['type'], object_id=data['id'],
                     object_reference=document.subject, changes={'email': data['email']})
    logger.info(f"E-mailed {document.filename} to {data['email']}")
    return Response({'message': 'Document sent', 'type': data['type'], 'id': data['id'], 'email': data['email']})
