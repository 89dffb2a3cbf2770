"""Shared helpers: audit logging, document numbering, date ranges and pagination"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.core.paginator import Paginator
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from .models import AuditLog, Tenant

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, tenant=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request (for user, tenant and IP) - optional if user is provided
        action: Action type (create, update, delete, payment_add, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user)
        tenant: Optional tenant override (defaults to the request's tenant)
        object_reference: Reference identifier (e.g., invoice number)
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if tenant is None and request is not None:
            tenant = getattr(request, '_cached_tenant', None)
            if tenant is None and audit_user is not None and getattr(audit_user, 'tenant_id', None):
                tenant = audit_user.tenant

        if not action or not model_name or object_id is None:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        # Savepoint: a failed insert must not break an enclosing transaction
        with transaction.atomic():
            return AuditLog.objects.create(
                tenant=tenant,
                user=audit_user if audit_user and audit_user.is_authenticated else None,
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                object_reference=object_reference,
                changes=changes or {},
                ip_address=get_client_ip(request) if request else None,
            )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def next_document_number(model, tenant, field, prefix, padding=None):
    """
    Next sequential number for a per-tenant document series, e.g. INV-001.

    Locks the tenant row, so two concurrent creates inside transaction.atomic()
    cannot pick the same number.
    """
    if padding is None:
        padding = settings.DOCUMENT_NUMBER_PADDING

    Tenant.objects.select_for_update().filter(pk=tenant.pk).first()
    max_number = 0
    values = model.objects.filter(tenant=tenant, **{f'{field}__startswith': f'{prefix}-'}).values_list(field, flat=True)
    for value in values:
        # Serial is the last dash-separated part; skip anything hand-typed
        try:
            max_number = max(max_number, int(value.rsplit('-', 1)[1]))
        except (ValueError, IndexError):
            continue
    return f"{prefix}-{str(max_number + 1).zfill(padding)}"


def parse_date_param(value, default=None):
    """Parse a YYYY-MM-DD query parameter, returning default when blank"""
    if not value:
        return default
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError({'date': f"Invalid date '{value}', expected YYYY-MM-DD."})


def date_range_from_params(params, default_days=30):
    """(date_from, date_to) from query params, defaulting to the `default_days` days up to date_to"""
    date_to = parse_date_param(params.get('date_to'), timezone.now().date())
    date_from = parse_date_param(params.get('date_from'), date_to - timedelta(days=default_days))
    check_date_window(date_from, date_to, 'date_from')
    return date_from, date_to


def check_date_window(start, end, start_name='start_date'):
    """ValidationError when the window starts after it ends"""
    if start > end:
        raise ValidationError({start_name: f"{start.isoformat()} is after the end of the period ({end.isoformat()})."})


def positive_int_param(params, name, default, maximum=None):
    """Integer query parameter of at least 1, capped at maximum; ValidationError otherwise"""
    raw = params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: f"'{raw}' is not a whole number."})
    if value < 1:
        raise ValidationError({name: f"{name} must be at least 1."})
    if maximum is not None:
        value = min(value, maximum)
    return value


def paginated_response(queryset, request, serializer_class, default_limit=15):
    """Page a queryset with ?page=&limit= and wrap it in the list envelope"""
    page = positive_int_param(request.query_params, 'page', 1)
    limit = positive_int_param(request.query_params, 'limit', default_limit, maximum=MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True)
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def json_safe(value):
    """Decimals to strings and dates to ISO strings, recursively"""
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
