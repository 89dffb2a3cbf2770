"""
Tenant resolution and permission classes.

Every business endpoint works on the data of exactly one tenant. The tenant
comes from the authenticated user; platform operators (superusers without a
tenant) pick one through the X-Tenant-ID header.
"""
import logging

from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import Tenant

logger = logging.getLogger(__name__)

TENANT_HEADER = 'HTTP_X_TENANT_ID'


def resolve_tenant(request):
    """Return the active tenant for the request, or None"""
    user = getattr(request, 'user', None)
    if not user or not user.is_authenticated:
        return None

    if user.tenant_id:
        tenant = user.tenant
    elif user.is_superuser:
        header_value = request.META.get(TENANT_HEADER)
        if not header_value:
            return None
        try:
            tenant = Tenant.objects.get(pk=int(header_value))
        except (ValueError, Tenant.DoesNotExist):
            logger.warning(f"Operator {user.username} requested unknown tenant {header_value!r}")
            return None
    else:
        return None

    if not tenant.is_active:
        return None
    return tenant


def get_tenant(request):
    """Cached tenant lookup; raises PermissionDenied when there is none"""
    if not hasattr(request, '_cached_tenant'):
        request._cached_tenant = resolve_tenant(request)
    if request._cached_tenant is None:
        raise PermissionDenied('No active tenant for this request.')
    return request._cached_tenant


class HasTenant(BasePermission):
    """Allows access only when the request resolves to an active tenant"""
    message = 'No active tenant for this request.'

    def has_permission(self, request, view):
        if not hasattr(request, '_cached_tenant'):
            request._cached_tenant = resolve_tenant(request)
        return request._cached_tenant is not None


def user_has_module_permission(user, module, level):
    """
    Check a user's role for `<module>.<level>`.

    Users without a role fall back to staff/superuser status.
    """
    if not user or not user.is_authenticated:
        return False
    if user.role_id is None:
        return user.is_superuser or user.is_staff
    if level == 'view' and user.role.grants(module, 'manage'):
        return True
    return user.role.grants(module, level)


def module_permission(module):
    """Build a permission class guarding one module (view for safe methods, manage otherwise)"""

    class ModulePermission(BasePermission):
        message = f'You do not have permission to access {module}.'

        def has_permission(self, request, view):
            level = 'view' if request.method in SAFE_METHODS else 'manage'
            return user_has_module_permission(request.user, module, level)

    ModulePermission.__name__ = f'{module.title()}ModulePermission'
    return ModulePermission


def permission_list(user):
    """Flattened permission list for the /auth/me/ payload"""
    if user.role_id:
        return list(user.role.permissions or [])
    if user.is_superuser or user.is_staff:
        return ['*']
    return []
