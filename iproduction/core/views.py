import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import Tenant, Role, CompanyProfile, AuditLog
from .portability import export_tenant_data, import_tenant_data, reset_tenant_data
from .serializers import (
    UserSerializer, UserCreateSerializer, RegisterSerializer, TenantSerializer,
    RoleSerializer, CompanyProfileSerializer, AuditLogSerializer
)
from .tenancy import HasTenant, get_tenant, module_permission, permission_list
from .utils import MAX_PAGE_SIZE, create_audit_log, positive_int_param

User = get_user_model()
logger = logging.getLogger(__name__)

SettingsPermission = module_permission('settings')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        if self.user.tenant_id and not self.user.tenant.is_active:
            raise AuthenticationFailed('Tenant is suspended.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['tenant_id'] = user.tenant_id
        token['role'] = user.role.name if user.role_id else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def token_payload(user):
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {
        'access': str(token.access_token),
        'refresh': str(token),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Sign up a new tenant together with its owner user"""
    serializer = RegisterSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"Registered tenant {user.tenant.slug} with owner {user.username}")
        return Response({
            'user': UserSerializer(user).data,
            'tenant': TenantSerializer(user.tenant).data,
            **token_payload(user),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with tenant, role and flattened permissions"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['tenant'] = TenantSerializer(user.tenant).data if user.tenant_id else None
    user_data['role'] = RoleSerializer(user.role).data if user.role_id else None
    user_data['permissions'] = permission_list(user)
    user_data['is_platform_operator'] = user.tenant_id is None and user.is_superuser
    return Response(user_data)


# Tenant views (platform operators)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tenant_list_create(request):
    """List all tenants or create a new tenant"""
    if request.method == 'GET':
        tenants = Tenant.objects.all()
        serializer = TenantSerializer(tenants, many=True)
        return Response(serializer.data)
    else:
        serializer = TenantSerializer(data=request.data)
        if serializer.is_valid():
            tenant = serializer.save()
            CompanyProfile.for_tenant(tenant)
            Role.objects.create(tenant=tenant, name='Admin', permissions=['*'])
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tenant_detail(request, pk):
    """Retrieve, update or delete a tenant"""
    tenant = get_object_or_404(Tenant, pk=pk)

    if request.method == 'GET':
        serializer = TenantSerializer(tenant)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TenantSerializer(tenant, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        logger.warning(f"Deleting tenant {tenant.slug} and all of its data")
        tenant.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# User views (tenant scoped)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def user_list_create(request):
    """List the tenant's users or create a new one"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        users = User.objects.filter(tenant=tenant).select_related('role').order_by('username')
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            user = serializer.save(tenant=tenant)
            create_audit_log(request=request, action='create', model_name='User', object_id=user.id, object_reference=user.username)
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def user_detail(request, pk):
    """Retrieve, update or delete a user of the tenant"""
    tenant = get_tenant(request)
    user = get_object_or_404(User, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'detail': 'You cannot delete your own account.'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User', object_id=user.id, object_reference=user.username)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Role views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def role_list_create(request):
    """List the tenant's roles or create a new role"""
    tenant = get_tenant(request)
    if request.method == 'GET':
        roles = Role.objects.filter(tenant=tenant)
        serializer = RoleSerializer(roles, many=True)
        return Response(serializer.data)
    else:
        serializer = RoleSerializer(data=request.data, context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save(tenant=tenant)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def role_detail(request, pk):
    """Retrieve, update or delete a role"""
    tenant = get_tenant(request)
    role = get_object_or_404(Role, pk=pk, tenant=tenant)

    if request.method == 'GET':
        serializer = RoleSerializer(role)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RoleSerializer(role, data=request.data, partial=request.method == 'PATCH', context={'tenant': tenant})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        role.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def company_profile(request):
    """Retrieve or update the tenant's company profile"""
    profile = CompanyProfile.for_tenant(get_tenant(request))

    if request.method == 'GET':
        return Response(CompanyProfileSerializer(profile).data)
    serializer = CompanyProfileSerializer(profile, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request=request, action='update', model_name='CompanyProfile', object_id=profile.id, changes=dict(request.data))
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def audit_log_list(request):
    """List the tenant's audit logs"""
    queryset = AuditLog.objects.filter(tenant=get_tenant(request)).select_related('user')
    action = request.query_params.get('action', None)
    model_name = request.query_params.get('model_name', None)
    if action:
        queryset = queryset.filter(action=action)
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    limit = positive_int_param(request.query_params, 'limit', 200, maximum=MAX_PAGE_SIZE)
    serializer = AuditLogSerializer(queryset[:limit], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def audit_log_detail(request, pk):
    """Retrieve an audit log entry"""
    log = get_object_or_404(AuditLog, pk=pk, tenant=get_tenant(request))
    return Response(AuditLogSerializer(log).data)


# Data portability
@api_view(['GET'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def data_export(request):
    """JSON snapshot of every tenant-scoped collection"""
    tenant = get_tenant(request)
    response = Response(export_tenant_data(tenant))
    response['Content-Disposition'] = f'attachment; filename="{tenant.slug}-export.json"'
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def data_import(request):
    """Replace the tenant's collections with a snapshot produced by data_export"""
    tenant = get_tenant(request)
    counts = import_tenant_data(tenant, request.data)
    create_audit_log(request=request, action='data_import', model_name='Tenant', object_id=tenant.id, object_reference=tenant.slug, changes=counts)
    return Response({'imported': counts})


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasTenant, SettingsPermission])
def data_reset(request):
    """Delete the tenant's business data and load the demo dataset"""
    tenant = get_tenant(request)
    counts = reset_tenant_data(tenant, seed=True)
    create_audit_log(request=request, action='data_reset', model_name='Tenant', object_id=tenant.id, object_reference=tenant.slug, changes=counts)
    return Response({'deleted': counts['deleted'], 'seeded': counts['seeded']})
