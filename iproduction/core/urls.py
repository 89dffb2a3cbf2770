from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    tenant_list_create, tenant_detail,
    user_list_create, user_detail,
    role_list_create, role_detail,
    company_profile,
    audit_log_list, audit_log_detail,
    data_export, data_import, data_reset
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Tenant endpoints (platform operators)
    path('tenants/', tenant_list_create, name='tenant-list-create'),
    path('tenants/<int:pk>/', tenant_detail, name='tenant-detail'),

    # User and role endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('roles/', role_list_create, name='role-list-create'),
    path('roles/<int:pk>/', role_detail, name='role-detail'),

    path('company-profile/', company_profile, name='company-profile'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    # Data portability
    path('data/export/', data_export, name='data-export'),
    path('data/import/', data_import, name='data-import'),
    path('data/reset/', data_reset, name='data-reset'),
]
