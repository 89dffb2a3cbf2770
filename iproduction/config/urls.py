"""
URL configuration for the iProduction ERP backend.

Every app mounts its function views under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "iProduction Admin Panel"
admin.site.site_title = "iProduction Admin Portal"
admin.site.index_title = "Welcome to the iProduction Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('iproduction.core.urls')),
    path('api/v1/', include('iproduction.outlets.urls')),
    path('api/v1/', include('iproduction.catalog.urls')),
    path('api/v1/', include('iproduction.parties.urls')),
    path('api/v1/', include('iproduction.sales.urls')),
    path('api/v1/', include('iproduction.purchasing.urls')),
    path('api/v1/', include('iproduction.production.urls')),
    path('api/v1/', include('iproduction.inventory.urls')),
    path('api/v1/', include('iproduction.payroll.urls')),
    path('api/v1/', include('iproduction.accounting.urls')),
    path('api/v1/', include('iproduction.reports.urls')),
    path('api/v1/', include('iproduction.documents.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
