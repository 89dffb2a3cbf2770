from django.contrib import admin
from .models import Outlet


@admin.register(Outlet)
class OutletAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'tenant', 'phone', 'status', 'created_at']
    list_filter = ['status', 'tenant']
    search_fields = ['name', 'code']
