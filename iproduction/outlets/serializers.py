from iproduction.core.serializers import TenantScopedSerializer
from .models import Outlet


class OutletSerializer(TenantScopedSerializer):
    tenant_unique_fields = ('code',)

    class Meta:
        model = Outlet
        fields = ['id', 'name', 'code', 'address', 'phone', 'email', 'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
