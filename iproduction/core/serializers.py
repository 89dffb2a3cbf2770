from django.contrib.auth.password_validation import validate_password
from django.db import models, transaction
from django.utils.text import slugify
from rest_framework import serializers

from .models import User, Tenant, Role, CompanyProfile, AuditLog


class TenantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ['id', 'name', 'slug', 'email', 'phone', 'address', 'tax_number', 'currency', 'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'slug': {'required': False}}

    def create(self, validated_data):
        if not validated_data.get('slug'):
            validated_data['slug'] = unique_tenant_slug(validated_data['name'])
        return super().create(validated_data)


def unique_tenant_slug(name):
    base = slugify(name) or 'tenant'
    slug = base
    counter = 0
    while Tenant.objects.filter(slug=slug).exists():
        counter += 1
        slug = f"{base}-{counter}"
    return slug


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'permissions', 'created_at']
        read_only_fields = ['created_at']

    def validate_permissions(self, value):
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            raise serializers.ValidationError('Permissions must be a list of strings.')
        return value

    def validate_name(self, value):
        tenant = self.context['tenant']
        queryset = Role.objects.filter(tenant=tenant, name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A role with this name already exists.')
        return value


class UserSerializer(serializers.ModelSerializer):
    role_name = serializers.CharField(source='role.name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'full_name', 'phone', 'tenant', 'role', 'role_name', 'is_active', 'is_staff', 'created_at', 'updated_at']
        read_only_fields = ['tenant', 'is_staff', 'created_at', 'updated_at']

    def validate_role(self, value):
        tenant = self.context.get('tenant')
        if value is not None and tenant is not None and value.tenant_id != tenant.id:
            raise serializers.ValidationError('Role does not belong to this tenant.')
        return value


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'full_name', 'phone', 'role']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        role = attrs.get('role')
        tenant = self.context.get('tenant')
        if role is not None and tenant is not None and role.tenant_id != tenant.id:
            raise serializers.ValidationError({'role': 'Role does not belong to this tenant.'})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class RegisterSerializer(serializers.Serializer):
    """Sign-up: creates a tenant, its Admin role and the owner user"""
    company_name = serializers.CharField(max_length=200)
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    full_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_username(self, value):
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError('A user with that username already exists.')
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        tenant = Tenant.objects.create(
            name=validated_data['company_name'],
            slug=unique_tenant_slug(validated_data['company_name']),
            email=validated_data['email'],
            phone=validated_data.get('phone', ''),
        )
        role = Role.objects.create(tenant=tenant, name='Admin', permissions=['*'])
        user = User(
            username=validated_data['username'],
            email=validated_data['email'],
            full_name=validated_data.get('full_name', ''),
            phone=validated_data.get('phone') or None,
            tenant=tenant,
            role=role,
            is_active=True,
        )
        user.set_password(validated_data['password'])
        user.save()
        CompanyProfile.for_tenant(tenant)
        return user


class CompanyProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanyProfile
        fields = ['id', 'name', 'email', 'phone', 'address', 'logo', 'tax_number', 'currency', 'updated_at']
        read_only_fields = ['updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class TenantScopedSerializer(serializers.ModelSerializer):
    """
    ModelSerializer for tenant-owned models.

    The tenant comes from context['tenant'] (never from the payload). Fields
    named in `tenant_unique_fields` are unique per tenant, and related
    objects must belong to the same tenant.
    """
    tenant_unique_fields = ()

    def get_tenant(self):
        tenant = self.context.get('tenant')
        if tenant is None and self.instance is not None and hasattr(self.instance, 'tenant'):
            tenant = self.instance.tenant
        return tenant

    def validate(self, attrs):
        attrs = super().validate(attrs)
        tenant = self.get_tenant()
        if tenant is None:
            return attrs

        for name, value in attrs.items():
            if isinstance(value, models.Model) and hasattr(value, 'tenant_id') and value.tenant_id != tenant.id:
                raise serializers.ValidationError({name: 'Invalid pk - object does not exist.'})

        for field in self.tenant_unique_fields:
            value = attrs.get(field)
            if value in (None, ''):
                continue
            lookup = f'{field}__iexact' if isinstance(value, str) else field
            queryset = self.Meta.model.objects.filter(tenant=tenant, **{lookup: value})
            if self.instance is not None:
                queryset = queryset.exclude(pk=self.instance.pk)
            if queryset.exists():
                raise serializers.ValidationError({field: f'{self.Meta.model._meta.verbose_name.capitalize()} with this {field} already exists.'})
        return attrs

    def create(self, validated_data):
        validated_data['tenant'] = self.context['tenant']
        return super().create(validated_data)


def validate_line_items(items_data, item_serializer_class, tenant):
    """Validate nested `items` posted next to a document; returns validated dicts"""
    if not items_data:
        raise serializers.ValidationError({'items': 'At least one item is required.'})
    if not isinstance(items_data, list):
        raise serializers.ValidationError({'items': 'Items must be a list.'})
    item_serializer = item_serializer_class(data=items_data, many=True, context={'tenant': tenant})
    if not item_serializer.is_valid():
        raise serializers.ValidationError({'items': item_serializer.errors})
    return item_serializer.validated_data
