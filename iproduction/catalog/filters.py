import django_filters
from django.db.models import F, Q
from .models import Product, RawMaterial


def _truthy(value):
    return str(value).lower() in ('true', '1', 'yes')


class ProductFilter(django_filters.FilterSet):
    """Filter for Product lists"""

    # Searches name and SKU
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'status', 'in_stock']

    def filter_search(self, queryset, name, value):
        """Multi-word search: every word must appear in the name or SKU"""
        search = value.strip()
        if not search:
            return queryset
        query = Q()
        for word in search.split():
            query &= Q(name__icontains=word) | Q(sku__icontains=word)
        return queryset.filter(query)

    def filter_in_stock(self, queryset, name, value):
        if _truthy(value):
            return queryset.filter(stock__gt=0)
        return queryset.filter(stock__lte=0)


class RawMaterialFilter(django_filters.FilterSet):
    """Filter for RawMaterial lists"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = RawMaterial
        fields = ['search', 'category', 'low_stock']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        query = Q()
        for word in search.split():
            query &= Q(name__icontains=word) | Q(sku__icontains=word)
        return queryset.filter(query)

    def filter_low_stock(self, queryset, name, value):
        """Materials at or below their minimum stock level"""
        if _truthy(value):
            return queryset.filter(stock__lte=F('min_stock'))
        return queryset.filter(stock__gt=F('min_stock'))
