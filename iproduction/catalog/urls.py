from django.urls import path
from .views import (
    unit_list_create, unit_detail,
    currency_list_create, currency_detail,
    product_category_list_create, product_category_detail,
    raw_material_category_list_create, raw_material_category_detail,
    product_list_create, product_detail, product_bom, product_bom_line_detail,
    raw_material_list_create, raw_material_low_stock, raw_material_detail,
    non_inventory_item_list_create, non_inventory_item_detail
)

urlpatterns = [
    path('units/', unit_list_create, name='unit-list-create'),
    path('units/<int:pk>/', unit_detail, name='unit-detail'),
    path('currencies/', currency_list_create, name='currency-list-create'),
    path('currencies/<int:pk>/', currency_detail, name='currency-detail'),
    path('product-categories/', product_category_list_create, name='product-category-list-create'),
    path('product-categories/<int:pk>/', product_category_detail, name='product-category-detail'),
    path('raw-material-categories/', raw_material_category_list_create, name='raw-material-category-list-create'),
    path('raw-material-categories/<int:pk>/', raw_material_category_detail, name='raw-material-category-detail'),
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/bom/', product_bom, name='product-bom'),
    path('products/<int:pk>/bom/<int:line_pk>/', product_bom_line_detail, name='product-bom-line-detail'),
    path('raw-materials/', raw_material_list_create, name='raw-material-list-create'),
    path('raw-materials/low-stock/', raw_material_low_stock, name='raw-material-low-stock'),
    path('raw-materials/<int:pk>/', raw_material_detail, name='raw-material-detail'),
    path('non-inventory-items/', non_inventory_item_list_create, name='non-inventory-item-list-create'),
    path('non-inventory-items/<int:pk>/', non_inventory_item_detail, name='non-inventory-item-detail'),
]
