from django.urls import path
from .views import (
    stock_adjustment_list_create, stock_adjustment_detail,
    raw_material_waste_list_create, raw_material_waste_detail,
    product_waste_list_create, product_waste_detail,
    inventory_valuation
)

urlpatterns = [
    path('stock-adjustments/', stock_adjustment_list_create, name='stock-adjustment-list-create'),
    path('stock-adjustments/<int:pk>/', stock_adjustment_detail, name='stock-adjustment-detail'),
    path('raw-material-wastes/', raw_material_waste_list_create, name='raw-material-waste-list-create'),
    path('raw-material-wastes/<int:pk>/', raw_material_waste_detail, name='raw-material-waste-detail'),
    path('product-wastes/', product_waste_list_create, name='product-waste-list-create'),
    path('product-wastes/<int:pk>/', product_waste_detail, name='product-waste-detail'),
    path('inventory/valuation/', inventory_valuation, name='inventory-valuation'),
]
