from django.urls import path
from .views import (
    purchase_list_create, purchase_detail,
    goods_receipt_list_create, goods_receipt_detail, goods_receipt_add_items, goods_receipt_status,
    goods_receipt_item_quality, goods_receipt_dashboard
)

urlpatterns = [
    path('purchases/', purchase_list_create, name='purchase-list-create'),
    path('purchases/<int:pk>/', purchase_detail, name='purchase-detail'),
    path('grn/', goods_receipt_list_create, name='grn-list-create'),
    path('grn/dashboard/', goods_receipt_dashboard, name='grn-dashboard'),
    path('grn/<int:pk>/', goods_receipt_detail, name='grn-detail'),
    path('grn/<int:pk>/items/', goods_receipt_add_items, name='grn-add-items'),
    path('grn/<int:pk>/status/', goods_receipt_status, name='grn-status'),
    path('grn/items/<int:pk>/quality/', goods_receipt_item_quality, name='grn-item-quality'),
]
