from django.urls import path
from .views import (
    quotation_list_create, quotation_detail,
    quotation_send, quotation_accept, quotation_reject, quotation_convert,
    sale_list_create, sale_stats, sale_detail
)

urlpatterns = [
    path('quotations/', quotation_list_create, name='quotation-list-create'),
    path('quotations/<int:pk>/', quotation_detail, name='quotation-detail'),
    path('quotations/<int:pk>/send/', quotation_send, name='quotation-send'),
    path('quotations/<int:pk>/accept/', quotation_accept, name='quotation-accept'),
    path('quotations/<int:pk>/reject/', quotation_reject, name='quotation-reject'),
    path('quotations/<int:pk>/convert/', quotation_convert, name='quotation-convert'),
    path('sales/', sale_list_create, name='sale-list-create'),
    path('sales/stats/', sale_stats, name='sale-stats'),
    path('sales/<int:pk>/', sale_detail, name='sale-detail'),
]
