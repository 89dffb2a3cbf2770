from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_statement,
    supplier_list_create, supplier_detail, supplier_statement,
    customer_receive_list_create, customer_receive_detail,
    supplier_payment_list_create, supplier_payment_detail
)

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/statement/', customer_statement, name='customer-statement'),
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
    path('suppliers/<int:pk>/statement/', supplier_statement, name='supplier-statement'),
    path('customer-receives/', customer_receive_list_create, name='customer-receive-list-create'),
    path('customer-receives/<int:pk>/', customer_receive_detail, name='customer-receive-detail'),
    path('supplier-payments/', supplier_payment_list_create, name='supplier-payment-list-create'),
    path('supplier-payments/<int:pk>/', supplier_payment_detail, name='supplier-payment-detail'),
]
