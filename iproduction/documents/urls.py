from django.urls import path
from . import views

urlpatterns = [
    path('documents/invoice/<int:pk>/', views.invoice, name='document-invoice'),
    path('documents/purchase-order/<int:pk>/', views.purchase_order, name='document-purchase-order'),
    path('documents/delivery-challan/<int:pk>/', views.delivery_challan, name='document-delivery-challan'),
    path('documents/receipt-challan/<int:pk>/', views.receipt_challan, name='document-receipt-challan'),
    path('documents/production-report/<int:pk>/', views.production_report, name='document-production-report'),
    path('documents/financial-statement/', views.financial_statement, name='document-financial-statement'),
    path('documents/email/', views.email_document, name='document-email'),
]
