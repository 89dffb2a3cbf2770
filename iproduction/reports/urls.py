from django.urls import path
from . import views

urlpatterns = [
    path('reports/sales/', views.sales_report, name='sales-report'),
    path('reports/purchases/', views.purchases_report, name='purchases-report'),
    path('reports/production/', views.production_report, name='production-report'),
    path('reports/expenses/', views.expenses_report, name='expenses-report'),
    path('reports/inventory/', views.inventory_report, name='inventory-report'),
    path('reports/customers/', views.customers_report, name='customers-report'),
    path('reports/suppliers/', views.suppliers_report, name='suppliers-report'),
    path('reports/production-efficiency/', views.production_efficiency_report, name='production-efficiency-report'),
    path('reports/dashboard/', views.dashboard, name='dashboard'),
]
