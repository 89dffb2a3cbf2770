from django.urls import path
from .views import outlet_list_create, outlet_detail

urlpatterns = [
    path('outlets/', outlet_list_create, name='outlet-list-create'),
    path('outlets/<int:pk>/', outlet_detail, name='outlet-detail'),
]
