from django.urls import path
from .views import (
    stage_list_create, stage_detail,
    production_list_create, production_stats, production_detail,
    production_advance, production_complete, production_cancel,
    loss_list_create, loss_detail,
    qc_template_list_create, qc_template_detail, qc_inspection_list_create, qc_inspection_detail,
    ncr_list_create, ncr_detail, qc_dashboard
)

urlpatterns = [
    path('production-stages/', stage_list_create, name='production-stage-list-create'),
    path('production-stages/<int:pk>/', stage_detail, name='production-stage-detail'),
    path('productions/', production_list_create, name='production-list-create'),
    path('productions/stats/', production_stats, name='production-stats'),
    path('productions/<int:pk>/', production_detail, name='production-detail'),
    path('productions/<int:pk>/advance/', production_advance, name='production-advance'),
    path('productions/<int:pk>/complete/', production_complete, name='production-complete'),
    path('productions/<int:pk>/cancel/', production_cancel, name='production-cancel'),
    path('production-losses/', loss_list_create, name='production-loss-list-create'),
    path('production-losses/<int:pk>/', loss_detail, name='production-loss-detail'),
    path('qc/templates/', qc_template_list_create, name='qc-template-list-create'),
    path('qc/templates/<int:pk>/', qc_template_detail, name='qc-template-detail'),
    path('qc/inspections/', qc_inspection_list_create, name='qc-inspection-list-create'),
    path('qc/inspections/<int:pk>/', qc_inspection_detail, name='qc-inspection-detail'),
    path('qc/ncr/', ncr_list_create, name='ncr-list-create'),
    path('qc/ncr/<int:pk>/', ncr_detail, name='ncr-detail'),
    path('qc/dashboard/', qc_dashboard, name='qc-dashboard'),
]
