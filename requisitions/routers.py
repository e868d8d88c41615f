"""
URL mappings for the hospital supply API.

Paths carry no trailing slash, matching the rest of the backend.
"""
from django.urls import include, path

from .views import health
from .views import requisitions as req

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    path('api/requisitions', req.requisitions),
    path('api/requisitions/stats', req.requisition_stats),
    path('api/requisitions/<uuid:pk>', req.requisition_detail),
    path('api/requisitions/<uuid:pk>/submit', req.requisition_submit),
    path('api/requisitions/<uuid:pk>/approve', req.requisition_approve),
    path('api/requisitions/<uuid:pk>/reject', req.requisition_reject),
    path('api/requisitions/<uuid:pk>/fulfill', req.requisition_fulfill),
    path('api/requisitions/<uuid:pk>/cancel', req.requisition_cancel),
    path('api/requisitions/<uuid:pk>/transactions', req.requisition_transactions),
]
