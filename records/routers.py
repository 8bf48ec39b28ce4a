"""
URL mappings for the records API.

Mounted under ``/api`` by ``smartqr.urls``.  Trailing slashes are
deliberately omitted to match the front-end client.
"""
from django.urls import path

from .auth_views import login_view, me_view, patient_login_view
from .views import admin, change_requests, health, hospitals, patients, public

urlpatterns = [
    path('health', health.healthz),

    # Auth
    path('auth/login', login_view),
    path('auth/patient-login', patient_login_view),
    path('auth/me', me_view),

    # Tenants
    path('hospitals/register', hospitals.register_hospital),
    path('hospitals', hospitals.list_hospitals),
    path('hospitals/<int:hospital_id>', hospitals.hospital_detail),
    path('hospitals/<int:hospital_id>/approve', hospitals.approve_hospital),
    path('hospitals/<int:hospital_id>/reject', hospitals.reject_hospital),

    # Patient records
    path('patients', patients.patients),
    path('patients/stats', patients.patient_stats),
    path('patients/<int:patient_id>', patients.patient_detail),
    path('patients/<int:patient_id>/change-requests', change_requests.submit_change_request),

    # Staff review and owner dashboard
    path('admin/requests', change_requests.list_change_requests),
    path('admin/requests/count', change_requests.pending_change_request_count),
    path('admin/requests/<int:request_id>/approve', change_requests.approve_change_request),
    path('admin/requests/<int:request_id>/reject', change_requests.reject_change_request),
    path('admin/hospitals/<int:hospital_id>/patients', admin.hospital_patients),
    path('admin/stats', admin.owner_stats),

    # Public emergency lookup (no auth)
    path('public/patient/<str:token>', public.emergency_record),
]
