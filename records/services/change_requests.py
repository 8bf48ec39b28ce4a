"""
Patient change requests.

Patients cannot write their own record.  They submit the changes they
want and hospital staff approve (apply) or reject them.  Visibility
follows the same tenant rules as the records themselves.
"""
from __future__ import annotations

from typing import Any, Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from records.exceptions import NotFound
from records.models import ChangeRequest
from records.principals import HospitalAdminPrincipal, PatientPrincipal, Principal, SuperAdminPrincipal
from records.services import patients as patient_store


def scoped_requests(principal: Principal):
    qs = ChangeRequest.objects.select_related('patient', 'requested_by', 'reviewed_by')
    if isinstance(principal, SuperAdminPrincipal):
        return qs
    if isinstance(principal, HospitalAdminPrincipal):
        return qs.filter(patient__hospital_id=principal.hospital_id)
    if isinstance(principal, PatientPrincipal):
        return qs.filter(patient__account_id=principal.user_id)
    raise PermissionDenied('Unknown principal')


def list_requests(principal: Principal, status: Optional[str] = ChangeRequest.STATUS_PENDING):
    qs = scoped_requests(principal)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at', '-id')


def pending_count(principal: Principal) -> int:
    return scoped_requests(principal).filter(status=ChangeRequest.STATUS_PENDING).count()


def submit(principal: Principal, patient_id, changes: dict[str, Any]) -> ChangeRequest:
    if not isinstance(principal, PatientPrincipal):
        raise PermissionDenied('Only patients submit change requests; staff edit records directly.')
    if not changes:
        raise ValidationError({'changes': ['No changes requested.']})
    patient = patient_store.get_patient(patient_id, principal)
    return ChangeRequest.objects.create(
        patient=patient, requested_by_id=principal.user_id, requested_changes=changes,
    )


def review(principal: Principal, request_id, *, approve: bool) -> ChangeRequest:
    """Approve (apply) or reject a pending request.  Repeating a decision is a no-op."""
    if not isinstance(principal, (SuperAdminPrincipal, HospitalAdminPrincipal)):
        raise PermissionDenied('Administrator role required.')
    target = ChangeRequest.STATUS_APPROVED if approve else ChangeRequest.STATUS_REJECTED
    with transaction.atomic():
        req = scoped_requests(principal).select_for_update(of=('self',)).filter(pk=request_id).first()
        if req is None:
            raise NotFound('Request not found')
        if req.status == target:
            return req
        if req.status != ChangeRequest.STATUS_PENDING:
            raise ValidationError({'status': [f'Request was already {req.status.lower()}.']})
        if approve:
            patient_store.update_patient(req.patient_id, principal, req.requested_changes)
        req.status = target
        req.reviewed_by_id = principal.user_id
        req.reviewed_at = timezone.now()
        req.save(update_fields=['status', 'reviewed_by', 'reviewed_at'])
    return req
