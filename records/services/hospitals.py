"""
Tenant lifecycle: self-registration and owner approval.

A hospital starts PENDING.  The owner may move it to APPROVED or
REJECTED at any time and back again; there is no terminal state.  The
hospital's admin account is active exactly while the hospital is
APPROVED, and both rows change in one transaction.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count

from records.exceptions import DuplicateAdminEmail, DuplicateHospitalEmail, NotFound
from records.models import Hospital, Patient

logger = logging.getLogger(__name__)

User = get_user_model()

# Target status -> admin is_active.  Every status is reachable from every other.
ADMIN_ACTIVE_FOR_STATUS = {
    Hospital.STATUS_APPROVED: True,
    Hospital.STATUS_REJECTED: False,
}


def register_hospital(*, name, email, admin_name, admin_email, admin_password,
                      phone='', address='', primary_contact_name='') -> Hospital:
    """Create a PENDING hospital together with its inactive admin account."""
    email = email.strip().lower()
    admin_email = admin_email.strip().lower()
    if Hospital.objects.filter(email=email).exists():
        raise DuplicateHospitalEmail()
    if User.objects.filter(email=admin_email).exists():
        raise DuplicateAdminEmail()

    try:
        with transaction.atomic():
            hospital = Hospital.objects.create(
                name=name,
                email=email,
                phone=phone or '',
                address=address or '',
                primary_contact_name=primary_contact_name or '',
                status=Hospital.STATUS_PENDING,
            )
            admin = User.objects.create_user(
                email=admin_email,
                password=admin_password,
                name=admin_name,
                role=User.ROLE_HOSPITAL_ADMIN,
                hospital=hospital,
                is_active=False,
            )
            hospital.admin_user = admin
            hospital.save(update_fields=['admin_user'])
    except IntegrityError:
        # Lost a race with a concurrent registration; nothing was kept.
        if Hospital.objects.filter(email=email).exists():
            raise DuplicateHospitalEmail()
        raise DuplicateAdminEmail()

    logger.info('hospital %s registered, awaiting approval', hospital.pk)
    return hospital


def hospitals_with_counts():
    return (Hospital.objects.select_related('admin_user')
            .annotate(patient_count=Count('patients'))
            .order_by('-created_at', '-id'))


def list_hospitals(status: Optional[str] = None):
    qs = hospitals_with_counts()
    if status:
        qs = qs.filter(status=status)
    return qs


def get_hospital(hospital_id) -> Hospital:
    hospital = hospitals_with_counts().filter(pk=hospital_id).first()
    if hospital is None:
        raise NotFound('Hospital not found')
    return hospital


def set_status(hospital_id, new_status: str) -> Hospital:
    """Move a hospital to ``new_status`` and sync its admin's activation.

    Re-applying the current status is accepted and changes nothing.
    """
    if new_status not in ADMIN_ACTIVE_FOR_STATUS:
        raise ValueError(f'cannot transition to {new_status}')
    with transaction.atomic():
        hospital = Hospital.objects.select_for_update().filter(pk=hospital_id).first()
        if hospital is None:
            raise NotFound('Hospital not found')
        previous = hospital.status
        if previous != new_status:
            hospital.status = new_status
            hospital.save(update_fields=['status', 'updated_at'])
        if hospital.admin_user_id:
            User.objects.filter(pk=hospital.admin_user_id).update(is_active=ADMIN_ACTIVE_FOR_STATUS[new_status])

    if previous != new_status:
        logger.info('hospital %s: %s -> %s', hospital.pk, previous, new_status)
    return get_hospital(hospital.pk)


def approve(hospital_id) -> Hospital:
    return set_status(hospital_id, Hospital.STATUS_APPROVED)


def reject(hospital_id) -> Hospital:
    return set_status(hospital_id, Hospital.STATUS_REJECTED)


def owner_stats() -> dict:
    by_status = dict(Hospital.objects.order_by().values_list('status').annotate(n=Count('id')))
    return {
        'totalHospitals': sum(by_status.values()),
        'approvedHospitals': by_status.get(Hospital.STATUS_APPROVED, 0),
        'pendingHospitals': by_status.get(Hospital.STATUS_PENDING, 0),
        'rejectedHospitals': by_status.get(Hospital.STATUS_REJECTED, 0),
        'totalPatients': Patient.objects.count(),
    }
