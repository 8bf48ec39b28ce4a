"""
Patient record store.

Every function takes the caller's principal explicitly and applies the
tenant rules itself:

* the owner (super admin) sees every hospital's patients;
* a hospital admin sees only its own hospital's patients, and a record
  belonging to another hospital is reported as missing, never as
  forbidden;
* a patient sees only the record linked to its own account and cannot
  write through this module (see :mod:`records.services.change_requests`).

``hospital`` and ``qr_token`` are fixed when a record is created and no
update path touches them.
"""
from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count
from rest_framework.exceptions import PermissionDenied, ValidationError

from records.exceptions import NotFound
from records.models import Hospital, Patient
from records.principals import (
    HospitalAdminPrincipal,
    PatientPrincipal,
    Principal,
    SuperAdminPrincipal,
)
from records.services import qr

logger = logging.getLogger(__name__)

User = get_user_model()

# API field -> model attribute for fields an update may change.
EDITABLE_FIELDS = {
    'fullName': 'full_name',
    'age': 'age',
    'gender': 'gender',
    'photoUrl': 'photo_url',
    'bloodGroup': 'blood_group',
    'allergies': 'allergies',
    'medicalConditions': 'medical_conditions',
    'medications': 'medications',
    'riskLevel': 'risk_level',
    'aiSummary': 'ai_summary',
}


def scoped_patients(principal: Principal):
    """Return the queryset of patients ``principal`` may see at all."""
    qs = Patient.objects.select_related('hospital')
    if isinstance(principal, SuperAdminPrincipal):
        return qs
    if isinstance(principal, HospitalAdminPrincipal):
        return qs.filter(hospital_id=principal.hospital_id)
    if isinstance(principal, PatientPrincipal):
        return qs.filter(account_id=principal.user_id)
    raise PermissionDenied('Unknown principal')


def _require_staff(principal: Principal) -> None:
    if isinstance(principal, (SuperAdminPrincipal, HospitalAdminPrincipal)):
        return
    if isinstance(principal, PatientPrincipal):
        raise PermissionDenied('Patients cannot modify records directly.')
    raise PermissionDenied('Unknown principal')


def list_patients(principal: Principal, *, hospital_id: Optional[int] = None, risk_level: Optional[str] = None):
    qs = scoped_patients(principal)
    # Only the owner may narrow to an arbitrary hospital; for everyone else
    # the scope above already fixes it.
    if hospital_id is not None and isinstance(principal, SuperAdminPrincipal):
        qs = qs.filter(hospital_id=hospital_id)
    if risk_level:
        qs = qs.filter(risk_level=risk_level)
    return qs.order_by('-created_at', '-id')


def get_patient(patient_id, principal: Principal) -> Patient:
    patient = scoped_patients(principal).filter(pk=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    return patient


def _target_hospital(principal: Principal, requested_hospital_id) -> Hospital:
    if isinstance(principal, HospitalAdminPrincipal):
        # Whatever the body says, staff create records in their own hospital.
        hospital = Hospital.objects.filter(pk=principal.hospital_id).first()
        if hospital is None:
            raise PermissionDenied('No hospital associated with this account')
        return hospital
    if isinstance(principal, SuperAdminPrincipal):
        if not requested_hospital_id:
            raise ValidationError({'hospitalId': ['This field is required.']})
        hospital = Hospital.objects.filter(pk=requested_hospital_id).first()
        if hospital is None:
            raise ValidationError({'hospitalId': ['Unknown hospital.']})
        return hospital
    raise PermissionDenied('Patients cannot create records.')


def _apply_fields(patient: Patient, data: dict[str, Any]) -> None:
    for key, attr in EDITABLE_FIELDS.items():
        if key in data:
            setattr(patient, attr, data[key])
    contact = data.get('emergencyContact')
    if contact:
        if 'name' in contact:
            patient.emergency_contact_name = contact['name']
        if 'phone' in contact:
            patient.emergency_contact_phone = contact['phone']


def _create_portal_account(hospital: Hospital, email: str, password: Optional[str]) -> tuple[Any, Optional[str]]:
    email = email.strip().lower()
    if User.objects.filter(email=email).exists():
        raise ValidationError({'portalEmail': ['User with this email already exists']})
    generated = None
    if password:
        try:
            validate_password(password)
        except DjangoValidationError as e:
            raise ValidationError({'portalPassword': e.messages})
    else:
        password = generated = secrets.token_urlsafe(12)
    account = User.objects.create_user(
        email=email, password=password, role=User.ROLE_PATIENT, hospital=hospital,
    )
    return account, generated


def create_patient(principal: Principal, data: dict[str, Any]) -> tuple[Patient, Optional[str]]:
    """Create a record and its QR image.

    Returns the patient and, when a portal login was provisioned without
    a password, the generated initial password (shown to staff once).
    """
    _require_staff(principal)
    hospital = _target_hospital(principal, data.get('hospitalId'))

    initial_password = None
    with transaction.atomic():
        patient = Patient(hospital=hospital)
        _apply_fields(patient, data)
        if data.get('portalEmail'):
            patient.account, initial_password = _create_portal_account(
                hospital, data['portalEmail'], data.get('portalPassword'),
            )
        patient.save()
        # Image and row succeed or fail together.
        patient.qr_code_url = qr.write_qr_image(patient.qr_token)
        patient.save(update_fields=['qr_code_url'])

    logger.info('patient %s created in hospital %s', patient.pk, hospital.pk)
    return patient, initial_password


def update_patient(patient_id, principal: Principal, patch: dict[str, Any]) -> Patient:
    """Apply ``patch`` to a visible record.  ``qrToken`` and ``hospital`` are ignored."""
    _require_staff(principal)
    patient = get_patient(patient_id, principal)
    _apply_fields(patient, patch)
    patient.save()
    return patient


def delete_patient(patient_id, principal: Principal) -> None:
    _require_staff(principal)
    patient = get_patient(patient_id, principal)
    token = patient.qr_token
    with transaction.atomic():
        account = patient.account
        patient.delete()
        if account is not None:
            account.delete()
    qr.remove_qr_image(token)
    logger.info('patient %s deleted', patient_id)


def risk_stats(principal: Principal) -> dict:
    _require_staff(principal)
    counts = dict(scoped_patients(principal).order_by().values_list('risk_level').annotate(n=Count('id')))
    return {
        'total': sum(counts.values()),
        'high': counts.get(Patient.RISK_HIGH, 0),
        'medium': counts.get(Patient.RISK_MEDIUM, 0),
        'low': counts.get(Patient.RISK_LOW, 0),
    }
