"""
Public emergency disclosure.

Resolves a QR token to the emergency view of a patient.  There is no
authentication and no tenant check on this path: whoever holds the
token (printed on the patient's QR card) can read the view.  What the
view contains is therefore controlled here by an explicit allow-list;
a field that is not listed in ``EMERGENCY_FIELDS`` is never published.
"""
from __future__ import annotations

from records.exceptions import TokenNotFound
from records.models import Patient

# Public key -> model attribute.
EMERGENCY_FIELDS = (
    ('fullName', 'full_name'),
    ('age', 'age'),
    ('gender', 'gender'),
    ('photoUrl', 'photo_url'),
    ('bloodGroup', 'blood_group'),
    ('allergies', 'allergies'),
    ('medicalConditions', 'medical_conditions'),
    ('medications', 'medications'),
    ('riskLevel', 'risk_level'),
)


def emergency_view(patient: Patient) -> dict:
    view = {key: getattr(patient, attr) for key, attr in EMERGENCY_FIELDS}
    view['emergencyContact'] = {
        'name': patient.emergency_contact_name,
        'phone': patient.emergency_contact_phone,
    }
    return view


def resolve(token: str) -> dict:
    """Return the emergency view for ``token`` or raise ``TokenNotFound``."""
    columns = [attr for _, attr in EMERGENCY_FIELDS] + ['emergency_contact_name', 'emergency_contact_phone']
    patient = Patient.objects.only(*columns).filter(qr_token=token).first() if token else None
    if patient is None:
        raise TokenNotFound()
    return emergency_view(patient)
