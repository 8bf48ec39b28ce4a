import html

import bleach
from rest_framework import serializers

from records.models import Patient, PHONE_RE


def _clean(v):
    # Plain text out: tags removed, entities decoded back.
    return html.unescape(bleach.clean((v or '').strip(), tags=set(), strip=True)).strip()


class StringListField(serializers.ListField):
    child = serializers.CharField(max_length=255)

    def to_internal_value(self, data):
        items = super().to_internal_value(data)
        return [s for s in (_clean(x) for x in items) if s]


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.RegexField(PHONE_RE, max_length=32,
                                   error_messages={'invalid': 'Please provide a valid phone number'})

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Emergency contact name is required')
        return v


class PatientFieldsSerializer(serializers.Serializer):
    """Editable patient fields, keyed as the front-end sends them.

    ``qrToken`` and ``hospital`` are deliberately absent: they are set once
    at creation and any value sent by a client is dropped here.
    """
    fullName = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=[c for c, _ in Patient.GENDER_CHOICES])
    photoUrl = serializers.CharField(required=False, allow_blank=True)
    bloodGroup = serializers.ChoiceField(choices=[c for c, _ in Patient.BLOOD_GROUP_CHOICES])
    allergies = StringListField(required=False)
    medicalConditions = StringListField(required=False)
    medications = StringListField(required=False)
    emergencyContact = EmergencyContactSerializer()
    riskLevel = serializers.ChoiceField(choices=[c for c, _ in Patient.RISK_CHOICES], required=False)
    aiSummary = serializers.CharField(required=False, allow_blank=True)

    def validate_fullName(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Full name is required')
        return v


class PatientCreateSerializer(PatientFieldsSerializer):
    riskLevel = serializers.ChoiceField(choices=[c for c, _ in Patient.RISK_CHOICES], default=Patient.RISK_LOW)
    # Owner only; hospital admins always create in their own hospital.
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    portalEmail = serializers.EmailField(required=False, allow_blank=True)
    portalPassword = serializers.CharField(required=False, allow_blank=True, write_only=True, trim_whitespace=False)


class ChangeRequestSerializer(serializers.Serializer):
    """What a patient may ask to change about its own record."""
    REQUESTABLE = ('fullName', 'age', 'gender', 'photoUrl', 'allergies', 'medicalConditions',
                   'medications', 'emergencyContact')

    changes = serializers.DictField()

    def validate_changes(self, v):
        unknown = sorted(set(v) - set(self.REQUESTABLE))
        if unknown:
            raise serializers.ValidationError(f"Cannot request changes to: {', '.join(unknown)}")
        fields = PatientFieldsSerializer(data=v, partial=True)
        fields.is_valid(raise_exception=True)
        if not fields.validated_data:
            raise serializers.ValidationError('No changes requested.')
        return dict(fields.validated_data)


class PatientListQuerySerializer(serializers.Serializer):
    hospitalId = serializers.IntegerField(required=False, min_value=1)
    riskLevel = serializers.ChoiceField(choices=[c for c, _ in Patient.RISK_CHOICES], required=False)


def patient_payload(patient: Patient) -> dict:
    """Staff view of a record.  The public view lives in services.disclosure."""
    return {
        'id': patient.id,
        'fullName': patient.full_name,
        'age': patient.age,
        'gender': patient.gender,
        'photoUrl': patient.photo_url,
        'bloodGroup': patient.blood_group,
        'allergies': patient.allergies,
        'medicalConditions': patient.medical_conditions,
        'medications': patient.medications,
        'emergencyContact': {
            'name': patient.emergency_contact_name,
            'phone': patient.emergency_contact_phone,
        },
        'riskLevel': patient.risk_level,
        'aiSummary': patient.ai_summary,
        'hospital': patient.hospital_id,
        'hospitalName': patient.hospital.name if patient.hospital_id else None,
        'hasPortalAccount': patient.account_id is not None,
        'qrToken': patient.qr_token,
        'qrCodeUrl': patient.qr_code_url,
        'createdAt': patient.created_at.isoformat() if patient.created_at else None,
        'updatedAt': patient.updated_at.isoformat() if patient.updated_at else None,
    }


def change_request_payload(req) -> dict:
    patient = req.patient
    return {
        'id': req.id,
        'status': req.status,
        'requestedChanges': req.requested_changes,
        'patient': {
            'id': patient.id,
            'fullName': patient.full_name,
            'hospital': patient.hospital_id,
        } if patient else None,
        'requestedBy': req.requested_by_id,
        'reviewedBy': req.reviewed_by_id,
        'reviewedAt': req.reviewed_at.isoformat() if req.reviewed_at else None,
        'createdAt': req.created_at.isoformat() if req.created_at else None,
    }
