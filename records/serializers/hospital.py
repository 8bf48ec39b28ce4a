import html

import bleach
from rest_framework import serializers

from records.models import Hospital, PHONE_RE


def _clean(v):
    # Plain text out: tags removed, entities decoded back.
    return html.unescape(bleach.clean((v or '').strip(), tags=set(), strip=True)).strip()


class HospitalRegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.RegexField(PHONE_RE, max_length=32, required=False, allow_blank=True,
                                   error_messages={'invalid': 'Please provide a valid phone number'})
    address = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    primaryContactName = serializers.CharField(required=False, allow_blank=True, max_length=255)
    adminName = serializers.CharField(max_length=255)
    adminEmail = serializers.EmailField()
    adminPassword = serializers.CharField(min_length=6, max_length=128, trim_whitespace=False)

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Hospital name is required')
        return v

    def validate_adminName(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Admin name is required')
        return v

    def validate_address(self, v):
        return _clean(v)

    def validate_primaryContactName(self, v):
        return _clean(v)


class HospitalListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True)

    def validate_status(self, v):
        v = (v or '').strip().upper()
        if v and v not in dict(Hospital.STATUS_CHOICES):
            raise serializers.ValidationError(f'Unknown status {v}')
        return v or None


def hospital_payload(hospital: Hospital) -> dict:
    admin = hospital.admin_user
    data = {
        'id': hospital.id,
        'name': hospital.name,
        'email': hospital.email,
        'phone': hospital.phone,
        'address': hospital.address,
        'primaryContactName': hospital.primary_contact_name,
        'status': hospital.status,
        'adminUser': {
            'id': admin.id,
            'name': admin.name,
            'email': admin.email,
            'isActive': admin.is_active,
        } if admin else None,
        'createdAt': hospital.created_at.isoformat() if hospital.created_at else None,
        'updatedAt': hospital.updated_at.isoformat() if hospital.updated_at else None,
    }
    if hasattr(hospital, 'patient_count'):
        data['patientCount'] = hospital.patient_count
    return data
