"""
Patient record endpoints.

Views only parse and render; scoping and the write rules live in
:mod:`records.services.patients`, which receives ``request.user`` (the
principal) explicitly.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsStaff
from records.serializers.patient import (
    PatientCreateSerializer,
    PatientFieldsSerializer,
    PatientListQuerySerializer,
    patient_payload,
)
from records.services import patients as store
from records.services.audit import log_action


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'POST':
        return _create(request)
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = [patient_payload(p) for p in store.list_patients(
        request.user,
        hospital_id=q.validated_data.get('hospitalId'),
        risk_level=q.validated_data.get('riskLevel'),
    )]
    return Response({'ok': True, 'count': len(rows), 'patients': rows})


def _create(request):
    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient, initial_password = store.create_patient(request.user, s.validated_data)
    log_action(user_id=request.user.user_id, action='patient_create', object_type='patient',
               object_id=patient.id, detail={'hospital': patient.hospital_id})
    body = {'ok': True, 'patient': patient_payload(patient)}
    if initial_password:
        # Shown once; only the hash is stored.
        body['initialPassword'] = initial_password
    return Response(body, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id: int):
    principal = request.user
    if request.method == 'GET':
        return Response({'ok': True, 'patient': patient_payload(store.get_patient(patient_id, principal))})

    if request.method == 'DELETE':
        store.delete_patient(patient_id, principal)
        log_action(user_id=principal.user_id, action='patient_delete', object_type='patient', object_id=patient_id)
        return Response({'ok': True, 'message': 'Patient deleted successfully'})

    # PUT and PATCH both merge: fields left out keep their value.
    s = PatientFieldsSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient = store.update_patient(patient_id, principal, s.validated_data)
    log_action(user_id=principal.user_id, action='patient_update', object_type='patient', object_id=patient.id,
               detail={'fields': sorted(s.validated_data)})
    return Response({'ok': True, 'patient': patient_payload(patient)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def patient_stats(request):
    return Response({'ok': True, 'stats': store.risk_stats(request.user)})
