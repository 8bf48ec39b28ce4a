"""
Hospital (tenant) endpoints.

Registration is public and leaves the hospital PENDING; listing and the
approve/reject transitions are reserved for the system owner.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsSuperAdmin
from records.serializers.hospital import HospitalListQuerySerializer, HospitalRegisterSerializer, hospital_payload
from records.services import hospitals as tenants
from records.services.audit import log_action


@api_view(['POST'])
@permission_classes([AllowAny])
def register_hospital(request):
    s = HospitalRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    hospital = tenants.register_hospital(
        name=vd['name'],
        email=vd['email'],
        phone=vd.get('phone', ''),
        address=vd.get('address', ''),
        primary_contact_name=vd.get('primaryContactName', ''),
        admin_name=vd['adminName'],
        admin_email=vd['adminEmail'],
        admin_password=vd['adminPassword'],
    )
    log_action(user_id=None, action='hospital_register', object_type='hospital', object_id=hospital.id,
               detail={'email': hospital.email})
    return Response({
        'ok': True,
        'message': 'Hospital registered successfully. Please wait for approval.',
        'hospital': hospital_payload(tenants.get_hospital(hospital.id)),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def list_hospitals(request):
    q = HospitalListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = [hospital_payload(h) for h in tenants.list_hospitals(q.validated_data.get('status'))]
    return Response({'ok': True, 'count': len(rows), 'hospitals': rows})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def hospital_detail(request, hospital_id: int):
    return Response({'ok': True, 'hospital': hospital_payload(tenants.get_hospital(hospital_id))})


def _transition(request, hospital_id, action):
    hospital = action(hospital_id)
    log_action(user_id=request.user.user_id, action=f'hospital_{hospital.status.lower()}',
               object_type='hospital', object_id=hospital.id)
    return Response({'ok': True, 'hospital': hospital_payload(hospital)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def approve_hospital(request, hospital_id: int):
    return _transition(request, hospital_id, tenants.approve)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def reject_hospital(request, hospital_id: int):
    return _transition(request, hospital_id, tenants.reject)
