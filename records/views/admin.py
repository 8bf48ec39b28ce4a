"""Owner dashboard endpoints."""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsSuperAdmin
from records.serializers.hospital import hospital_payload
from records.serializers.patient import patient_payload
from records.services import hospitals as tenants
from records.services import patients as store


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def owner_stats(request):
    return Response({'ok': True, 'stats': tenants.owner_stats()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def hospital_patients(request, hospital_id: int):
    hospital = tenants.get_hospital(hospital_id)
    rows = [patient_payload(p) for p in store.list_patients(request.user, hospital_id=hospital.id)]
    return Response({'ok': True, 'hospital': hospital_payload(hospital), 'count': len(rows), 'patients': rows})
