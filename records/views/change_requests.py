"""Change requests: patients propose edits, staff review them."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import ChangeRequest
from records.permissions import IsPatient, IsStaff
from records.serializers.patient import ChangeRequestSerializer, change_request_payload
from records.services import change_requests as requests_store
from records.services.audit import log_action


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatient])
def submit_change_request(request, patient_id: int):
    s = ChangeRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = requests_store.submit(request.user, patient_id, s.validated_data['changes'])
    return Response({'ok': True, 'request': change_request_payload(req)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def list_change_requests(request):
    wanted = (request.query_params.get('status') or ChangeRequest.STATUS_PENDING).strip().upper()
    if wanted == 'ALL':
        wanted = None
    elif wanted not in dict(ChangeRequest.STATUS_CHOICES):
        wanted = ChangeRequest.STATUS_PENDING
    rows = [change_request_payload(r) for r in requests_store.list_requests(request.user, wanted)]
    return Response({'ok': True, 'count': len(rows), 'requests': rows})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaff])
def pending_change_request_count(request):
    return Response({'ok': True, 'count': requests_store.pending_count(request.user)})


def _review(request, request_id, approve):
    req = requests_store.review(request.user, request_id, approve=approve)
    log_action(user_id=request.user.user_id, action='change_request_review', object_type='change_request',
               object_id=req.id, detail={'status': req.status, 'patient': req.patient_id})
    return Response({'ok': True, 'request': change_request_payload(req)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaff])
def approve_change_request(request, request_id: int):
    return _review(request, request_id, True)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaff])
def reject_change_request(request, request_id: int):
    return _review(request, request_id, False)
