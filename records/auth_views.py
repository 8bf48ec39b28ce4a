"""
Authentication views.

Staff (owner and hospital administrators) sign in through ``login_view``;
patients with a portal account use ``patient_login_view``.  Both return a
bearer token minted by :mod:`records.services.tokens`.  The views are kept
apart from ``records.authentication`` so that DRF can import the
authentication class without pulling in serializers and services.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from records.exceptions import InvalidCredentials, NotFound
from records.models import Patient
from records.principals import PatientPrincipal
from records.serializers.auth import LoginSerializer, user_payload
from records.services import tokens
from records.services.audit import log_action
from records.throttles import LoginRateThrottle

User = get_user_model()


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


def _sign_in(request, *, patient: bool):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    try:
        session = tokens.authenticate(email, s.validated_data['password'])
        # Each door only opens for its own kind of account.
        if (session.user.role == User.ROLE_PATIENT) != patient:
            raise InvalidCredentials()
    except InvalidCredentials:
        log_action(user_id=None, action='login', object_type='user',
                   detail={'result': 'fail', 'email': email, 'ip': _client_ip(request)})
        raise
    log_action(user_id=session.user.id, action='login', object_type='user', object_id=session.user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})
    return session


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """Staff login with email and password."""
    session = _sign_in(request, patient=False)
    return Response({'ok': True, 'token': session.token, 'user': user_payload(session.user)})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def patient_login_view(request):
    session = _sign_in(request, patient=True)
    record = Patient.objects.filter(account_id=session.user.id).only('id').first()
    payload = user_payload(session.user)
    payload['patientId'] = record.id if record else None
    return Response({
        'ok': True,
        'token': session.token,
        'patientId': payload['patientId'],
        'user': payload,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    principal = request.user
    user = User.objects.select_related('hospital').filter(pk=principal.user_id, is_active=True).first()
    if user is None:
        # The token outlived its account.
        raise NotFound('User not found')
    payload = user_payload(user)
    if isinstance(principal, PatientPrincipal):
        record = Patient.objects.filter(account_id=user.id).only('id').first()
        payload['patientId'] = record.id if record else None
    return Response({'ok': True, 'user': payload})
