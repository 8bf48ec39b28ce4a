from django.conf import settings
from django.views.static import serve
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from records.services import disclosure
from records.throttles import PublicLookupRateThrottle


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([PublicLookupRateThrottle])
def emergency_record(request, token: str):
    """What a first responder sees after scanning a patient's QR card."""
    return Response({'ok': True, 'patient': disclosure.resolve(token)})


def qr_image(request, filename):
    # Images only carry the emergency link, so they are public.
    return serve(request, filename, document_root=settings.QR_UPLOAD_DIR)
