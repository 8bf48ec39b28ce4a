"""
ASGI config for the SmartQR project.

HTTP only; the API has no WebSocket endpoints.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "smartqr.settings")

application = get_asgi_application()
