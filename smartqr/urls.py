"""
URL configuration for the SmartQR project.

Routes the Django admin, the ``/api`` routes of the records app, the
generated QR images under ``/uploads/`` and the Prometheus exporter.
OpenAPI documentation is exposed at ``/swagger/`` and ``/redoc/``.
"""
from django.contrib import admin
from django.urls import include, path, re_path

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from records.views import public

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="SmartQR Emergency Health API",
    default_version='v1',
    description="Multi-hospital patient records with QR-based emergency disclosure.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Django admin site (useful for development)
    path('admin/', admin.site.urls),
    path('api/', include('records.routers')),
    re_path(r"^uploads/(?P<filename>qr-[A-Za-z0-9_\-]+\.png)$", public.qr_image),
    path('', include('django_prometheus.urls')),
    # Swagger and ReDoc
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
