"""
URL configuration for the barangay registry service.
"""

from django.contrib import admin
from django.urls import path, include
from registry.api.health import health_check, readiness_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include("registry.api.urls")),
    path("api/health/", health_check, name="health_check"),
    path("api/ready/", readiness_check, name="readiness_check"),
]
