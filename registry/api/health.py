"""Health check endpoints for Kubernetes probes."""

from django.conf import settings
from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import logging

logger = logging.getLogger(__name__)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    Liveness probe: verifies the database is reachable.

    Returns:
        200 OK: Service is healthy
        503 Service Unavailable: Database unreachable
    """
    health_status = {"status": "healthy", "checks": {}}

    try:
        connection.ensure_connection()
        health_status["checks"]["database"] = "ok"
    except DatabaseError as e:
        logger.error(f"Database health check failed: {str(e)}")
        health_status["checks"]["database"] = "error"
        health_status["status"] = "unhealthy"

    # The broker is not probed; notifications are best-effort
    health_status["checks"]["notifications"] = settings.NOTIFICATION_BACKEND.rsplit(".", 1)[-1]

    if health_status["status"] == "healthy":
        return Response(health_status, status=status.HTTP_200_OK)
    return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def readiness_check(request):
    """Readiness probe: the application is running."""
    return Response({"status": "ready"}, status=status.HTTP_200_OK)
