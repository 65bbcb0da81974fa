import logging
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from registry.exceptions import PortalError

logger = logging.getLogger(__name__)

DRF_ERROR_KINDS = [
    (exceptions.ValidationError, "ValidationError"),
    (exceptions.ParseError, "ValidationError"),
    (exceptions.NotAuthenticated, "AuthenticationError"),
    (exceptions.AuthenticationFailed, "AuthenticationError"),
    (exceptions.PermissionDenied, "AuthorizationError"),
    (exceptions.NotFound, "NotFoundError"),
]


def portal_exception_handler(exc, context):
    """
    Render every API error as ``{"error": <kind>, "message": <text>}``.

    Domain errors carry their own kind and status; DRF errors are mapped to the
    closest kind, with field errors kept under ``details``.
    """
    if isinstance(exc, PortalError):
        if exc.status_code >= 500:
            logger.error(f"{exc.kind}: {exc.message}")
        return Response({"error": exc.kind, "message": exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    kind = next((k for cls, k in DRF_ERROR_KINDS if isinstance(exc, cls)), "Error")
    if isinstance(exc, exceptions.ValidationError):
        body = {"error": kind, "message": "Invalid input", "details": response.data}
    else:
        body = {"error": kind, "message": str(getattr(exc, "detail", exc))}

    # Missing credentials on a protected endpoint are reported as 401
    if kind == "AuthenticationError":
        response.status_code = status.HTTP_401_UNAUTHORIZED
    response.data = body
    return response
