"""
Error taxonomy for the registry service.

Every error carries a stable ``kind`` and the HTTP status the API layer
renders it with (see ``registry.api.exceptions``).
"""


class PortalError(Exception):
    """Base class for business rule violations surfaced to API callers."""

    kind = "PortalError"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(PortalError):
    """Missing, malformed or expired credential."""

    kind = "AuthenticationError"
    status_code = 401
    default_message = "Invalid credentials"


class AuthorizationError(PortalError):
    """The acting account's role is not permitted to perform the action."""

    kind = "AuthorizationError"
    status_code = 403
    default_message = "forbidden role combination"


class NotFoundError(PortalError):
    kind = "NotFoundError"
    status_code = 404
    default_message = "Resource not found"


class InvalidStateError(PortalError):
    """Illegal state transition, e.g. deciding a request twice."""

    kind = "InvalidStateError"
    status_code = 409
    default_message = "request already decided"


class ValidationError(PortalError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid input"


class ProvisioningError(PortalError):
    """Approval could not allocate or persist the applicant's records."""

    kind = "ProvisioningError"
    status_code = 500
    default_message = "Could not provision account"
