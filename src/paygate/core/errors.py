"""Error taxonomy shared by the core services and the HTTP layer.

Every error carries the HTTP status it maps to and a public ``detail`` that
is safe to return to the caller. Anything more specific stays in the logs.
"""


class PaygateError(Exception):
    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(PaygateError):
    """A request field is missing or does not match its format."""

    status_code = 400

    def __init__(self, field: str, message: str, errors=None):
        self.field = field
        self.errors = errors or []
        super().__init__(message)


class InvalidDecision(PaygateError):
    status_code = 400
    detail = 'Decision must be either "Approved" or "Rejected"'


class AuthInvalid(PaygateError):
    """Missing, malformed, expired or forged credentials.

    The detail never says which, to avoid handing out an oracle.
    """

    status_code = 401
    detail = "Authentication failed"

    def __init__(self, reason: str = "unspecified"):
        self.reason = reason
        super().__init__()


class PermissionDenied(PaygateError):
    status_code = 403
    detail = "Operation not permitted"


class NotFound(PaygateError):
    status_code = 404
    detail = "Payment application not found"


class AlreadyReviewed(PaygateError):
    status_code = 409

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Application has already been {str(status).lower()}")


class UsernameTaken(PaygateError):
    status_code = 409
    detail = "Username already exists"


class InvalidHashFormat(PaygateError):
    """A stored password hash could not be parsed."""


class DecryptionFailed(PaygateError):
    """An envelope could not be decrypted; reported per field on reads."""


class InternalError(PaygateError):
    """Persistence or cipher infrastructure failure."""
