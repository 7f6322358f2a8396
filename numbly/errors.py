"""
Application error taxonomy

Every error carries the HTTP status and the machine-readable code the API
returns as {"error": ..., "code": ...}.
"""


class NumblyError(Exception):
    """Base class for errors surfaced through the API"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ValidationError(NumblyError):
    """Malformed or missing input"""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthRequiredError(NumblyError):
    """Missing, unknown or expired session"""
    status_code = 401
    code = "AUTH_REQUIRED"


class NotFoundError(NumblyError):
    """Referenced user or question does not exist"""
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(NumblyError):
    status_code = 409
    code = "CONFLICT"


class RateLimitedError(NumblyError):
    """Throttled, either by us or by the generation provider"""
    status_code = 429
    code = "RATE_LIMITED"


class ServiceError(NumblyError):
    """Generation provider or persistence failure"""
    status_code = 500
    code = "GENERATION_FAILED"


class AuthInvalidError(ServiceError):
    """Generation provider rejected our credentials"""
    status_code = 500
    code = "PROVIDER_CONFIG_ERROR"
