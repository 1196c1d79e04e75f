"""
Domain Errors — stable error kinds surfaced to API callers.

Every error carries a ``kind`` (machine-readable, stable across releases),
a human message, and the HTTP status it maps to. The FastAPI handler in
``motopay.main`` renders them as ``{"success": false, "error_code", "detail"}``.
"""


class MotoPayError(Exception):
    kind = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.kind

    def to_dict(self) -> dict:
        return {"success": False, "error_code": self.kind, "detail": self.message}


class NotFound(MotoPayError):
    kind = "NOT_FOUND"
    status_code = 404


class InvalidRequest(MotoPayError):
    kind = "INVALID_REQUEST"
    status_code = 400


class Unauthorized(MotoPayError):
    kind = "UNAUTHORIZED"
    status_code = 401


class InvalidState(MotoPayError):
    kind = "INVALID_STATE"
    status_code = 409


class Forbidden(InvalidState):
    """Locked catalog item; same kind family as InvalidState."""
    kind = "FORBIDDEN"
    status_code = 403


class Conflict(MotoPayError):
    kind = "CONFLICT"
    status_code = 409


class GatewayUnavailable(MotoPayError):
    """Network/timeout talking to the gateway. Transaction stays PENDING; retryable."""
    kind = "GATEWAY_UNAVAILABLE"
    status_code = 503


class PaymentVerificationFailed(MotoPayError):
    kind = "PAYMENT_VERIFICATION_FAILED"
    status_code = 400


class ReferenceCollision(MotoPayError):
    kind = "REFERENCE_COLLISION"
    status_code = 500
