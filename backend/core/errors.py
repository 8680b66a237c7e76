"""
core/errors.py — Typed error hierarchy shared by repositories and routes.

Repositories raise these; the app factory maps them to JSON responses so
route handlers never build error bodies by hand.
"""

from typing import Optional


class ShopError(Exception):
    """Base class. ``code`` is the machine-readable tag sent to clients."""

    status_code = 500
    code = "ERROR"

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.details:
            body["errors"] = self.details
        return body


class AuthenticationError(ShopError):
    status_code = 401
    code = "UNAUTHORIZED"


class PermissionDenied(ShopError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ShopError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ShopError):
    """A unique value (slug, SKU) is already taken."""

    status_code = 409
    code = "CONFLICT"


class ValidationError(ShopError):
    """Client-side pre-validation failed. ``details`` maps field -> message."""

    status_code = 422
    code = "VALIDATION_ERROR"


class InvalidEnumValue(ValidationError):
    code = "INVALID_ENUM_VALUE"

    def __init__(self, field: str, value, allowed: list[str]):
        super().__init__(
            f"{value!r} is not a valid {field}",
            details={field: f"must be one of {', '.join(allowed)}"},
        )
        self.field = field
        self.value = value
        self.allowed = allowed


class StoreError(ShopError):
    """The database (or a remote function) rejected the operation."""

    status_code = 500
    code = "STORE_ERROR"


class RemoteFunctionError(StoreError):
    status_code = 502
    code = "REMOTE_FUNCTION_ERROR"


class PartialFailure(ShopError):
    """Some steps of a composite operation succeeded and were kept."""

    status_code = 207
    code = "PARTIAL_FAILURE"
