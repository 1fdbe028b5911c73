"""Failure kinds shared by every service.

Each error carries a ``kind`` that the API layer maps onto an HTTP status.
"""


class MarketplaceError(Exception):
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"detail": self.message, "kind": self.kind}


class InvalidArgument(MarketplaceError):
    """Malformed or missing field, or a reference to something that must exist."""

    kind = "InvalidArgument"
    status_code = 422


class NotFound(MarketplaceError):
    kind = "NotFound"
    status_code = 404


class Conflict(MarketplaceError):
    """Uniqueness violation, or a delete blocked by referencing rows."""

    kind = "Conflict"
    status_code = 409


class FailedPrecondition(MarketplaceError):
    """The request is well formed but the current state does not allow it."""

    kind = "FailedPrecondition"
    status_code = 400


class InternalError(MarketplaceError):
    kind = "Internal"
    status_code = 500
