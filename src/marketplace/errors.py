"""Error taxonomy for marketplace operations.

Every error raised across the quote, cart and checkout boundary carries a
stable ``code`` and the HTTP status the API layer answers with. Errors are
never retried inside the core; ``retryable`` is advice for the caller.

Aggregate invariants keep using Protean's ``ValidationError``; these classes
cover failures detected by the application services around them.
"""

from typing import Any


class MarketplaceError(Exception):
    code = "INTERNAL_ERROR"
    http_status = 500
    retryable = True

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class InvalidRequest(MarketplaceError):
    """Bad buyer, vendor, quantity or request shape. No writes occurred."""

    code = "VALIDATION_ERROR"
    http_status = 400
    retryable = False


class Forbidden(MarketplaceError):
    code = "FORBIDDEN"
    http_status = 403
    retryable = False


class NotFound(MarketplaceError):
    code = "NOT_FOUND"
    http_status = 404
    retryable = False


class Conflict(MarketplaceError):
    code = "CONFLICT"
    http_status = 409
    retryable = False


class StateConflict(MarketplaceError):
    """A state rule was violated; ``violations`` lists each offending line."""

    code = "STATE_CONFLICT"
    http_status = 422
    retryable = False

    def __init__(self, message: str, violations: list[dict] | None = None) -> None:
        self.violations = list(violations or [])
        super().__init__(message, details={"violations": self.violations})


class DependencyFailure(MarketplaceError):
    """An underlying store or collaborator failed."""

    code = "DEPENDENCY_ERROR"
    http_status = 503
    retryable = True

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def wrap(cls, exc: BaseException, operation: str) -> "DependencyFailure":
        return cls(f"{operation}: {exc}", cause=exc)
