"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each class carries the HTTP status an outer web layer should map it to.
"""

from __future__ import annotations

from spiceworld.domain.model.validation import ValidationIssue


class DomainException(Exception):
    """Base class for all domain errors."""

    http_status = "Bad Request"


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    http_status = "Not Found"


class ConflictError(DomainException):
    """A uniqueness constraint would be broken (e.g. duplicate name)."""

    http_status = "Conflict"


class ProductValidationError(ValidationError):
    """Aggregate of every rule violation found in one validation pass."""

    def __init__(
        self,
        code: str,
        message: str,
        field: str | None = None,
        sub_errors: list[ValidationIssue] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.field = field
        self.sub_errors = list(sub_errors or [])

    @staticmethod
    def raise_for(
        code: str, message: str, field: str | None, issues: list[ValidationIssue]
    ) -> None:
        """Raise one aggregate error carrying every issue, if there are any."""
        if issues:
            raise ProductValidationError(
                code=code,
                message=f"{message} ({len(issues)} error(s))",
                field=field,
                sub_errors=issues,
            )

    @property
    def codes(self) -> list[str]:
        return [issue.code for issue in self.sub_errors]

    def to_payload(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "subErrors": [issue.to_payload() for issue in self.sub_errors],
        }


class InsufficientStockError(DomainException):
    """A conditional stock decrement matched no row."""

    http_status = "Conflict"

    def __init__(self, variant_id: str) -> None:
        super().__init__(f"Insufficient stock for variant {variant_id}")
        self.variant_id = variant_id


class VersionConflictError(DomainException):
    """Optimistic concurrency check failed on a product update."""

    http_status = "Conflict"
    code = "VERSION_CONFLICT"

    def __init__(self, expected: int, current: int | None) -> None:
        super().__init__(
            f"Product modified concurrently. Expected version {expected}, "
            f"current is {current}"
        )
        self.expected = expected
        self.current = current


class PaymentSessionMismatchError(DomainException):
    """A payment webhook referenced a session that belongs to another order."""


class UnauthorizedError(DomainException):
    """The caller may not access this resource."""

    http_status = "Forbidden"


class TransactionTimeoutError(DomainException):
    """A unit of work gave up waiting for a database lock and was rolled back."""

    http_status = "Gateway Timeout"


class CheckoutTimeoutError(DomainException):
    """The checkout transaction exceeded its time budget and was rolled back."""

    http_status = "Gateway Timeout"


class StorageError(DomainException):
    """The file storage collaborator failed."""

    http_status = "Bad Gateway"


class PaymentGatewayError(DomainException):
    """The payment-session collaborator failed."""

    http_status = "Bad Gateway"
