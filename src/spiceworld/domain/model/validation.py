"""Validation results.

Rule checks return ``ValidationIssue`` values instead of raising, so a
caller can collect every violation of a request before reporting it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] = dataclasses.field(default_factory=dict)

    def with_context(self, context: str) -> ValidationIssue:
        """Prefix the message with the operation it came from, e.g. ``create[2]``."""
        return replace(self, message=f"{context}: {self.message}")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.details:
            payload["details"] = dict(self.details)
        return payload
