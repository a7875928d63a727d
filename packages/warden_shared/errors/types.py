"""Error taxonomy carried by service envelopes and mapped to CLI exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

DOMAIN_EXIT_CODE = 3
IO_EXIT_CODE = 4


class ErrorCategory(str, Enum):
    """Coarse error class; decides the process exit code at the CLI edge."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    POLICY = "policy"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"

    @property
    def exit_code(self) -> int:
        """Return 3 for caller-side problems and 4 for storage or bugs."""
        if self in (ErrorCategory.DEPENDENCY, ErrorCategory.INTERNAL):
            return IO_EXIT_CODE
        return DOMAIN_EXIT_CODE


@dataclass(frozen=True)
class ErrorDetail:
    """One structured error in an envelope response."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        category: ErrorCategory,
        message: str,
        *,
        code: str,
        retryable: bool = False,
        metadata: Mapping[str, str] | None = None,
    ) -> "ErrorDetail":
        """Build an error, copying ``metadata`` so callers cannot mutate it."""
        return cls(
            code=code,
            message=message,
            category=category,
            retryable=retryable,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form printed by the CLI."""
        data: dict[str, Any] = {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data
