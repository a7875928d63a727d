"""Typed envelope returned by service APIs."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from packages.warden_shared.errors import ErrorDetail

from .meta import EnvelopeMeta

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Result of one service call: metadata, optional payload, errors.

    A failed envelope may still carry a payload, for example the decision
    that was made before the journal write failed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    metadata: EnvelopeMeta
    payload: T | None = None
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def has_payload(self) -> bool:
        return self.payload is not None

    @property
    def exit_code(self) -> int:
        """Return the process exit code for this result; 0 when ok."""
        return max((error.category.exit_code for error in self.errors), default=0)
