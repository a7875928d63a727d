"""Envelope constructors used by service implementations."""

from __future__ import annotations

from typing import Iterable, TypeVar

from packages.warden_shared.errors import ErrorDetail

from .envelope import Envelope
from .meta import EnvelopeMeta

T = TypeVar("T")


def success(*, meta: EnvelopeMeta, payload: T) -> Envelope[T]:
    return Envelope[T](metadata=meta, payload=payload)


def failure(
    *,
    meta: EnvelopeMeta,
    errors: Iterable[ErrorDetail],
    payload: T | None = None,
) -> Envelope[T]:
    """Build a failed envelope; ``errors`` must not be empty."""
    collected = list(errors)
    if not collected:
        raise ValueError("failure envelope requires at least one error")
    return Envelope[T](metadata=meta, payload=payload, errors=collected)

