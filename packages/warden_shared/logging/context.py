"""Structured logging context carried in a ``ContextVar``.

Correlation fields (trace id, account, actor) bound while handling one command
appear on every log line emitted inside that command. The stored mapping is
never mutated in place; each bind installs a new one.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "warden_log_context", default=_EMPTY
)


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind fields into the current context; ``None`` values are skipped."""
    additions = _stringify(values)
    if additions:
        _LOG_CONTEXT.set(MappingProxyType({**_LOG_CONTEXT.get(), **additions}))


def clear_context(*keys: str) -> None:
    """Drop the named fields, or every field when none are named."""
    if not keys:
        _LOG_CONTEXT.set(_EMPTY)
        return
    remaining = {k: v for k, v in _LOG_CONTEXT.get().items() if k not in keys}
    _LOG_CONTEXT.set(MappingProxyType(remaining))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a block, then restore."""
    token = _LOG_CONTEXT.set(
        MappingProxyType({**_LOG_CONTEXT.get(), **_stringify(values)})
    )
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def _stringify(values: Mapping[str, object]) -> dict[str, str]:
    return {str(key): str(value) for key, value in values.items() if value is not None}
