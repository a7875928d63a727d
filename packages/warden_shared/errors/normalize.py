"""Map Python exceptions onto shared ``ErrorDetail`` values."""

from __future__ import annotations

from typing import Callable

from pydantic import ValidationError

from . import codes
from .factories import dependency_error, internal_error, policy_error, validation_error
from .types import ErrorDetail

_Factory = Callable[..., ErrorDetail]

# First match wins; order subclasses before their bases.
_RULES: tuple[tuple[type[BaseException], _Factory, str, str], ...] = (
    (ValidationError, validation_error, codes.CONFIG_INVALID, "invalid configuration"),
    (ValueError, validation_error, codes.INVALID_ARGUMENT, "invalid argument"),
    (PermissionError, policy_error, codes.PERMISSION_DENIED, "permission denied"),
    (OSError, dependency_error, codes.DEPENDENCY_FAILURE, "i/o failure"),
)


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Return the shared error for ``exc``.

    Services map their own exception types first and fall back to this.
    """
    metadata = {"exception_type": type(exc).__name__}
    for exc_type, factory, code, fallback in _RULES:
        if isinstance(exc, exc_type):
            return factory(_message(exc) or fallback, code=code, metadata=metadata)
    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )


def _message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        text = str(first.get("msg", ""))
        return f"{location}: {text}" if location else text
    return str(exc)
