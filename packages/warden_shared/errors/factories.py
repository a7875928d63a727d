"""One factory per error category, each with the category's default code."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def validation_error(
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Malformed input: bad ids, bad metadata, impossible updates."""
    return ErrorDetail.build(ErrorCategory.VALIDATION, message, code=code, metadata=metadata)


def not_found_error(
    message: str,
    *,
    code: str = codes.NOT_FOUND,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.NOT_FOUND, message, code=code, metadata=metadata)


def policy_error(
    message: str,
    *,
    code: str = codes.POLICY_VIOLATION,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Authorization refusals such as the owner gate."""
    return ErrorDetail.build(ErrorCategory.POLICY, message, code=code, metadata=metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = False,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Journal or config file I/O failures."""
    return ErrorDetail.build(
        ErrorCategory.DEPENDENCY,
        message,
        code=code,
        retryable=retryable,
        metadata=metadata,
    )


def internal_error(
    message: str,
    *,
    code: str = codes.INTERNAL_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.INTERNAL, message, code=code, metadata=metadata)
