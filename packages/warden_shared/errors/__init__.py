"""Shared error taxonomy for Warden components."""

from . import codes
from .factories import (
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)
from .normalize import exception_to_error
from .types import DOMAIN_EXIT_CODE, IO_EXIT_CODE, ErrorCategory, ErrorDetail

__all__ = [
    "DOMAIN_EXIT_CODE",
    "ErrorCategory",
    "ErrorDetail",
    "IO_EXIT_CODE",
    "codes",
    "dependency_error",
    "exception_to_error",
    "internal_error",
    "not_found_error",
    "policy_error",
    "validation_error",
]
