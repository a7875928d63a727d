"""Time-ordered opaque identifiers."""

from packages.warden_shared.ids.ulid import (
    CROCKFORD_ALPHABET,
    generate_ulid_str,
)

__all__ = [
    "CROCKFORD_ALPHABET",
    "generate_ulid_str",
]
