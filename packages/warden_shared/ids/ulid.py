"""ULID generation.

A ULID is 26 Crockford Base32 characters: 10 encoding a 48-bit millisecond
timestamp, then 16 encoding 80 random bits. String order follows creation
time at millisecond resolution.
"""

from __future__ import annotations

import secrets
import time

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_TIME_CHARS = 10
_RANDOM_CHARS = 16
_MAX_TIMESTAMP_MS = (1 << 48) - 1


def _encode(value: int, width: int) -> str:
    chars = []
    for _ in range(width):
        value, index = divmod(value, 32)
        chars.append(CROCKFORD_ALPHABET[index])
    return "".join(reversed(chars))


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Return a new ULID for ``timestamp_ms`` (default: now)."""
    ts_ms = time.time_ns() // 1_000_000 if timestamp_ms is None else int(timestamp_ms)
    if not 0 <= ts_ms <= _MAX_TIMESTAMP_MS:
        raise ValueError("timestamp_ms out of ULID 48-bit range")
    return _encode(ts_ms, _TIME_CHARS) + _encode(secrets.randbits(80), _RANDOM_CHARS)
