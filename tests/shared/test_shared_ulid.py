"""Tests for ULID generation."""

from __future__ import annotations

import pytest

from packages.warden_shared.ids import CROCKFORD_ALPHABET, generate_ulid_str


def test_ulid_string_is_26_crockford_characters() -> None:
    value = generate_ulid_str()

    assert len(value) == 26
    assert set(value) <= set(CROCKFORD_ALPHABET)


def test_ulid_timestamp_prefix_is_fixed_width() -> None:
    assert generate_ulid_str(timestamp_ms=0)[:10] == "0000000000"
    assert generate_ulid_str(timestamp_ms=(1 << 48) - 1)[:10] == "7ZZZZZZZZZ"


def test_ulid_string_order_follows_timestamp() -> None:
    values = [generate_ulid_str(timestamp_ms=1_700_000_000_000 + n) for n in range(50)]

    assert sorted(values) == values


def test_ulids_with_equal_timestamp_are_distinct() -> None:
    values = {generate_ulid_str(timestamp_ms=1_700_000_000_000) for _ in range(200)}

    assert len(values) == 200


@pytest.mark.parametrize("timestamp_ms", [-1, 1 << 48])
def test_generate_rejects_out_of_range_timestamps(timestamp_ms: int) -> None:
    with pytest.raises(ValueError):
        generate_ulid_str(timestamp_ms=timestamp_ms)
