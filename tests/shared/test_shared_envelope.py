"""Tests for envelope builders and metadata validation."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone

import pytest

from packages.warden_shared.envelope import (
    EnvelopeKind,
    EnvelopeMeta,
    failure,
    new_meta,
    success,
    validate_meta,
)
from packages.warden_shared.errors import (
    ErrorCategory,
    codes,
    dependency_error,
    policy_error,
)


def _meta() -> EnvelopeMeta:
    """Return deterministic metadata for envelope tests."""
    return new_meta(
        kind=EnvelopeKind.COMMAND,
        source="cli",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC),
        envelope_id="env-1",
        trace_id="trace-1",
    )


def test_success_builder_returns_ok_envelope_with_payload() -> None:
    envelope = success(meta=_meta(), payload={"allow": True})

    assert envelope.ok is True
    assert envelope.has_payload is True
    assert envelope.payload == {"allow": True}
    assert envelope.errors == []


def test_failure_builder_keeps_errors_and_optional_payload() -> None:
    envelope = failure(
        meta=_meta(),
        errors=[policy_error("not an owner", code="DENY_NOT_OWNER")],
        payload={"allow": False},
    )

    assert envelope.ok is False
    assert envelope.payload == {"allow": False}
    assert [item.code for item in envelope.errors] == ["DENY_NOT_OWNER"]
    assert envelope.errors[0].category == ErrorCategory.POLICY


def test_new_meta_generates_ids_and_normalizes_timestamps() -> None:
    naive = new_meta(
        kind=EnvelopeKind.EVENT,
        source="svc",
        principal="p",
        timestamp=datetime(2026, 1, 1, 12, 0, 0),
    )
    offset = new_meta(
        kind=EnvelopeKind.EVENT,
        source="svc",
        principal="p",
        timestamp=datetime(2026, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2))),
    )

    assert naive.envelope_id != ""
    assert naive.trace_id == naive.envelope_id
    assert len(naive.envelope_id) == 26
    assert naive.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
    assert offset.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


def test_validate_meta_accepts_complete_metadata() -> None:
    validate_meta(_meta())


@pytest.mark.parametrize(
    ("changes", "message"),
    [
        ({"source": ""}, "metadata.source is required"),
        ({"principal": ""}, "metadata.principal is required"),
        ({"trace_id": ""}, "metadata.trace_id is required"),
        ({"kind": EnvelopeKind.UNSPECIFIED}, "metadata.kind must be specified"),
    ],
)
def test_validate_meta_rejects_incomplete_metadata(
    changes: dict[str, object], message: str
) -> None:
    with pytest.raises(ValueError, match=message):
        validate_meta(replace(_meta(), **changes))


def test_error_codes_module_exposes_io_codes() -> None:
    assert codes.JOURNAL_WRITE_FAILED == "JOURNAL_WRITE_FAILED"
    assert codes.CONFIG_WRITE_FAILED == "CONFIG_WRITE_FAILED"


def test_exit_code_follows_worst_error_category() -> None:
    denied = failure(meta=_meta(), errors=[policy_error("no", code="DENY_NOT_OWNER")])
    broken = failure(
        meta=_meta(),
        errors=[
            policy_error("no", code="DENY_NOT_OWNER"),
            dependency_error("disk full", code=codes.JOURNAL_WRITE_FAILED),
        ],
    )

    assert success(meta=_meta(), payload=None).exit_code == 0
    assert denied.exit_code == 3
    assert broken.exit_code == 4


def test_failure_requires_errors() -> None:
    with pytest.raises(ValueError):
        failure(meta=_meta(), errors=[])


def test_validate_meta_rejects_naive_timestamps() -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        validate_meta(replace(_meta(), timestamp=datetime(2026, 1, 1)))
