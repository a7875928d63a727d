"""Unit tests for Approval Service lifecycle behavior."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from services.action.approval_service.config import ApprovalServiceSettings
from services.action.approval_service.domain import (
    ApprovalOutcome,
    ApprovalReasonCode,
    ApprovalStatus,
)
from services.action.approval_service.implementation import DefaultApprovalService
from services.state.audit_journal.config import AuditJournalSettings
from services.state.audit_journal.data.repository import InMemoryJournalRepository
from services.state.audit_journal.domain import (
    JournalEntry,
    JournalEvent,
    JournalStatus,
    JournalWriteError,
)
from services.state.audit_journal.implementation import DefaultAuditJournalService

_ALICE = "towns:user:alice"
_BOB = "towns:user:bob"


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 5, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class _ScriptedNonces:
    def __init__(self, *nonces: str) -> None:
        self._nonces: Iterator[str] = iter(nonces)
        self.lengths: list[int] = []

    def __call__(self, length: int) -> str:
        self.lengths.append(length)
        return next(self._nonces)


class _BrokenRepository:
    def append(self, *, event: JournalEvent) -> None:
        raise JournalWriteError("disk full")

    def read_recent(self, *, limit: int) -> tuple[JournalEntry, ...]:
        return ()


def _service(
    *,
    clock: _Clock | None = None,
    nonce_factory=None,
    **settings: object,
) -> tuple[DefaultApprovalService, InMemoryJournalRepository]:
    journal_repo = InMemoryJournalRepository()
    kwargs: dict[str, object] = {}
    if nonce_factory is not None:
        kwargs["nonce_factory"] = nonce_factory
    service = DefaultApprovalService(
        settings=ApprovalServiceSettings(**settings),
        journal=DefaultAuditJournalService(
            settings=AuditJournalSettings(), repository=journal_repo
        ),
        clock=clock or _Clock(),
        **kwargs,
    )
    return service, journal_repo


def _create(service: DefaultApprovalService, **overrides: object):
    values: dict[str, object] = {
        "account_id": "default",
        "action": "executeTx",
        "requested_by": _ALICE,
        "payload_hash": "sha256:abc",
    }
    values.update(overrides)
    return service.create(**values)


def test_create_then_consume_round_trip() -> None:
    service, journal = _service()
    request = _create(service)

    first = service.consume(nonce=request.nonce, actor_user_id=_ALICE)
    second = service.consume(nonce=request.nonce, actor_user_id=_ALICE)

    assert request.status == ApprovalStatus.PENDING
    assert request.expires_at - request.created_at == timedelta(minutes=10)
    assert first.ok is True
    assert first.reason_code == ApprovalReasonCode.ALLOW
    assert first.request.status == ApprovalStatus.APPROVED
    assert second.ok is False
    assert second.reason_code == ApprovalReasonCode.DENY_ALREADY_CONSUMED
    assert [(e.action, e.status) for e in journal.events()] == [
        ("create", JournalStatus.PENDING),
        ("consume", JournalStatus.SUCCESS),
        ("consume", JournalStatus.DENY),
    ]
    assert journal.events()[1].details == {"nonce": request.nonce, "requestId": request.id}


def test_wrong_actor_is_denied_without_side_effect() -> None:
    service, _ = _service()
    request = _create(service)

    outcome = service.consume(nonce=request.nonce, actor_user_id=_BOB)

    assert outcome.reason_code == ApprovalReasonCode.DENY_NOT_REQUESTER
    assert service.lookup(request_id=request.id).status == ApprovalStatus.PENDING
    assert service.consume(nonce=request.nonce, actor_user_id=_ALICE).ok is True


def test_reject_by_requester_is_terminal() -> None:
    service, journal = _service()
    request = _create(service)

    rejected = service.reject(nonce=request.nonce, actor_user_id=_ALICE)
    later = service.consume(nonce=request.nonce, actor_user_id=_ALICE)

    assert rejected.ok is True
    assert rejected.request.status == ApprovalStatus.REJECTED
    assert later.reason_code == ApprovalReasonCode.DENY_ALREADY_CONSUMED
    assert journal.events()[1].action == "reject"


def test_unknown_nonce_is_not_found() -> None:
    service, journal = _service()

    outcome = service.consume(nonce="ZZZZZZ", actor_user_id=_ALICE)
    blank = service.reject(nonce="   ", actor_user_id=_ALICE)

    assert outcome == ApprovalOutcome(ok=False, reason_code=ApprovalReasonCode.DENY_NOT_FOUND)
    assert blank.reason_code == ApprovalReasonCode.DENY_NOT_FOUND
    assert journal.events()[0].account_id is None


def test_nonce_is_matched_case_insensitively_after_trimming() -> None:
    service, _ = _service(nonce_factory=_ScriptedNonces("ABC234"))
    request = _create(service)

    outcome = service.consume(nonce="  abc234 ", actor_user_id=_ALICE)

    assert request.nonce == "ABC234"
    assert outcome.ok is True


def test_zero_ttl_expires_on_first_read() -> None:
    service, journal = _service()
    request = _create(service, ttl_seconds=0)

    looked_up = service.lookup(request_id=request.id)
    consumed = service.consume(nonce=request.nonce, actor_user_id=_ALICE)
    rejected = service.reject(nonce=request.nonce, actor_user_id=_ALICE)

    assert looked_up.status == ApprovalStatus.EXPIRED
    assert consumed.reason_code == ApprovalReasonCode.DENY_ALREADY_CONSUMED
    assert rejected.reason_code == ApprovalReasonCode.DENY_ALREADY_CONSUMED
    expire_events = [e for e in journal.events() if e.action == "expire"]
    assert len(expire_events) == 1
    assert expire_events[0].status == JournalStatus.FAILED
    assert expire_events[0].reason_code == "DENY_EXPIRED"


def test_consume_after_ttl_reports_expired_and_persists_flip() -> None:
    clock = _Clock()
    service, _ = _service(clock=clock)
    request = _create(service, ttl_seconds=30)
    clock.advance(30)

    outcome = service.consume(nonce=request.nonce, actor_user_id=_ALICE)

    assert outcome.reason_code == ApprovalReasonCode.DENY_EXPIRED
    assert outcome.request.status == ApprovalStatus.EXPIRED
    assert service.lookup(request_id=request.id).status == ApprovalStatus.EXPIRED


def test_expiry_is_checked_before_requester() -> None:
    clock = _Clock()
    service, _ = _service(clock=clock)
    request = _create(service, ttl_seconds=1)
    clock.advance(5)

    outcome = service.consume(nonce=request.nonce, actor_user_id=_BOB)

    assert outcome.reason_code == ApprovalReasonCode.DENY_EXPIRED


def test_lookup_unknown_id_returns_none() -> None:
    service, _ = _service()
    assert service.lookup(request_id="missing") is None


def test_colliding_nonce_is_retried() -> None:
    nonces = _ScriptedNonces("AAAA22", "AAAA22", "BBBB33")
    service, _ = _service(nonce_factory=nonces)

    first = _create(service)
    second = _create(service)

    assert first.nonce == "AAAA22"
    assert second.nonce == "BBBB33"


def test_nonce_length_grows_after_max_attempts() -> None:
    service, _ = _service(
        nonce_factory=lambda length: "A" * length,
        nonce_length=4,
        nonce_max_attempts=2,
    )

    first = _create(service)
    second = _create(service)
    third = _create(service)

    assert [first.nonce, second.nonce, third.nonce] == ["AAAA", "AAAAA", "AAAAAA"]


def test_terminal_nonces_are_never_reissued() -> None:
    nonces = _ScriptedNonces("CCCC44", "CCCC44", "DDDD55")
    service, _ = _service(nonce_factory=nonces)
    first = _create(service)
    service.consume(nonce=first.nonce, actor_user_id=_ALICE)

    second = _create(service)

    assert second.nonce == "DDDD55"


def test_concurrent_consumes_allow_exactly_once() -> None:
    service, _ = _service()
    request = _create(service)
    workers = 8
    barrier = threading.Barrier(workers)
    outcomes: list[ApprovalOutcome] = []
    outcomes_lock = threading.Lock()

    def _consume() -> None:
        barrier.wait()
        outcome = service.consume(nonce=request.nonce, actor_user_id=_ALICE)
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=_consume) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(outcomes) == workers
    assert sum(1 for outcome in outcomes if outcome.ok) == 1
    assert {
        outcome.reason_code for outcome in outcomes if not outcome.ok
    } == {ApprovalReasonCode.DENY_ALREADY_CONSUMED}


def test_list_is_most_recent_first_and_persists_expiry() -> None:
    clock = _Clock()
    service, journal = _service(clock=clock)
    oldest = _create(service, ttl_seconds=5)
    clock.advance(1)
    middle = _create(service)
    newest_tie_a = _create(service)
    newest_tie_b = _create(service)
    clock.advance(10)

    items = service.list()
    limited = service.list(limit=2)

    assert [item.id for item in items] == [
        newest_tie_b.id,
        newest_tie_a.id,
        middle.id,
        oldest.id,
    ]
    assert items[-1].status == ApprovalStatus.EXPIRED
    assert [item.id for item in limited] == [newest_tie_b.id, newest_tie_a.id]
    assert service.lookup(request_id=oldest.id).status == ApprovalStatus.EXPIRED
    assert [e.action for e in journal.events()].count("expire") == 1


def test_list_default_limit() -> None:
    service, _ = _service(list_limit_default=2)
    for _ in range(3):
        _create(service)

    assert len(service.list()) == 2
    assert len(service.list(limit=0)) == 2
    assert len(service.list(limit=10)) == 3


def test_apply_phrase_approves_and_rejects() -> None:
    service, journal = _service()
    first = _create(service)
    second = _create(service)

    approved = service.apply_phrase(
        text=f"ok APPROVE TX {first.nonce.lower()} --actor-user-id {_ALICE}"
    )
    rejected = service.apply_phrase(
        text=f"REJECT TX {second.nonce} --actor-user-id {_ALICE}"
    )

    assert approved.request.status == ApprovalStatus.APPROVED
    assert rejected.request.status == ApprovalStatus.REJECTED
    assert [e.action for e in journal.events()][-2:] == ["phrase_approve", "phrase_reject"]


def test_apply_phrase_without_actor_is_denied_without_transition() -> None:
    service, journal = _service()
    request = _create(service)

    outcome = service.apply_phrase(text=f"APPROVE TX {request.nonce}")

    assert outcome.ok is False
    assert outcome.reason_code == ApprovalReasonCode.DENY_ACTOR_MISSING
    assert outcome.request is None
    assert service.lookup(request_id=request.id).status == ApprovalStatus.PENDING
    assert journal.events()[-1].reason_code == "DENY_ACTOR_MISSING"


def test_apply_phrase_rejects_unrecognized_text() -> None:
    service, _ = _service()

    with pytest.raises(ValueError):
        service.apply_phrase(text="approve it please")


def test_create_validates_input() -> None:
    service, journal = _service()

    with pytest.raises(ValueError):
        _create(service, ttl_seconds=-1)
    with pytest.raises(ValueError):
        _create(service, requested_by="  ")
    assert journal.events() == ()


@pytest.mark.parametrize("ttl_seconds", [float("inf"), float("nan"), 1e15])
def test_create_rejects_unrepresentable_ttl(ttl_seconds: float) -> None:
    """Non-finite or out-of-range TTLs are input errors, not overflows."""
    service, journal = _service()

    with pytest.raises(ValueError, match="ttl_seconds"):
        _create(service, ttl_seconds=ttl_seconds)
    assert journal.events() == ()
    assert service.list() == ()


@pytest.mark.parametrize("operation", ["consume", "reject"])
@pytest.mark.parametrize("actor", ["", "   "])
def test_blank_actor_is_journaled_denial_without_transition(
    operation: str, actor: str
) -> None:
    service, journal = _service()
    request = _create(service)

    outcome = getattr(service, operation)(nonce=request.nonce, actor_user_id=actor)

    assert outcome.ok is False
    assert outcome.reason_code == ApprovalReasonCode.DENY_ACTOR_MISSING
    assert outcome.request is None
    assert service.lookup(request_id=request.id).status == ApprovalStatus.PENDING
    denials = [e for e in journal.events() if e.status == JournalStatus.DENY]
    assert len(denials) == 1
    assert denials[0].action == operation
    assert denials[0].reason_code == "DENY_ACTOR_MISSING"
    assert denials[0].details == {"nonce": request.nonce}


def test_journal_failure_propagates_after_transition() -> None:
    service = DefaultApprovalService(
        settings=ApprovalServiceSettings(),
        journal=DefaultAuditJournalService(
            settings=AuditJournalSettings(), repository=_BrokenRepository()
        ),
    )

    with pytest.raises(JournalWriteError):
        _create(service)

    (request,) = service.list()
    assert request.status == ApprovalStatus.PENDING
    with pytest.raises(JournalWriteError):
        service.consume(nonce=request.nonce, actor_user_id=_ALICE)
    assert service.lookup(request_id=request.id).status == ApprovalStatus.APPROVED
