"""Approval Service registry implementations."""

from __future__ import annotations

import threading

from services.action.approval_service.domain import ApprovalRequest, ApprovalStatus
from services.action.approval_service.interfaces import ApprovalRepository


class InMemoryApprovalRepository(ApprovalRepository):
    """Volatile single-process registry keyed by id with a nonce index."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, ApprovalRequest] = {}
        self._id_by_nonce: dict[str, str] = {}

    def insert(self, *, request: ApprovalRequest) -> None:
        with self._lock:
            if request.id in self._by_id:
                raise ValueError(f"duplicate approval id: {request.id}")
            if request.nonce in self._id_by_nonce:
                raise ValueError(f"duplicate approval nonce: {request.nonce}")
            self._by_id[request.id] = request
            self._id_by_nonce[request.nonce] = request.id

    def get(self, *, request_id: str) -> ApprovalRequest | None:
        with self._lock:
            return self._by_id.get(request_id)

    def find_by_nonce(self, *, nonce: str) -> ApprovalRequest | None:
        with self._lock:
            request_id = self._id_by_nonce.get(nonce)
            return None if request_id is None else self._by_id.get(request_id)

    def list_all(self) -> tuple[ApprovalRequest, ...]:
        with self._lock:
            return tuple(self._by_id.values())

    def compare_and_set_status(
        self,
        *,
        request_id: str,
        expected: ApprovalStatus,
        status: ApprovalStatus,
    ) -> ApprovalRequest | None:
        with self._lock:
            current = self._by_id.get(request_id)
            if current is None or current.status != expected:
                return None
            updated = current.model_copy(update={"status": status})
            self._by_id[request_id] = updated
            return updated
