"""Approval Service data layer exports."""

from services.action.approval_service.data.repository import (
    InMemoryApprovalRepository,
)

__all__ = ["InMemoryApprovalRepository"]
