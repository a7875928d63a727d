"""Component declaration for the Audit Journal service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_audit_journal"
