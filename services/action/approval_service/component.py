"""Component declaration for Approval Service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_approval_service"
