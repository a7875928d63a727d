"""Component declaration for Policy Service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_policy_service"
