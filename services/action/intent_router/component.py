"""Component declaration for Intent Router."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_intent_router"
