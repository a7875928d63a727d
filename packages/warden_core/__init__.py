"""Public API for Warden runtime composition."""

from packages.warden_core.runtime import (
    WardenRuntime,
    build_runtime,
    fresh_channel_provider,
)

__all__ = [
    "WardenRuntime",
    "build_runtime",
    "fresh_channel_provider",
]
