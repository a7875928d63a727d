"""Built-in default configuration values for Warden components.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.
"""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "json_output": True,
        "service": "warden",
        "environment": "dev",
    },
    "channel": {},
    "components": {
        "service": {
            "approval_service": {
                "approval_ttl_seconds": 600,
                "nonce_length": 6,
            },
            "audit_journal": {
                "path": "~/.local/state/warden/journal.jsonl",
                "fsync_writes": False,
            },
            "policy_service": {
                "webhook_path_template": "/towns/{account_id}/webhook",
            },
        },
    },
}
