"""Log field names shared by every Warden component."""

# Record core
TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Process identity, bound once by configure_logging
SERVICE = "service"
ENVIRONMENT = "environment"

# Envelope correlation
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
PRINCIPAL = "principal"

# Authorization subject
ACCOUNT_ID = "account_id"
ACTOR_USER_ID = "actor_user_id"
REASON_CODE = "reason_code"
NONCE_LENGTH = "nonce_length"

# Public API instrumentation
EVENT = "event"
COMPONENT_ID = "component_id"
API_NAME = "api_name"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
STAGE = "stage"
CONCERN = "concern"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT = "public_api_instrumentation_failure"
