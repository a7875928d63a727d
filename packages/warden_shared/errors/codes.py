"""Generic error codes shared across Warden components.

Authorization reason codes (``DENY_*``) are owned by the services that emit
them and are not repeated here.
"""

# Input
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
CONFIG_INVALID = "CONFIG_INVALID"

# Lookup
NOT_FOUND = "NOT_FOUND"

# Authorization
POLICY_VIOLATION = "POLICY_VIOLATION"
PERMISSION_DENIED = "PERMISSION_DENIED"

# Storage
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
JOURNAL_WRITE_FAILED = "JOURNAL_WRITE_FAILED"
CONFIG_WRITE_FAILED = "CONFIG_WRITE_FAILED"

# Bugs
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
