"""Shared error code constants.

Codes are stable machine-readable identifiers and appear verbatim in the
``code`` field of HTTP error bodies.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"

# Authentication
MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
INVALID_CREDENTIAL = "INVALID_CREDENTIAL"

# Policy
ACCOUNT_SUSPENDED = "ACCOUNT_SUSPENDED"
INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"

# Not found
NOT_FOUND = "NOT_FOUND"
ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

# Dependency / lifecycle
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
UPSTREAM_REJECTED = "UPSTREAM_REJECTED"
UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
