"""Canonical logging field names for cross-component consistency."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Call correlation fields.
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
SOURCE = "source"
PRINCIPAL = "principal"
REQUEST_ID = "request_id"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"

# HTTP request fields.
HTTP_METHOD = "http_method"
HTTP_PATH = "http_path"
HTTP_STATUS = "http_status"

# Metering fields.
ACCOUNT_ID = "account_id"
OUTCOME = "outcome"
LIFECYCLE_STATE = "lifecycle_state"
MEMORY_LEVEL = "memory_level"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
