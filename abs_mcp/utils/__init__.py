"""Utility modules for abs-mcp server."""
from .errors import (
    ErrorCategory,
    MCPError,
    RemoteError,
    DataflowNotFoundError,
    ValidationError,
    handle_http_error,
)
from .validation import (
    validate_dataflow_id,
    validate_data_key,
    validate_agency_id,
    validate_period,
    ensure_directory_exists,
)
from .logging import setup_logging

__all__ = [
    # Errors
    "ErrorCategory",
    "MCPError",
    "RemoteError",
    "DataflowNotFoundError",
    "ValidationError",
    "handle_http_error",
    # Validation
    "validate_dataflow_id",
    "validate_data_key",
    "validate_agency_id",
    "validate_period",
    "ensure_directory_exists",
    # Logging
    "setup_logging",
]
