"""
Error handling utilities for abs-mcp server.

This module provides structured error handling:
    - MCPError: Base exception class with categorization
    - RemoteError: Any failure talking to the ABS SDMX API
    - ValidationError: Input validation failures
    - DataflowNotFoundError: Dataflow missing from the cached listing
    - handle_http_error: Convert errors to user-friendly messages
"""
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Error classification for structured error handling."""
    CLIENT = "client_error"
    SERVER = "server_error"
    NETWORK = "network_error"
    VALIDATION = "validation_error"
    EXTERNAL = "external_error"


class MCPError(Exception):
    """Base exception for MCP server errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        details: Optional[dict] = None
    ):
        self.message = message
        self.category = category
        self.details = details or {}
        super().__init__(message)

    def to_error_string(self) -> str:
        """Convert to user-friendly error string."""
        base = f"Error: {self.message}"
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base += f" [{detail_str}]"
        return base


class RemoteError(MCPError):
    """
    Raised for any failure talking to the ABS API.

    Transport errors, timeouts, non-2xx responses and undecodable bodies all
    end up here. ``status`` and ``status_text`` are only set when a response
    was received.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.status = status
        self.status_text = status_text
        self.url = url
        super().__init__(message, _category_for_status(status), details)

    def to_error_string(self) -> str:
        base = f"Error: {self.message}"
        if self.status is not None:
            base += f" (HTTP {self.status}"
            if self.status_text:
                base += f" {self.status_text}"
            base += ")"
        if self.url:
            base += f" [url={self.url}]"
        return base


def _category_for_status(status: Optional[int]) -> ErrorCategory:
    if status is None:
        return ErrorCategory.NETWORK
    if status == 429:
        return ErrorCategory.EXTERNAL
    if 500 <= status < 600:
        return ErrorCategory.SERVER
    return ErrorCategory.CLIENT


class DataflowNotFoundError(MCPError):
    """Raised when a dataflow is not in the ABS listing."""

    def __init__(self, dataflow_id: str):
        super().__init__(
            f"Dataflow '{dataflow_id}' not found. Use abs_search_dataflows to find valid IDs.",
            ErrorCategory.CLIENT,
            details={"dataflow_id": dataflow_id}
        )


class ValidationError(MCPError):
    """Raised for input validation failures."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            ErrorCategory.VALIDATION,
            details={"field": field} if field else {}
        )


def handle_http_error(e: Exception, context: str = "") -> str:
    """
    Convert exceptions to user-friendly error strings.

    Args:
        e: The exception to handle
        context: Optional context string for logging

    Returns:
        User-friendly error message string
    """
    if context:
        logger.error(f"{context}: {e}")

    if isinstance(e, RemoteError):
        status = e.status
        detail = e.details.get("detail")
        detail_suffix = f" Details: {detail}" if detail else ""

        if status is None:
            return f"{e.to_error_string()} The ABS API could not be reached. Please try again."
        if status == 404:
            return f"Error: Resource not found. Please check the dataflow ID and data key.{detail_suffix}"
        elif status == 403:
            return f"Error: Permission denied. Access to this resource is restricted.{detail_suffix}"
        elif status == 429:
            return f"Error: Rate limit exceeded. Please wait before making more requests.{detail_suffix}"
        elif 500 <= status < 600:
            return f"Error: ABS API server error (status {status}). Please try again later.{detail_suffix}"
        return f"Error: API request failed with status {status}.{detail_suffix}"

    if isinstance(e, MCPError):
        return e.to_error_string()

    return f"Error: Unexpected error: {type(e).__name__}: {str(e)}"
