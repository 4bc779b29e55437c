"""
Configuration management for abs-mcp server.

This module provides centralized configuration using pydantic-settings,
allowing configuration via environment variables or .env files.

Environment Variables:
    All settings can be overridden with ABS_MCP_ prefix:
    - ABS_MCP_BASE_URL: ABS SDMX REST API base URL
    - ABS_MCP_HTTP_TIMEOUT: Request timeout in seconds
    - ABS_MCP_CACHE_FILE: Path of the persisted dataflow cache
    - ABS_MCP_REFRESH_INTERVAL_HOURS: Dataflow cache time-to-live
    - ABS_MCP_TRANSPORT: Server transport (stdio/http/sse)
    - ABS_MCP_LOG_LEVEL: Logging level (DEBUG/INFO/WARNING/ERROR)
    - ABS_MCP_LOG_TO_FILE: Also write rotating log files to ABS_MCP_LOG_DIR

Example:
    >>> from abs_mcp.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.base_url)
    'https://data.api.abs.gov.au/rest'
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Server configuration with environment variable support."""

    # API Configuration
    base_url: str = Field(
        default="https://data.api.abs.gov.au/rest",
        description="ABS SDMX REST API base URL"
    )
    default_agency: str = Field(
        default="ABS",
        description="Agency used when a structure query names none"
    )

    # Timeouts
    http_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds"
    )
    connect_timeout: float = Field(
        default=10.0,
        description="HTTP connection timeout in seconds"
    )

    # Dataflow cache
    cache_file: str = Field(
        default="./cache/dataflows.json",
        description="Path to the persisted dataflow cache"
    )
    refresh_interval_hours: float = Field(
        default=24.0,
        gt=0,
        description="Age after which the dataflow cache is refetched"
    )

    # Limits
    max_result_rows: int = Field(
        default=100,
        description="CSV results longer than this are summarised when compact output is requested"
    )

    # Server
    transport: str = Field(
        default="stdio",
        description="Transport mode: stdio, http, or sse"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Server host for http/sse transport"
    )
    port: int = Field(
        default=8000,
        description="Server port for http/sse transport"
    )

    # Logging
    log_level: str = Field(
        default="ERROR",
        description="Logging level"
    )
    log_to_file: bool = Field(
        default=False,
        description="Write abs-info.log and abs-error.log under log_dir"
    )
    log_dir: str = Field(
        default="./logs",
        description="Directory for log files"
    )

    # HTTP Client
    max_connections: int = Field(
        default=100,
        description="Maximum HTTP connections"
    )
    max_keepalive_connections: int = Field(
        default=20,
        description="Maximum keepalive connections"
    )

    model_config = {
        "env_prefix": "ABS_MCP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
