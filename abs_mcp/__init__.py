"""
ABS MCP Server - Access Australian Bureau of Statistics data over SDMX.

This package provides an MCP (Model Context Protocol) server for discovering
ABS dataflows and retrieving their observation data.
"""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("abs-mcp")
except PackageNotFoundError:
    __version__ = "0.2.0"

from .config import Settings, get_settings

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
]
