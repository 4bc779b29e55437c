"""MCP tool implementations for abs-mcp server."""
from .discovery import (
    abs_list_dataflows,
    abs_search_dataflows,
    abs_get_dataflow,
    abs_cache_status,
)
from .structures import (
    abs_list_structures,
)
from .data import (
    abs_get_data,
    abs_query_dataset,
)

__all__ = [
    # Discovery
    "abs_list_dataflows",
    "abs_search_dataflows",
    "abs_get_dataflow",
    "abs_cache_status",
    # Structures
    "abs_list_structures",
    # Data
    "abs_get_data",
    "abs_query_dataset",
]
