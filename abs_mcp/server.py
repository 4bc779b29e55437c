"""
ABS MCP Server - Main entry point.

This module provides the FastMCP server that exposes Australian Bureau of
Statistics SDMX tools, a cached dataflow resource and query prompts.
"""
from fastmcp import FastMCP, Context
import json
import logging
import os

from abs_mcp.config import get_settings
from abs_mcp.services.http_client import HTTPClientManager
from abs_mcp.utils import ensure_directory_exists, setup_logging

# Import all models
from abs_mcp.models import (
    ListDataflowsInput,
    SearchDataflowsInput,
    DataflowIdInput,
    ListStructuresInput,
    GetDataInput,
    QueryDatasetInput,
)

# Import all tool implementations
from abs_mcp.tools.base import get_dataflow_service
from abs_mcp.tools.discovery import (
    abs_list_dataflows as _abs_list_dataflows,
    abs_search_dataflows as _abs_search_dataflows,
    abs_get_dataflow as _abs_get_dataflow,
    abs_cache_status as _abs_cache_status,
)
from abs_mcp.tools.structures import (
    abs_list_structures as _abs_list_structures,
)
from abs_mcp.tools.data import (
    abs_get_data as _abs_get_data,
    abs_query_dataset as _abs_query_dataset,
)

# Configure logging
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

# Initialize FastMCP server
mcp = FastMCP(name="abs_mcp", include_fastmcp_meta=False)


# ============================================================================
# Tool Registrations - DISCOVERY
# ============================================================================

@mcp.tool(
    name="abs_list_dataflows",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_list_dataflows(ctx: Context, params: ListDataflowsInput) -> str:
    """
    Lists dataflows (datasets) published by the Australian Bureau of Statistics.

    Args:
        params: ListDataflowsInput containing:
            - force_refresh (bool): Refetch the list from ABS (default: False)
            - top (int): Number of dataflows to return (default: 50)
            - skip (int): Number of dataflows to skip (default: 0)

    Returns:
        str: CSV with columns identifier, id, agencyID, version, name, description
    """
    return await _abs_list_dataflows(ctx, params)


@mcp.tool(
    name="abs_search_dataflows",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_search_dataflows(ctx: Context, params: SearchDataflowsInput) -> str:
    """
    Searches ABS dataflows by keyword in their id, name and description.

    Args:
        params: SearchDataflowsInput containing:
            - query (str): Search term (e.g., "census", "labour force")
            - top (int): Number of matches to return (default: 20)

    Returns:
        str: CSV of matching dataflows
    """
    return await _abs_search_dataflows(ctx, params)


@mcp.tool(
    name="abs_get_dataflow",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_get_dataflow(ctx: Context, params: DataflowIdInput) -> str:
    """
    Shows one dataflow, its data structure reference and its query identifier.

    Args:
        params: DataflowIdInput containing:
            - dataflow_id (str): Dataflow ID (e.g., 'C21_G01_LGA')

    Returns:
        str: JSON with id, agencyID, version, name, description, structure, identifier
    """
    return await _abs_get_dataflow(ctx, params)


@mcp.tool(
    name="abs_cache_status",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": False}
)
async def abs_cache_status(ctx: Context) -> str:
    """
    Reports the state of the local dataflow cache.

    Returns:
        str: JSON with flow count, last update time, age and refresh interval
    """
    return await _abs_cache_status(ctx)


# ============================================================================
# Tool Registrations - STRUCTURES
# ============================================================================

@mcp.tool(
    name="abs_list_structures",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_list_structures(ctx: Context, params: ListStructuresInput) -> str:
    """
    Retrieves ABS structural metadata: data structures, codelists, concept schemes and more.

    Args:
        params: ListStructuresInput containing:
            - structure_type (str): 'datastructure', 'codelist', 'conceptscheme', ...
            - agency_id (str): Maintenance agency (default: 'ABS')
            - detail (str, optional): 'full', 'allstubs', 'referencestubs', ...
            - references (str, optional): 'none', 'parents', 'children', 'descendants', 'all', ...

    Returns:
        str: JSON rendering of the SDMX-ML structure document

    Tip: Use detail='allstubs' to list names only; full codelists can be large.
    """
    return await _abs_list_structures(ctx, params)


# ============================================================================
# Tool Registrations - DATA
# ============================================================================

@mcp.tool(
    name="abs_get_data",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_get_data(ctx: Context, params: GetDataInput) -> str:
    """
    Retrieves observation data for an ABS dataflow.

    Args:
        params: GetDataInput containing:
            - dataflow_id (str): Dataflow ID or 'agencyID,id,version' (e.g., 'ABS,CPI,1.1.0')
            - data_key (str): SDMX key (default: 'all'), e.g. '1.10001.10.50.Q'
            - start_period (str, optional): e.g. '2020' or '2020-Q1'
            - end_period (str, optional): e.g. '2023-Q4'
            - format (str): 'csvfilewithlabels', 'csvfile', 'jsondata' (default),
              'genericdata' or 'structurespecificdata'
            - detail (str, optional): 'full', 'dataonly', 'serieskeysonly', 'nodata'
            - dimension_at_observation (str, optional): 'TIME_PERIOD', 'AllDimensions' or a dimension id
            - compact (bool): Summarise large CSV results (default: True)

    Returns:
        str: CSV text for csv formats, JSON otherwise

    Note: Use abs_get_dataflow to find the identifier and abs_list_structures
    (structure_type='datastructure') to learn the dimension order of the data key.
    """
    return await _abs_get_data(ctx, params)


@mcp.tool(
    name="abs_query_dataset",
    annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
)
async def abs_query_dataset(ctx: Context, params: QueryDatasetInput) -> str:
    """
    Queries a specific ABS dataset in full as SDMX-JSON.

    Args:
        params: QueryDatasetInput containing:
            - dataset_id (str): ID of the dataset to query (e.g., C21_G01_LGA)

    Returns:
        str: SDMX-JSON document with all dimensions at observation level
    """
    return await _abs_query_dataset(ctx, params)


# ============================================================================
# Resources
# ============================================================================

@mcp.resource("abs://dataflows", name="abs_dataflows", mime_type="application/json")
async def dataflows_resource() -> str:
    """All ABS dataflows from the local cache, refreshed when stale."""
    service = get_dataflow_service()
    flows = await service.get_dataflows()
    return json.dumps(
        [
            {**flow.to_dict(), "identifier": service.format_dataflow_identifier(flow)}
            for flow in flows
        ],
        ensure_ascii=False
    )


# ============================================================================
# Prompts
# ============================================================================

@mcp.prompt()
def explore_dataflow(user_query: str) -> str:
    """Finds and queries the ABS dataflow that answers the user query."""
    return f"""You are an expert in Australian Bureau of Statistics data.

Based on the following user query:
"{user_query}"

1. Use abs_search_dataflows to find relevant dataflows
2. Use abs_get_dataflow to get the identifier and data structure reference
3. Use abs_list_structures(structure_type="datastructure", references="children") to learn the dimensions
4. Use abs_get_data with a data key and period range to fetch observations

Return the dataflow identifier and key findings.
"""


@mcp.prompt()
def build_data_key(data_structure: str, user_query: str) -> str:
    """Builds an SDMX data key from a data structure definition and a user query."""
    return f"""You are an expert in SDMX 2.1 REST queries.

Based on the following data structure definition:
{data_structure}

And the user's request:
"{user_query}"

Please generate a valid SDMX data key.
- List one position per dimension, in the order of the dimension list, separated by '.'.
- Leave a position empty to select every value of that dimension.
- Join several values of one dimension with '+'.
- Do not include TIME_PERIOD; use startPeriod/endPeriod instead.
- Return ONLY the data key, nothing else.
"""


# ============================================================================
# Lifecycle Management
# ============================================================================

async def initialize_server():
    """Initialize resources on server startup."""
    logger.info("Initializing abs-mcp server...")
    cache_dir = os.path.dirname(os.path.abspath(settings.cache_file))
    ensure_directory_exists(cache_dir)
    logger.info(f"Dataflow cache file: {os.path.abspath(settings.cache_file)}")
    logger.info("Server initialization complete")


async def cleanup_server():
    """Cleanup resources on server shutdown."""
    logger.info("Cleaning up abs-mcp server...")
    await HTTPClientManager.close()
    logger.info("Server cleanup complete")


# ============================================================================
# Main
# ============================================================================

def main():
    """Main entry point for the MCP server."""
    import asyncio
    import atexit

    transport = os.getenv("TRANSPORT", settings.transport)
    log_level = os.getenv("LOG_LEVEL", settings.log_level)

    setup_logging(log_level, log_dir=settings.log_dir, log_to_file=settings.log_to_file)
    logger.info(f"Starting server with transport={transport}, log_level={log_level}")

    asyncio.run(initialize_server())

    def sync_cleanup():
        try:
            asyncio.run(cleanup_server())
        except RuntimeError as e:
            logger.error(f"Cleanup error: {e}")

    atexit.register(sync_cleanup)

    if transport == "http":
        mcp.run(host=settings.host, port=settings.port, transport="http")
    elif transport == "sse":
        mcp.run(host=settings.host, port=settings.port, transport="sse")
    else:
        mcp.run(show_banner=False, log_level=log_level)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        import sys
        print("\nServer stopped by user.", file=sys.stderr)
        sys.exit(0)
