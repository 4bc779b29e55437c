"""
Discovery tools for finding and listing ABS dataflows.
"""
import json
import logging
from fastmcp import Context

from ..models import ListDataflowsInput, SearchDataflowsInput, DataflowIdInput
from ..utils import handle_http_error, validate_dataflow_id, ValidationError, DataflowNotFoundError
from .base import get_dataflow_service, dataflows_to_csv

logger = logging.getLogger(__name__)


async def abs_list_dataflows(ctx: Context, params: ListDataflowsInput) -> str:
    """
    Lists dataflows published by the ABS, served from the local cache.

    Args:
        params: ListDataflowsInput containing:
            - force_refresh (bool): Refetch from the ABS API (default: False)
            - top (int): Number of dataflows to return (default: 50)
            - skip (int): Number of dataflows to skip (default: 0)

    Returns:
        str: CSV with columns identifier, id, agencyID, version, name, description

    Example:
        - Use when: "What ABS datasets are there?" -> top=50
        - Use when: "Get the latest list" -> force_refresh=True
    """
    service = get_dataflow_service()
    try:
        if params.force_refresh:
            await ctx.info("Refreshing dataflow list from the ABS API...")
        flows = await service.get_dataflows(force_refresh=params.force_refresh)
    except Exception as e:
        return handle_http_error(e, "abs_list_dataflows")

    logger.info(f"Listing dataflows: skip={params.skip}, top={params.top}, total={len(flows)}")
    page = flows[params.skip : params.skip + params.top]
    if not page:
        return "No dataflows found."
    await ctx.info(f"Showing {len(page)} of {len(flows)} dataflows")
    return dataflows_to_csv(page)


async def abs_search_dataflows(ctx: Context, params: SearchDataflowsInput) -> str:
    """
    Searches dataflow ids, names and descriptions for a keyword.

    Args:
        params: SearchDataflowsInput containing:
            - query (str): Search term (e.g., "census", "consumer price")
            - top (int): Number of matches to return (default: 20)

    Returns:
        str: CSV of matching dataflows
    """
    logger.info(f"Searching dataflows: query='{params.query}'")
    service = get_dataflow_service()
    try:
        matches = await service.search_dataflows(params.query)
    except Exception as e:
        return handle_http_error(e, "abs_search_dataflows")

    if not matches:
        return f"No dataflows matching '{params.query}'."
    await ctx.info(f"Found {len(matches)} dataflows matching '{params.query}'")
    return dataflows_to_csv(matches[: params.top])


async def abs_get_dataflow(ctx: Context, params: DataflowIdInput) -> str:
    """
    Shows one dataflow with the identifier to use in data queries.

    Args:
        params: DataflowIdInput containing:
            - dataflow_id (str): Dataflow ID (e.g., 'C21_G01_LGA') or 'agencyID,id,version'

    Returns:
        str: JSON object describing the dataflow
    """
    try:
        dataflow_id = validate_dataflow_id(params.dataflow_id)
    except ValidationError as e:
        return e.to_error_string()

    service = get_dataflow_service()
    try:
        flow = await service.find_dataflow(dataflow_id)
    except Exception as e:
        return handle_http_error(e, "abs_get_dataflow")

    if flow is None:
        return DataflowNotFoundError(dataflow_id).to_error_string()

    details = flow.to_dict()
    details["identifier"] = service.format_dataflow_identifier(flow)
    return json.dumps(details, indent=2, ensure_ascii=False)


async def abs_cache_status(ctx: Context) -> str:
    """
    Reports the state of the local dataflow cache.

    Returns:
        str: JSON with count, last update, age and refresh interval
    """
    return json.dumps(get_dataflow_service().get_stats(), indent=2)
