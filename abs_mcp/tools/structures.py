"""
Structural metadata tools (data structures, codelists, concept schemes...).
"""
import json
import logging
from fastmcp import Context

from ..models import ListStructuresInput
from ..utils import handle_http_error, validate_agency_id, ValidationError
from .base import get_dataflow_service

logger = logging.getLogger(__name__)


async def abs_list_structures(ctx: Context, params: ListStructuresInput) -> str:
    """
    Retrieves structural metadata of one type from the ABS.

    Args:
        params: ListStructuresInput containing:
            - structure_type (str): e.g. 'datastructure', 'codelist', 'conceptscheme'
            - agency_id (str): Maintenance agency (default: 'ABS')
            - detail (str, optional): e.g. 'allstubs' for names only
            - references (str, optional): e.g. 'children' to include codelists

    Returns:
        str: JSON rendering of the SDMX-ML structure document

    Example:
        - Use when: "Which codelists does ABS publish?" -> structure_type='codelist', detail='allstubs'
    """
    try:
        agency_id = validate_agency_id(params.agency_id)
    except ValidationError as e:
        return e.to_error_string()

    await ctx.info(f"Fetching {params.structure_type.value} structures for {agency_id}")
    logger.info(f"Listing structures: type={params.structure_type.value}, agency={agency_id}")

    client = get_dataflow_service().client
    try:
        tree = await client.list_structures(
            params.structure_type,
            agency_id,
            detail=params.detail,
            references=params.references
        )
    except Exception as e:
        return handle_http_error(e, "abs_list_structures")

    return json.dumps(tree, indent=2, ensure_ascii=False)
