"""
Observation data tools.
"""
import json
import logging
from fastmcp import Context

from ..config import get_settings
from ..models import DataFormat, DataQueryOptions, GetDataInput, QueryDatasetInput
from ..utils import (
    handle_http_error,
    validate_dataflow_id,
    validate_data_key,
    validate_period,
    ValidationError,
)
from .base import get_dataflow_service, compact_csv

logger = logging.getLogger(__name__)
settings = get_settings()


async def abs_get_data(ctx: Context, params: GetDataInput) -> str:
    """
    Retrieves observation data for an ABS dataflow.

    Args:
        params: GetDataInput containing:
            - dataflow_id (str): Dataflow ID or 'agencyID,id,version'
            - data_key (str): SDMX key, 'all' or dot-separated dimension values
            - start_period / end_period (str, optional): Period bounds
            - format (str): csvfilewithlabels, csvfile, jsondata, genericdata, structurespecificdata
            - detail (str, optional): full, dataonly, serieskeysonly, nodata
            - dimension_at_observation (str, optional): 'TIME_PERIOD', 'AllDimensions' or a dimension id
            - compact (bool): Summarise large CSV results (default: True)

    Returns:
        str: CSV text for csv formats, JSON otherwise

    Example:
        - Use when: "CPI since 2020 as a table" -> dataflow_id='CPI', start_period='2020', format='csvfilewithlabels'
    """
    try:
        dataflow_id = validate_dataflow_id(params.dataflow_id)
        data_key = validate_data_key(params.data_key)
        options = DataQueryOptions(
            start_period=validate_period(params.start_period, field="start_period"),
            end_period=validate_period(params.end_period, field="end_period"),
            format=params.format,
            detail=params.detail,
            dimension_at_observation=params.dimension_at_observation
        )
    except ValidationError as e:
        return e.to_error_string()

    await ctx.info(f"Fetching {params.format.value} data for {dataflow_id}/{data_key}")
    logger.info(
        f"Getting data: dataflow={dataflow_id}, key={data_key}, format={params.format.value}, "
        f"start={options.start_period}, end={options.end_period}"
    )

    try:
        result = await get_dataflow_service().get_flow_data(dataflow_id, data_key, options)
    except Exception as e:
        return handle_http_error(e, "abs_get_data")

    if isinstance(result, str):
        if not result.strip():
            return "No observations found."
        if params.compact:
            return compact_csv(result, f"{dataflow_id}/{data_key}", settings.max_result_rows)
        return result

    return json.dumps(result, indent=2, ensure_ascii=False)


async def abs_query_dataset(ctx: Context, params: QueryDatasetInput) -> str:
    """
    Queries a whole ABS dataset as SDMX-JSON with every dimension at observation level.

    Args:
        params: QueryDatasetInput containing:
            - dataset_id (str): Dataset ID (e.g., 'C21_G01_LGA')

    Returns:
        str: SDMX-JSON document
    """
    try:
        dataset_id = validate_dataflow_id(params.dataset_id)
    except ValidationError as e:
        return e.to_error_string()

    options = DataQueryOptions(format=DataFormat.JSON, dimension_at_observation="AllDimensions")
    try:
        result = await get_dataflow_service().get_flow_data(dataset_id, "all", options)
    except Exception as e:
        return handle_http_error(e, "abs_query_dataset")

    return json.dumps(result, indent=2, ensure_ascii=False)
