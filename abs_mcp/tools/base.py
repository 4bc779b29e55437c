"""
Base utilities shared across tool modules.
"""
import logging
from functools import lru_cache
from io import StringIO

import pandas as pd

from ..config import get_settings
from ..models import DataFlow
from ..services.dataflows import DataFlowService

logger = logging.getLogger(__name__)

DATAFLOW_COLUMNS = ["identifier", "id", "agencyID", "version", "name", "description"]


@lru_cache
def get_dataflow_service() -> DataFlowService:
    """Get the server's dataflow service, created on first use from settings."""
    settings = get_settings()
    return DataFlowService(
        cache_file=settings.cache_file,
        refresh_interval_hours=settings.refresh_interval_hours
    )


def dataflows_to_csv(flows: list[DataFlow]) -> str:
    """Render dataflows as CSV, one row per flow, identifier first."""
    rows = []
    for flow in flows:
        row = flow.to_dict()
        row.pop("structure", None)
        row["identifier"] = DataFlowService.format_dataflow_identifier(flow)
        rows.append(row)
    df = pd.DataFrame(rows, columns=DATAFLOW_COLUMNS)
    return df.to_csv(index=False)


def compact_csv(csv_text: str, title: str, max_rows: int) -> str:
    """
    Summarise a CSV result that is too large to hand back whole.

    Results with at most ``max_rows`` rows, and results pandas cannot parse,
    are returned unchanged.
    """
    try:
        df = pd.read_csv(StringIO(csv_text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.warning(f"Returning {title} uncompacted, CSV could not be parsed: {e}")
        return csv_text

    if len(df) <= max_rows:
        return csv_text

    logger.debug(f"Compacting {len(df)}-row result for {title}")
    summary = [
        f"QUERY RESULT: {title}",
        f"Rows: {len(df)}, Columns: {len(df.columns)}",
        f"Columns: {', '.join(str(c) for c in df.columns)}",
        "---",
        "SAMPLE (first 5 rows):",
        df.head(5).to_csv(index=False),
        "Narrow the query with a data key or period range, or set compact=false for the full result."
    ]
    return "\n".join(summary)
