"""
Validation utilities for abs-mcp server.

This module checks tool input before it is placed in an SDMX REST path:
    - validate_dataflow_id: Validates SDMX dataflow identifiers
    - validate_data_key: Validates SDMX data keys ("all" or dotted/plus syntax)
    - validate_period: Validates ISO 8601 / SDMX reporting periods
    - validate_agency_id: Validates maintenance agency identifiers
"""
import os
import re
import logging
from typing import Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)

# A bare id ("C21_G01_LGA"), "agency,id" or a full "agency,id,version" reference
DATAFLOW_ID_PATTERN = re.compile(
    r'^([A-Za-z][A-Za-z\d_.-]*,[A-Za-z][A-Za-z\d_-]*(,[A-Za-z\d_.+~-]+)?|[A-Za-z][A-Za-z\d_-]*)$'
)

AGENCY_ID_PATTERN = re.compile(r'^[A-Za-z][A-Za-z\d_-]*(\.[A-Za-z][A-Za-z\d_-]*)*$')

# One dimension position of a data key: a value, or values joined by '+'
KEY_SEGMENT_PATTERN = re.compile(r'^[A-Za-z\d_@$-]+(\+[A-Za-z\d_@$-]+)*$')

PERIOD_PATTERN = re.compile(
    r'^\d{4}-?((\d{2}(-\d{2})?)|A1|S[12]|Q[1-4]|T[1-3]|M(0[1-9]|1[0-2])'
    r'|W(0[1-9]|[1-4][0-9]|5[0-3])|D(0[0-9][1-9]|[1-2][0-9][0-9]|3[0-5][0-9]|36[0-6]))?$'
)


def validate_dataflow_id(dataflow_id: str) -> str:
    """
    Validate an SDMX dataflow identifier.

    Accepts a bare dataflow id, ``agencyID,id`` or the comma-delimited
    ``agencyID,id,version`` form used in data queries. Two-part input is
    always read as agency and id.

    Returns:
        Validated dataflow ID (trimmed)

    Raises:
        ValidationError: If the dataflow ID is invalid
    """
    dataflow_id = dataflow_id.strip()

    if not dataflow_id:
        raise ValidationError("Dataflow ID cannot be empty", field="dataflow_id")

    if len(dataflow_id) > 200:
        raise ValidationError(
            "Dataflow ID too long (max 200 characters)",
            field="dataflow_id"
        )

    if not DATAFLOW_ID_PATTERN.match(dataflow_id):
        raise ValidationError(
            "Dataflow ID contains invalid characters. Use an ID like 'C21_G01_LGA' or 'ABS,C21_G01_LGA,1.0.0'.",
            field="dataflow_id"
        )

    return dataflow_id


def validate_data_key(data_key: str) -> str:
    """Validate SDMX key syntax ("all", or dimension values joined by '.' and '+')."""
    data_key = data_key.strip()
    if not data_key or data_key == "all":
        return "all"

    if not all(KEY_SEGMENT_PATTERN.match(part) for part in data_key.split(".") if part):
        raise ValidationError(
            f"Invalid data key: '{data_key}'. Use 'all' or dot-separated dimension values, e.g. '1.AUS.Q'.",
            field="data_key"
        )
    return data_key


def validate_agency_id(agency_id: str) -> str:
    agency_id = agency_id.strip()
    if not AGENCY_ID_PATTERN.match(agency_id):
        raise ValidationError(f"Invalid agency ID: '{agency_id}'", field="agency_id")
    return agency_id


def validate_period(period: Optional[str], field: str = "period") -> Optional[str]:
    """
    Validate a period bound such as '2021', '2021-Q3' or '2021-06'.

    Returns:
        The trimmed period, or None if none was given
    """
    if period is None:
        return None

    period = period.strip()
    if not period:
        return None

    if not PERIOD_PATTERN.match(period):
        raise ValidationError(
            f"Invalid period: '{period}'. Use ISO 8601 (e.g. '2021-06') or SDMX periods (e.g. '2021-Q3').",
            field=field
        )
    return period


def ensure_directory_exists(path: str) -> None:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists
    """
    if path:
        os.makedirs(path, exist_ok=True)
