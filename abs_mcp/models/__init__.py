"""Domain records and pydantic input models."""
from .dataflow import DataFlow, DataFlowCache, StructureRef
from .inputs import (
    DataFormat,
    DataDetail,
    StructureDetail,
    StructureType,
    ReferenceScope,
    DataQueryOptions,
    ListDataflowsInput,
    SearchDataflowsInput,
    DataflowIdInput,
    ListStructuresInput,
    GetDataInput,
    QueryDatasetInput,
)

__all__ = [
    "DataFlow",
    "DataFlowCache",
    "StructureRef",
    "DataFormat",
    "DataDetail",
    "StructureDetail",
    "StructureType",
    "ReferenceScope",
    "DataQueryOptions",
    "ListDataflowsInput",
    "SearchDataflowsInput",
    "DataflowIdInput",
    "ListStructuresInput",
    "GetDataInput",
    "QueryDatasetInput",
]
