"""
Pydantic models for abs-mcp tools and data queries.

These models provide validation and documentation for tool parameters, and
carry the SDMX query options that end up as REST query parameters.
"""
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class DataFormat(str, Enum):
    """Response formats accepted by the ABS data endpoint."""
    CSV_WITH_LABELS = "csvfilewithlabels"
    CSV = "csvfile"
    JSON = "jsondata"
    GENERIC_XML = "genericdata"
    STRUCTURE_SPECIFIC_XML = "structurespecificdata"

    @property
    def is_csv(self) -> bool:
        return self.value.startswith("csv")


class DataDetail(str, Enum):
    """How much of each series the data endpoint returns."""
    FULL = "full"
    DATA_ONLY = "dataonly"
    SERIES_KEYS_ONLY = "serieskeysonly"
    NO_DATA = "nodata"


class StructureDetail(str, Enum):
    """Detail levels for structure queries."""
    FULL = "full"
    ALL_STUBS = "allstubs"
    REFERENCE_STUBS = "referencestubs"
    REFERENCE_PARTIAL = "referencepartial"
    ALL_COMPLETE_STUBS = "allcompletestubs"
    REFERENCE_COMPLETE_STUBS = "referencecompletestubs"


class StructureType(str, Enum):
    """Structural metadata resources served under /<structureType>/<agencyId>."""
    DATASTRUCTURE = "datastructure"
    DATAFLOW = "dataflow"
    CODELIST = "codelist"
    CONCEPTSCHEME = "conceptscheme"
    CATEGORYSCHEME = "categoryscheme"
    CONTENTCONSTRAINT = "contentconstraint"
    ACTUALCONSTRAINT = "actualconstraint"
    AGENCYSCHEME = "agencyscheme"
    CATEGORISATION = "categorisation"
    HIERARCHICALCODELIST = "hierarchicalcodelist"


class ReferenceScope(str, Enum):
    """Which related artefacts a structure query also returns."""
    NONE = "none"
    PARENTS = "parents"
    PARENTS_AND_SIBLINGS = "parentsandsiblings"
    CHILDREN = "children"
    DESCENDANTS = "descendants"
    ALL = "all"
    DATASTRUCTURE = "datastructure"
    DATAFLOW = "dataflow"
    CODELIST = "codelist"
    CONCEPTSCHEME = "conceptscheme"
    CATEGORYSCHEME = "categoryscheme"
    CONTENTCONSTRAINT = "contentconstraint"
    ACTUALCONSTRAINT = "actualconstraint"
    AGENCYSCHEME = "agencyscheme"
    CATEGORISATION = "categorisation"
    HIERARCHICALCODELIST = "hierarchicalcodelist"


class DataQueryOptions(BaseModel):
    """
    Options for an observation data request.

    Field names follow Python style; ``to_params`` produces the camelCase
    query parameters the SDMX REST API expects. ``dimension_at_observation``
    is "TIME_PERIOD", "AllDimensions" or any dimension id of the dataflow.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)
    start_period: Optional[str] = Field(default=None, description="Start of the period range (e.g. '2020', '2020-Q1')")
    end_period: Optional[str] = Field(default=None, description="End of the period range (e.g. '2023-12')")
    format: Optional[DataFormat] = Field(default=None, description="Response format (default: jsondata)")
    detail: Optional[DataDetail] = Field(default=None, description="Amount of information returned")
    dimension_at_observation: Optional[str] = Field(default=None, description="'TIME_PERIOD', 'AllDimensions' or a dimension id")

    def to_params(self) -> dict[str, str]:
        """Query parameters for the options that are set, without ``format``."""
        params = {}
        if self.start_period:
            params["startPeriod"] = self.start_period
        if self.end_period:
            params["endPeriod"] = self.end_period
        if self.detail is not None:
            params["detail"] = self.detail.value
        if self.dimension_at_observation:
            params["dimensionAtObservation"] = self.dimension_at_observation
        return params


class ListDataflowsInput(BaseModel):
    """Input model for listing dataflows."""
    model_config = ConfigDict(str_strip_whitespace=True)
    force_refresh: bool = Field(default=False, description="Refetch the listing from ABS even if the cache is fresh")
    top: int = Field(default=50, ge=1, le=5000, description="Number of dataflows to return")
    skip: int = Field(default=0, ge=0, description="Number of dataflows to skip for pagination")


class SearchDataflowsInput(BaseModel):
    """Input model for searching dataflows."""
    model_config = ConfigDict(str_strip_whitespace=True)
    query: str = Field(..., min_length=1, description="Search term (e.g., 'census', 'labour force')")
    top: int = Field(default=20, ge=1, le=500, description="Number of matches to return")


class DataflowIdInput(BaseModel):
    """Input model for operations that only need a dataflow ID."""
    model_config = ConfigDict(str_strip_whitespace=True)
    dataflow_id: str = Field(..., min_length=1, description="Dataflow ID (e.g., 'C21_G01_LGA')")


class ListStructuresInput(BaseModel):
    """Input model for structural metadata queries."""
    model_config = ConfigDict(str_strip_whitespace=True)
    structure_type: StructureType = Field(..., description="Structure type, e.g. 'datastructure' or 'codelist'")
    agency_id: str = Field(default="ABS", min_length=1, description="Maintenance agency (default: ABS)")
    detail: Optional[StructureDetail] = Field(default=None, description="Detail level, e.g. 'allstubs'")
    references: Optional[ReferenceScope] = Field(default=None, description="Related artefacts to include, e.g. 'children'")


class GetDataInput(BaseModel):
    """Input model for observation data queries."""
    model_config = ConfigDict(str_strip_whitespace=True)
    dataflow_id: str = Field(..., min_length=1, description="Dataflow ID or 'agencyID,id,version' (e.g., 'ABS,CPI,1.1.0')")
    data_key: str = Field(default="all", description="SDMX data key, 'all' or dot-separated dimension values")
    start_period: Optional[str] = Field(default=None, description="Start period (e.g., '2020' or '2020-Q1')")
    end_period: Optional[str] = Field(default=None, description="End period (e.g., '2023-Q4')")
    format: DataFormat = Field(default=DataFormat.JSON, description="Response format")
    detail: Optional[DataDetail] = Field(default=None, description="Amount of information returned")
    dimension_at_observation: Optional[str] = Field(default=None, description="'TIME_PERIOD', 'AllDimensions' or a dimension id")
    compact: bool = Field(default=True, description="Summarise large CSV results")


class QueryDatasetInput(BaseModel):
    """Input model for the one-shot dataset query."""
    model_config = ConfigDict(str_strip_whitespace=True)
    dataset_id: str = Field(..., min_length=1, description="ID of the dataset to query (e.g., C21_G01_LGA)")
