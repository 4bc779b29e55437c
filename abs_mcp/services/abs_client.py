"""
ABS SDMX REST API client.

Translates three request intents into HTTP calls against the ABS Data API:

    - list_dataflow_structures: GET /dataflow
    - list_structures:          GET /<structureType>/<agencyId>
    - get_observation_data:     GET /data/<dataflowId>/<dataKey>

The Accept header of a data request is chosen from the requested format
through ACCEPT_HEADERS alone; the API ties the response schema to the
declared format, so callers never set it themselves.

Every failure (transport error, timeout, non-2xx status, undecodable body)
is raised as RemoteError. No retries are made.

Example:
    >>> client = ABSApiClient()
    >>> tree = await client.list_dataflow_structures()
    >>> csv_text = await client.get_observation_data(
    ...     "ABS,CPI,1.1.0", "all", DataQueryOptions(format=DataFormat.CSV))
"""
import logging
import xml.etree.ElementTree as ET
from typing import Any, Optional, Union

import httpx

from ..config import get_settings
from ..models import (
    DataFormat,
    DataQueryOptions,
    ReferenceScope,
    StructureDetail,
    StructureType,
)
from ..utils.errors import RemoteError
from .http_client import HTTPClientManager
from .xml_tree import parse_xml

logger = logging.getLogger(__name__)

STRUCTURE_MEDIA_TYPE = "application/vnd.sdmx.structure+xml;version=2.1"

ACCEPT_HEADERS = {
    DataFormat.CSV_WITH_LABELS: "text/csv",
    DataFormat.CSV: "text/csv",
    DataFormat.JSON: "application/vnd.sdmx.data+json",
    DataFormat.GENERIC_XML: "application/xml",
    DataFormat.STRUCTURE_SPECIFIC_XML: "application/vnd.sdmx.structurespecificdata+xml",
}
DEFAULT_ACCEPT = "application/xml"

# Upstream error bodies are only echoed back when they are this short
MAX_ERROR_DETAIL = 500


def accept_header_for(data_format: Optional[DataFormat]) -> str:
    """Accept header for a data request in the given format."""
    return ACCEPT_HEADERS.get(data_format, DEFAULT_ACCEPT)


class ABSApiClient:
    """
    Stateless client for the ABS SDMX REST API.

    Args:
        base_url: API root (default from settings)
        client: httpx.AsyncClient to use; the shared pooled client when omitted
        timeout: Per-request timeout in seconds (default from settings)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.base_url).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.default_agency = settings.default_agency
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HTTPClientManager.get_client()

    async def list_dataflow_structures(self) -> dict[str, Any]:
        """Fetch and decode the full dataflow listing."""
        logger.info("Fetching dataflows from ABS API")
        response = await self._request("/dataflow", headers={"Accept": STRUCTURE_MEDIA_TYPE})
        return self._decode_xml(response)

    async def list_structures(
        self,
        structure_type: Union[StructureType, str],
        agency_id: Optional[str] = None,
        detail: Optional[StructureDetail] = None,
        references: Optional[ReferenceScope] = None
    ) -> dict[str, Any]:
        """
        Fetch and decode structural metadata of one type for an agency.

        Args:
            structure_type: e.g. StructureType.CODELIST
            agency_id: Maintenance agency (default: settings.default_agency)
            detail: Optional detail level
            references: Optional related artefacts to include
        """
        structure_type = StructureType(structure_type).value
        agency_id = agency_id or self.default_agency
        logger.info(
            f"Fetching structures from ABS API: type={structure_type}, agency={agency_id}, "
            f"detail={detail}, references={references}"
        )

        params = {}
        if detail is not None:
            params["detail"] = StructureDetail(detail).value
        if references is not None:
            params["references"] = ReferenceScope(references).value

        response = await self._request(
            f"/{structure_type}/{agency_id}",
            params=params,
            headers={"Accept": STRUCTURE_MEDIA_TYPE}
        )
        return self._decode_xml(response)

    async def get_observation_data(
        self,
        dataflow_id: str,
        data_key: str = "all",
        options: Optional[DataQueryOptions] = None
    ) -> Union[str, dict[str, Any]]:
        """
        Fetch observation data for a dataflow.

        Args:
            dataflow_id: Dataflow id or 'agencyID,id,version' reference
            data_key: SDMX data key (default: 'all')
            options: Period bounds, format, detail and observation dimension

        Returns:
            The raw body for CSV formats, otherwise the decoded document
            (SDMX-JSON as parsed JSON, SDMX-ML as a nested dictionary)
        """
        options = options or DataQueryOptions()
        data_format = options.format or DataFormat.JSON
        logger.info(
            f"Fetching data from ABS API: dataflow={dataflow_id}, key={data_key}, "
            f"format={data_format.value}"
        )

        params = options.to_params()
        params["format"] = data_format.value

        response = await self._request(
            f"/data/{dataflow_id}/{data_key}",
            params=params,
            headers={"Accept": accept_header_for(options.format)}
        )

        if data_format.is_csv:
            return response.text
        if data_format == DataFormat.JSON and _is_json(response):
            return self._decode_json(response)
        return self._decode_xml(response)

    async def _request(
        self,
        path: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None
    ) -> httpx.Response:
        """Single GET attempt; every failure leaves here as RemoteError."""
        url = f"{self.base_url}{path}"
        client = await self._get_client()

        try:
            response = await client.get(url, params=params or None, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._to_remote_error(e, url) from e

        logger.debug(
            f"API response received: url={response.url}, status={response.status_code}, "
            f"size={len(response.content)}"
        )
        return response

    def _to_remote_error(self, error: httpx.HTTPError, url: str) -> RemoteError:
        status = None
        status_text = None
        details = {}

        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            status_text = error.response.reason_phrase or None
            url = str(error.request.url)
            message = f"ABS API request failed with status {status}"
            detail = error.response.text.strip()
            if detail and len(detail) <= MAX_ERROR_DETAIL:
                details["detail"] = detail
        elif isinstance(error, httpx.TimeoutException):
            message = f"ABS API request timed out after {self.timeout:g}s"
        else:
            message = f"ABS API request failed: {error}"

        logger.error(
            f"ABS API error: status={status}, status_text={status_text}, url={url}, message={message}"
        )
        return RemoteError(message, status=status, status_text=status_text, url=url, details=details)

    def _decode_xml(self, response: httpx.Response) -> dict[str, Any]:
        try:
            return parse_xml(response.content)
        except ET.ParseError as e:
            logger.error(f"Could not parse XML from {response.url}: {e}")
            raise RemoteError(
                f"ABS API returned malformed XML: {e}",
                status=response.status_code,
                status_text=response.reason_phrase or None,
                url=str(response.url)
            ) from e

    def _decode_json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            # JSONDecodeError, or UnicodeDecodeError for a body that is not UTF-8
            logger.error(f"Could not parse JSON from {response.url}: {e}")
            raise RemoteError(
                f"ABS API returned malformed JSON: {e}",
                status=response.status_code,
                status_text=response.reason_phrase or None,
                url=str(response.url)
            ) from e


def _is_json(response: httpx.Response) -> bool:
    # The API honours the format parameter over the Accept header
    if "json" in response.headers.get("Content-Type", ""):
        return True
    return response.content.lstrip()[:1] in (b"{", b"[")
