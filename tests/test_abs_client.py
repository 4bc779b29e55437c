"""
Tests for the ABS SDMX REST client.

All HTTP traffic goes through httpx.MockTransport; no live network access.
"""
import json

import httpx
import pytest

from abs_mcp.models import (
    DataFormat,
    DataDetail,
    DataQueryOptions,
    StructureDetail,
    StructureType,
    ReferenceScope,
)
from abs_mcp.services.abs_client import (
    ABSApiClient,
    STRUCTURE_MEDIA_TYPE,
    accept_header_for,
)
from abs_mcp.utils.errors import RemoteError, ErrorCategory
from conftest import TEST_BASE_URL

SDMX_JSON = {"data": {"dataSets": [{"observations": {"0:0": [101.2]}}]}}

CSV_BODY = "DATAFLOW,MEASURE,TIME_PERIOD,OBS_VALUE\nABS:CPI(1.1.0),1,2023-Q4,136.1\n"


def xml_response(body):
    return httpx.Response(
        200,
        content=body.encode("utf-8"),
        headers={"Content-Type": "application/vnd.sdmx.structure+xml; charset=utf-8"}
    )


class TestAcceptHeaders:
    """Tests for the format to Accept mapping."""

    @pytest.mark.parametrize("data_format,expected", [
        (DataFormat.CSV_WITH_LABELS, "text/csv"),
        (DataFormat.CSV, "text/csv"),
        (DataFormat.JSON, "application/vnd.sdmx.data+json"),
        (DataFormat.GENERIC_XML, "application/xml"),
        (DataFormat.STRUCTURE_SPECIFIC_XML, "application/vnd.sdmx.structurespecificdata+xml"),
        (None, "application/xml"),
    ])
    def test_accept_header_for(self, data_format, expected):
        assert accept_header_for(data_format) == expected


class TestListDataflowStructures:
    """Tests for the dataflow listing request."""

    @pytest.mark.asyncio
    async def test_requests_dataflow_listing(self, make_http_client, dataflows_xml):
        http = make_http_client(lambda request: xml_response(dataflows_xml))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        tree = await client.list_dataflow_structures()

        request = http.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{TEST_BASE_URL}/dataflow"
        assert request.headers["Accept"] == STRUCTURE_MEDIA_TYPE
        flows = tree["Structure"]["Structures"]["Dataflows"]["Dataflow"]
        assert [flow["id"] for flow in flows] == ["C21_T01_LGA", "CPI"]

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url(self, make_http_client, dataflows_xml):
        http = make_http_client(lambda request: xml_response(dataflows_xml))
        client = ABSApiClient(base_url=TEST_BASE_URL + "/", client=http)

        await client.list_dataflow_structures()

        assert str(http.requests[0].url) == f"{TEST_BASE_URL}/dataflow"


class TestListStructures:
    """Tests for structural metadata requests."""

    @pytest.mark.asyncio
    async def test_path_and_params(self, make_http_client):
        http = make_http_client(lambda request: xml_response("<Structure><Codelists/></Structure>"))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        tree = await client.list_structures(
            StructureType.CODELIST,
            "ABS",
            detail=StructureDetail.ALL_STUBS,
            references=ReferenceScope.NONE
        )

        request = http.requests[0]
        assert request.url.path == "/rest/codelist/ABS"
        assert request.url.params["detail"] == "allstubs"
        assert request.url.params["references"] == "none"
        assert request.headers["Accept"] == STRUCTURE_MEDIA_TYPE
        assert tree == {"Structure": {"Codelists": ""}}

    @pytest.mark.asyncio
    async def test_unset_options_are_not_sent(self, make_http_client):
        http = make_http_client(lambda request: xml_response("<Structure/>"))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        await client.list_structures("datastructure")

        request = http.requests[0]
        assert str(request.url) == f"{TEST_BASE_URL}/datastructure/ABS"
        assert "detail" not in request.url.params
        assert "references" not in request.url.params

    @pytest.mark.asyncio
    async def test_unknown_structure_type_rejected(self, make_http_client):
        http = make_http_client(lambda request: xml_response("<Structure/>"))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(ValueError):
            await client.list_structures("spreadsheet")
        assert http.requests == []


class TestGetObservationData:
    """Tests for observation data requests."""

    @pytest.mark.asyncio
    async def test_default_format_is_jsondata(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(200, json=SDMX_JSON))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        result = await client.get_observation_data("ABS,CPI,1.1.0")

        request = http.requests[0]
        assert request.url.path == "/rest/data/ABS,CPI,1.1.0/all"
        assert request.url.params["format"] == "jsondata"
        assert request.headers["Accept"] == "application/xml"
        assert result == SDMX_JSON

    @pytest.mark.asyncio
    async def test_json_format(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(
            200,
            content=json.dumps(SDMX_JSON).encode(),
            headers={"Content-Type": "application/vnd.sdmx.data+json; charset=utf-8"}
        ))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        result = await client.get_observation_data(
            "CPI", "1.10001.10.50.Q", DataQueryOptions(format=DataFormat.JSON)
        )

        request = http.requests[0]
        assert request.url.path == "/rest/data/CPI/1.10001.10.50.Q"
        assert request.headers["Accept"] == "application/vnd.sdmx.data+json"
        assert result == SDMX_JSON

    @pytest.mark.asyncio
    async def test_csv_is_returned_raw(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(
            200, text=CSV_BODY, headers={"Content-Type": "text/csv"}
        ))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        result = await client.get_observation_data(
            "CPI",
            options=DataQueryOptions(
                format=DataFormat.CSV_WITH_LABELS,
                start_period="2020-Q1",
                end_period="2023-Q4",
                detail=DataDetail.DATA_ONLY
            )
        )

        params = http.requests[0].url.params
        assert params["format"] == "csvfilewithlabels"
        assert params["startPeriod"] == "2020-Q1"
        assert params["endPeriod"] == "2023-Q4"
        assert params["detail"] == "dataonly"
        assert http.requests[0].headers["Accept"] == "text/csv"
        assert result == CSV_BODY

    @pytest.mark.asyncio
    async def test_xml_formats_are_decoded(self, make_http_client):
        body = "<GenericData><DataSet><Series><Obs><ObsValue value='1.5'/></Obs></Series></DataSet></GenericData>"
        http = make_http_client(lambda request: xml_response(body))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        result = await client.get_observation_data(
            "CPI", options=DataQueryOptions(format=DataFormat.GENERIC_XML)
        )

        assert http.requests[0].headers["Accept"] == "application/xml"
        assert result["GenericData"]["DataSet"]["Series"]["Obs"]["ObsValue"] == {"value": "1.5"}


class TestErrors:
    """Every failure surfaces as RemoteError."""

    @pytest.mark.asyncio
    async def test_http_status_error(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(404, text="NoResultsFound"))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.get_observation_data("NOPE")

        error = exc_info.value
        assert error.status == 404
        assert error.status_text == "Not Found"
        assert error.url.startswith(f"{TEST_BASE_URL}/data/NOPE/all")
        assert error.category == ErrorCategory.CLIENT
        assert error.details["detail"] == "NoResultsFound"

    @pytest.mark.asyncio
    async def test_server_error_category(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(503))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.list_dataflow_structures()

        assert exc_info.value.status == 503
        assert exc_info.value.category == ErrorCategory.SERVER

    @pytest.mark.asyncio
    async def test_timeout_has_no_status(self, make_http_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        http = make_http_client(handler)
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http, timeout=5)

        with pytest.raises(RemoteError) as exc_info:
            await client.list_dataflow_structures()

        error = exc_info.value
        assert error.status is None
        assert error.status_text is None
        assert error.url == f"{TEST_BASE_URL}/dataflow"
        assert "timed out after 5s" in error.message
        assert error.category == ErrorCategory.NETWORK

    @pytest.mark.asyncio
    async def test_connection_error(self, make_http_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = make_http_client(handler)
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.list_structures(StructureType.CODELIST)

        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_xml(self, make_http_client):
        http = make_http_client(lambda request: xml_response("<Structure><Dataflows>"))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.list_dataflow_structures()

        assert exc_info.value.status == 200
        assert "malformed XML" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_json(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(
            200, content=b"{not json", headers={"Content-Type": "application/json"}
        ))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.get_observation_data("CPI")

        assert "malformed JSON" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_json_body_not_utf8(self, make_http_client):
        http = make_http_client(lambda request: httpx.Response(
            200, content=b'{"a": "\xff\xfe"}', headers={"Content-Type": "application/json"}
        ))
        client = ABSApiClient(base_url=TEST_BASE_URL, client=http)

        with pytest.raises(RemoteError) as exc_info:
            await client.get_observation_data("CPI")

        assert exc_info.value.status == 200
        assert "malformed JSON" in exc_info.value.message
