"""
Pytest configuration and fixtures for abs-mcp tests.
"""
import pytest
import os
import sys
from unittest.mock import AsyncMock

import httpx

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

TEST_BASE_URL = "https://test.abs.example/rest"

DATAFLOWS_XML = """<?xml version="1.0" encoding="utf-8"?>
<message:Structure xmlns:message="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/message"
                   xmlns:structure="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/structure"
                   xmlns:common="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/common">
  <message:Header>
    <message:ID>IDREF1</message:ID>
    <message:Test>false</message:Test>
  </message:Header>
  <message:Structures>
    <structure:Dataflows>
      <structure:Dataflow id="C21_T01_LGA" agencyID="ABS" version="1.0.0" isFinal="true">
        <common:Name xml:lang="en">T01 Selected Person Characteristics by Sex (LGA)</common:Name>
        <common:Description xml:lang="en">Census 2021 TableBuilder table</common:Description>
        <structure:Structure>
          <Ref id="C21_T01_LGA" version="1.0.0" agencyID="ABS" package="datastructure" class="DataStructure"/>
        </structure:Structure>
      </structure:Dataflow>
      <structure:Dataflow id="CPI" agencyID="ABS" version="1.1.0" isFinal="true">
        <common:Name xml:lang="en">Consumer Price Index (CPI) 17th Series</common:Name>
      </structure:Dataflow>
    </structure:Dataflows>
  </message:Structures>
</message:Structure>
"""

SINGLE_DATAFLOW_XML = """<?xml version="1.0" encoding="utf-8"?>
<message:Structure xmlns:message="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/message"
                   xmlns:structure="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/structure"
                   xmlns:common="http://www.sdmx.org/resources/sdmxml/schemas/v2_1/common">
  <message:Structures>
    <structure:Dataflows>
      <structure:Dataflow id="LF" agencyID="ABS" version="1.0.0">
        <common:Name xml:lang="en">Labour Force</common:Name>
      </structure:Dataflow>
    </structure:Dataflows>
  </message:Structures>
</message:Structure>
"""


class MockContext:
    """Mock FastMCP context for testing tools."""

    def __init__(self):
        self.info_messages = []
        self.error_messages = []
        self.warning_messages = []

    async def info(self, msg: str):
        self.info_messages.append(msg)

    async def error(self, msg: str):
        self.error_messages.append(msg)

    async def warning(self, msg: str):
        self.warning_messages.append(msg)


@pytest.fixture
def mock_context():
    """Provide a mock context for tool testing."""
    return MockContext()


@pytest.fixture
def cache_file(tmp_path):
    """Cache file path inside a directory that does not exist yet."""
    return str(tmp_path / "cache" / "dataflows.json")


@pytest.fixture
def dataflows_xml():
    return DATAFLOWS_XML


@pytest.fixture
def single_dataflow_xml():
    return SINGLE_DATAFLOW_XML


@pytest.fixture
def dataflows_tree():
    from abs_mcp.services.xml_tree import parse_xml
    return parse_xml(DATAFLOWS_XML)


@pytest.fixture
def fake_client(dataflows_tree):
    """Stand-in for ABSApiClient that serves the two-dataflow listing."""
    client = AsyncMock()
    client.list_dataflow_structures.return_value = dataflows_tree
    return client


@pytest.fixture
def make_http_client():
    """
    Build an httpx.AsyncClient answering every request with ``handler``.

    The handler receives the httpx.Request and returns an httpx.Response.
    Every request is recorded on the returned client's ``requests`` list.
    """
    def factory(handler):
        requests = []

        def recording_handler(request):
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        client.requests = requests
        return client

    return factory


def get_fn(tool):
    """Extract the callable function from a FunctionTool wrapper."""
    if hasattr(tool, 'fn'):
        return tool.fn
    return tool
