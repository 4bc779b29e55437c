"""Service modules for abs-mcp server."""
from .http_client import HTTPClientManager
from .xml_tree import parse_xml, as_list, text_of
from .abs_client import ABSApiClient, accept_header_for
from .dataflows import DataFlowService, extract_dataflows

__all__ = [
    "HTTPClientManager",
    "parse_xml",
    "as_list",
    "text_of",
    "ABSApiClient",
    "accept_header_for",
    "DataFlowService",
    "extract_dataflows",
]
