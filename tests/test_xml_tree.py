"""
Tests for SDMX-ML decoding helpers.
"""
import xml.etree.ElementTree as ET

import pytest

from abs_mcp.services.xml_tree import parse_xml, as_list, text_of, local_name


class TestParseXml:
    """Tests for parse_xml."""

    def test_namespaces_stripped_and_attributes_flattened(self, dataflows_xml):
        tree = parse_xml(dataflows_xml)
        flows = tree["Structure"]["Structures"]["Dataflows"]["Dataflow"]

        assert isinstance(flows, list)
        assert flows[0]["id"] == "C21_T01_LGA"
        assert flows[0]["agencyID"] == "ABS"
        assert flows[0]["isFinal"] == "true"

    def test_text_under_reserved_key(self, dataflows_xml):
        tree = parse_xml(dataflows_xml)
        name = tree["Structure"]["Structures"]["Dataflows"]["Dataflow"][1]["Name"]
        assert name == {"lang": "en", "_text": "Consumer Price Index (CPI) 17th Series"}

    def test_text_only_element_is_bare_string(self, dataflows_xml):
        tree = parse_xml(dataflows_xml)
        assert tree["Structure"]["Header"]["ID"] == "IDREF1"

    def test_single_child_is_not_wrapped(self, single_dataflow_xml):
        tree = parse_xml(single_dataflow_xml)
        flow = tree["Structure"]["Structures"]["Dataflows"]["Dataflow"]
        assert isinstance(flow, dict)
        assert flow["id"] == "LF"

    def test_three_siblings_form_one_list(self):
        tree = parse_xml("<Codes><Code id='1'/><Code id='2'/><Code id='3'/></Codes>")
        assert [c["id"] for c in tree["Codes"]["Code"]] == ["1", "2", "3"]

    def test_empty_element(self):
        assert parse_xml("<Dataflows/>") == {"Dataflows": ""}

    def test_accepts_bytes(self):
        assert parse_xml(b"<a><b>x</b></a>") == {"a": {"b": "x"}}

    def test_malformed_raises_parse_error(self):
        with pytest.raises(ET.ParseError):
            parse_xml("<Structure><Dataflows></Structure>")


class TestHelpers:
    """Tests for as_list, text_of and local_name."""

    def test_local_name(self):
        assert local_name("{http://example.org/ns}Dataflow") == "Dataflow"
        assert local_name("Dataflow") == "Dataflow"

    def test_as_list(self):
        assert as_list(None) == []
        assert as_list({"id": "A"}) == [{"id": "A"}]
        assert as_list([1, 2]) == [1, 2]

    def test_text_of_shapes(self):
        assert text_of(None) == ""
        assert text_of("Plain") == "Plain"
        assert text_of({"lang": "en", "_text": "Mapped"}) == "Mapped"
        assert text_of({"lang": "en"}) == ""

    def test_text_of_prefers_english(self):
        names = [
            {"lang": "fr", "_text": "Indice des prix"},
            {"lang": "en", "_text": "Price index"},
        ]
        assert text_of(names) == "Price index"

    def test_text_of_falls_back_to_first(self):
        names = [{"lang": "fr", "_text": "Indice"}, {"lang": "de", "_text": "Index"}]
        assert text_of(names) == "Indice"
