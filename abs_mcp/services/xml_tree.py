"""
SDMX-ML to nested dictionary decoding.

The ABS structure and data endpoints answer in SDMX-ML. Rather than walking
the ElementTree with namespace maps at every call site, responses are decoded
once into plain dictionaries:

    - element names lose their namespace prefix ("str:Dataflow" -> "Dataflow")
    - attributes become keys of their element's dictionary ("agencyID")
    - element text lives under the reserved "_text" key
    - an element with no attributes and no children decodes to its text
    - repeated siblings become a list; a single child stays a bare value

Example:
    >>> parse_xml('<Dataflows><Dataflow id="CPI"><Name xml:lang="en">CPI</Name></Dataflow></Dataflows>')
    {'Dataflows': {'Dataflow': {'id': 'CPI', 'Name': {'lang': 'en', '_text': 'CPI'}}}}
"""
import xml.etree.ElementTree as ET
from typing import Any, Union

TEXT_KEY = "_text"


def parse_xml(content: Union[str, bytes]) -> dict[str, Any]:
    """
    Decode an XML document into a nested dictionary keyed by its root element.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well-formed
    """
    root = ET.fromstring(content)
    return {local_name(root.tag): _decode_element(root)}


def local_name(tag: str) -> str:
    """Strip a '{namespace}' prefix from an element or attribute name."""
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _decode_element(elem: ET.Element) -> Any:
    node: dict[str, Any] = {}
    for name, value in elem.attrib.items():
        node[local_name(name)] = value

    repeated: set[str] = set()
    for child in elem:
        name = local_name(child.tag)
        value = _decode_element(child)
        if name not in node:
            node[name] = value
        elif name in repeated:
            node[name].append(value)
        else:
            node[name] = [node[name], value]
            repeated.add(name)

    text = (elem.text or "").strip()
    if not node:
        return text
    if text:
        node[TEXT_KEY] = text
    return node


def as_list(value: Any) -> list:
    """
    Normalize a decoded value that may be absent, single or repeated.

    None becomes an empty list, a bare value a one-element list, and a list
    passes through unchanged.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_of(value: Any, lang: str = "en") -> str:
    """
    Read the text of a decoded text-bearing element such as Name or Description.

    Handles the bare-string, mapping-with-_text and multilingual-list shapes,
    preferring the entry in ``lang``. Missing text yields an empty string.
    """
    entries = as_list(value)
    if not entries:
        return ""

    chosen = entries[0]
    for entry in entries:
        if isinstance(entry, dict) and entry.get("lang") == lang:
            chosen = entry
            break

    if isinstance(chosen, dict):
        text = chosen.get(TEXT_KEY)
        return text if isinstance(text, str) else ""
    if isinstance(chosen, str):
        return chosen
    return ""
