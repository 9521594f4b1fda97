"""
Detection of the EPUB manifest properties a section body needs.

Supported: ``svg``, ``mathml`` and ``scripted``. ``remote-resources`` and
``switch`` (deprecated) are not detected.
"""

from typing import List

from lxml import etree

MATHML_NS = "http://www.w3.org/1998/Math/MathML"

PROP_SVG = "svg"
PROP_MATHML = "mathml"
PROP_SCRIPTED = "scripted"

# Neutral container so a body with several top-level elements is one document
_OPEN = "<epubforge-body>"
_CLOSE = "</epubforge-body>"


def _property_for(element: etree._Element) -> str:
    qname = etree.QName(element)
    name = qname.localname.lower()
    if name == "svg":
        return PROP_SVG
    if name == "math" and qname.namespace == MATHML_NS:
        return PROP_MATHML
    if name == "script":
        return PROP_SCRIPTED
    return ""


def properties_from_body(body: str) -> str:
    """
    Scan a body fragment and return its manifest properties.

    The fragment is pull-parsed element by element. Scanning stops at the
    first token that does not parse; properties found up to that point are
    still returned.

    Returns:
        Space-joined properties in the order they were first seen, "" if none
    """
    parser = etree.XMLPullParser(events=("start",), resolve_entities=False, no_network=True)
    try:
        parser.feed(_OPEN)
        parser.feed(body)
        parser.feed(_CLOSE)
        parser.close()
    except etree.XMLSyntaxError:
        pass

    found: List[str] = []
    for _event, element in parser.read_events():
        prop = _property_for(element)
        if prop and prop not in found:
            found.append(prop)
    return " ".join(found)
