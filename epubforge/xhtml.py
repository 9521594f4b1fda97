"""
XHTML documents built from section body fragments.
"""

import re
from typing import Iterator, Optional

from lxml import etree

from .errors import FragmentInvalidError

XHTML_NS = "http://www.w3.org/1999/xhtml"
EPUB_NS = "http://www.idpf.org/2007/ops"

_TEMPLATE = (
    '<html xmlns="{xhtml}" xmlns:epub="{epub}">'
    '<head><title></title></head>'
    '<body>{body}</body>'
    '</html>'
)

_BODY_OPEN_RE = re.compile(r'^<body\b[^>]*?(/?)>')


def _local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


class XhtmlDocument:
    """A section document: fixed head, caller-supplied body."""

    def __init__(self, body: str):
        parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)
        try:
            self.root = etree.fromstring(_TEMPLATE.format(xhtml=XHTML_NS, epub=EPUB_NS, body=body), parser)
        except etree.XMLSyntaxError as e:
            raise FragmentInvalidError(body, e) from e
        self.head = self.root.find(f"{{{XHTML_NS}}}head")
        self.body = self.root.find(f"{{{XHTML_NS}}}body")
        self._title = self.head.find(f"{{{XHTML_NS}}}title")
        self.css_path: Optional[str] = None

    @property
    def title(self) -> str:
        return self._title.text or ""

    def set_title(self, title: str) -> None:
        self._title.text = title or None

    def set_css(self, css_path: str) -> None:
        """Link a stylesheet (relative path as returned by add_css)."""
        for link in self.head.findall(f"{{{XHTML_NS}}}link"):
            self.head.remove(link)
        etree.SubElement(self.head, f"{{{XHTML_NS}}}link",
                         rel="stylesheet", type="text/css", href=css_path)
        self.css_path = css_path

    def iter_images(self) -> Iterator[etree._Element]:
        """Yield every <img> element of the body in document order."""
        for element in self.body.iter():
            if _local_name(element).lower() == "img":
                yield element

    @property
    def body_xml(self) -> str:
        """The body content serialized back to a fragment string."""
        serialized = etree.tostring(self.body, encoding="unicode", with_tail=False)
        match = _BODY_OPEN_RE.match(serialized)
        if match is None or match.group(1):
            return ""
        return serialized[match.end():-len("</body>")]

    def to_string(self) -> bytes:
        """Serialize the full document with XML declaration and doctype."""
        return etree.tostring(self.root, xml_declaration=True, encoding="utf-8",
                              doctype="<!DOCTYPE html>")
