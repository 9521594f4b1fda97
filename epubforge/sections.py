"""
Section forest of an EPUB: the nested table of contents.

Section filenames are unique across the whole forest, not only among
siblings. Nodes are addressed by index paths (root index, child index, ...),
which serve both to check that a parent exists and to insert under it.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import FilenameAlreadyUsedError, ParentDoesNotExistError
from .properties import properties_from_body
from .xhtml import XhtmlDocument

logger = logging.getLogger(__name__)

SECTION_FILE_FORMAT = "section%04d.xhtml"
SECTION_EXTENSION = ".xhtml"

IndexPath = Tuple[int, ...]


@dataclass
class Section:
    """One section document and its nested subsections."""
    filename: str
    xhtml: XhtmlDocument
    children: List["Section"] = field(default_factory=list)
    properties: str = ""

    @property
    def title(self) -> str:
        return self.xhtml.title

    @property
    def body(self) -> str:
        return self.xhtml.body_xml


class SectionTree:
    """Ordered forest of sections."""

    def __init__(self):
        self.roots: List[Section] = []

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def walk(self) -> Iterator[Tuple[IndexPath, Section]]:
        """Depth-first, parents before children, each subtree before the next sibling."""
        stack: List[Tuple[IndexPath, Section]] = [
            ((i,), s) for i, s in reversed(list(enumerate(self.roots)))
        ]
        while stack:
            path, section = stack.pop()
            yield path, section
            for i in reversed(range(len(section.children))):
                stack.append((path + (i,), section.children[i]))

    def filenames(self) -> Dict[str, int]:
        """Map every filename in the forest to its 1-based depth-first ordinal."""
        return {section.filename: ordinal for ordinal, (_, section) in enumerate(self.walk(), start=1)}

    def locate(self, filename: str) -> Optional[IndexPath]:
        """Return the index path of the section with this filename, if any."""
        for path, section in self.walk():
            if section.filename == filename:
                return path
        return None

    def get(self, path: IndexPath) -> Section:
        """Resolve an index path to its section."""
        nodes = self.roots
        section = None
        for index in path:
            section = nodes[index]
            nodes = section.children
        if section is None:
            raise IndexError("empty index path")
        return section

    def resolve_filename(self, filename: str = "") -> str:
        """
        Pick the filename of a new section.

        Without a filename, ``section0001.xhtml``, ``section0002.xhtml``, ...
        is tried until one is unused. A caller filename gets the ``.xhtml``
        extension appended when it lacks it.

        Raises:
            FilenameAlreadyUsedError: If the caller filename is taken
        """
        used = self.filenames()
        if not filename:
            index = 1
            while SECTION_FILE_FORMAT % index in used:
                index += 1
            return SECTION_FILE_FORMAT % index

        if posixpath.splitext(filename)[1] != SECTION_EXTENSION:
            filename += SECTION_EXTENSION
        if filename in used:
            raise FilenameAlreadyUsedError(filename)
        return filename

    def add(self, body: str, title: str = "", filename: str = "",
            css_path: str = "", parent_filename: str = "") -> str:
        """
        Add a section at the root of the forest or under a parent section.

        Args:
            body: XHTML that goes between the <body> tags
            title: Table of contents entry; sections without one are not listed
            filename: Optional internal filename
            css_path: Optional stylesheet path as returned by add_css
            parent_filename: Filename of the parent section ("" for root level)

        Raises:
            ParentDoesNotExistError: If the parent filename is not in the forest
            FilenameAlreadyUsedError: If the filename is taken
            FragmentInvalidError: If the body is not well-formed XHTML

        Returns:
            The filename of the new section
        """
        parent_path: Optional[IndexPath] = None
        if parent_filename:
            parent_path = self.locate(parent_filename)
            if parent_path is None:
                raise ParentDoesNotExistError(parent_filename)

        filename = self.resolve_filename(filename)

        xhtml = XhtmlDocument(body)
        xhtml.set_title(title)
        if css_path:
            xhtml.set_css(css_path)

        section = Section(filename=filename, xhtml=xhtml, properties=properties_from_body(body))

        if parent_path is None:
            self.roots.append(section)
        else:
            self.get(parent_path).children.append(section)

        logger.debug(f"Added section {filename}" + (f" under {parent_filename}" if parent_filename else ""))
        return filename

    def remove_root(self, filename: str) -> Optional[Section]:
        """Remove the first root-level section with this filename."""
        for i, section in enumerate(self.roots):
            if section.filename == filename:
                return self.roots.pop(i)
        return None
