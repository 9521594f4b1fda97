"""
Embedding of externally referenced images into the book.

Every <img> of a section that points outside the package is downloaded,
registered as an image resource and rewritten to the internal path. A
source that cannot be fetched is logged and its tags are left as they are.
"""

import logging
import mimetypes
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from lxml import etree

from .errors import EpubError
from .fetcher import is_data_url, is_remote
from .media import MediaKind, ResourceStore, add_media
from .sections import Section

logger = logging.getLogger(__name__)

SRC = "src"
DATA_SRC = "data-src"


@dataclass
class EmbedReport:
    """What an embed_images run did."""
    embedded: List[Tuple[str, str]] = field(default_factory=list)  # (source, internal path)
    failed: List[str] = field(default_factory=list)
    skipped: int = 0

    @property
    def count(self) -> int:
        return len(self.embedded)


def primary_attribute(img: etree._Element) -> Optional[str]:
    """Return whichever of src / data-src comes first on the tag."""
    for name in img.attrib.keys():
        if name in (SRC, DATA_SRC):
            return name
    return None


def rewrite_image(img: etree._Element, primary: str, internal_path: str) -> None:
    """
    Point an <img> at its embedded copy.

    The tag ends up with ``src`` set to the internal path. If it carried both
    attributes, the value of the one that was not used for fetching is kept
    as ``data-src``.
    """
    secondary = img.get(DATA_SRC if primary == SRC else SRC)
    img.set(SRC, internal_path)
    if secondary is not None:
        img.set(DATA_SRC, secondary)
    elif DATA_SRC in img.attrib:
        del img.attrib[DATA_SRC]


class ImageEmbedder:
    """Downloads images referenced by sections and rewrites the references."""

    def __init__(self, fetcher, images: ResourceStore):
        self.fetcher = fetcher
        self.images = images

    def embed(self, sections: Iterable[Section]) -> EmbedReport:
        report = EmbedReport()
        for section in sections:
            self.embed_section(section, report)
        logger.info(f"Embedded {report.count} image(s), {len(report.failed)} failed")
        return report

    def embed_section(self, section: Section, report: EmbedReport) -> None:
        resolved: Dict[str, Optional[str]] = {}

        for img in list(section.xhtml.iter_images()):
            primary = primary_attribute(img)
            if primary is None:
                continue
            source = img.get(primary) or ""
            if not source or is_data_url(source) or self.is_embedded(source):
                report.skipped += 1
                continue

            # Each source is fetched once per section
            if source not in resolved:
                resolved[source] = self._register(source, section.filename, report)
            internal_path = resolved[source]
            if internal_path is not None:
                rewrite_image(img, primary, internal_path)

    def is_embedded(self, source: str) -> bool:
        """True if the source already points at a registered image."""
        folder, filename = posixpath.split(source)
        return folder == posixpath.join("..", MediaKind.IMAGE.folder) and filename in self.images

    def image_extension(self, source: str) -> str:
        """Extension from the URL path, or from the Content-Type of a HEAD request."""
        extension = posixpath.splitext(urlparse(source).path)[1]
        if extension or not is_remote(source):
            return extension
        try:
            content_type = self.fetcher.probe_content_type(source)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Can't get image headers for {source}: {e}")
            return ""
        if not content_type:
            return ""
        return mimetypes.guess_extension(content_type) or ""

    def _register(self, source: str, section_filename: str, report: EmbedReport) -> Optional[str]:
        filename = MediaKind.IMAGE.generated_name(len(self.images) + 1, self.image_extension(source))
        try:
            internal_path = add_media(self.fetcher, self.images, source, filename)
        except EpubError as e:
            logger.warning(f"Can't add image to the epub ({section_filename}): {e}")
            report.failed.append(source)
            return None
        report.embedded.append((source, internal_path))
        return internal_path
