"""
Cover page handling.

A book has at most one cover: an image, a stylesheet and a title-less
wrapper section showing the image. Setting a new cover retires everything
the previous one registered before creating the replacements.
"""

import logging
import posixpath
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Callable

from .errors import FilenameAlreadyUsedError
from .fetcher import encode_data_url
from .media import MediaKind, ResourceStore
from .sections import SectionTree

logger = logging.getLogger(__name__)

DEFAULT_COVER_BODY = '<img src="{image_path}" alt="Cover Image" />'
DEFAULT_COVER_CSS_CONTENT = """body {
  background-color: #FFFFFF;
  margin-bottom: 0px;
  margin-left: 0px;
  margin-right: 0px;
  margin-top: 0px;
  text-align: center;
}
img {
  max-height: 100%;
  max-width: 100%;
}
"""
DEFAULT_COVER_CSS_FILENAME = "cover.css"
DEFAULT_COVER_XHTML_FILENAME = "cover.xhtml"


class CoverStatus(Enum):
    """Outcome of set_cover."""
    INSTALLED = "installed"
    DEGRADED = "degraded"  # default stylesheet could not be registered


@dataclass
class CoverState:
    """Names of everything the current cover registered ("" when unset)."""
    image_filename: str = ""
    css_filename: str = ""
    css_temp_source: str = ""
    xhtml_filename: str = ""

    @property
    def is_set(self) -> bool:
        return bool(self.xhtml_filename)


AddCss = Callable[[str, str], str]


class CoverManager:
    """Installs and replaces the cover of a book."""

    def __init__(self, sections: SectionTree, images: ResourceStore,
                 css: ResourceStore, add_css: AddCss):
        """
        Args:
            sections: The book's section forest
            images: The image store
            css: The stylesheet store
            add_css: Callable(source, filename) registering a stylesheet
        """
        self.sections = sections
        self.images = images
        self.css = css
        self._add_css = add_css
        self.state = CoverState()

    def set_cover(self, image_path: str, css_path: str = "") -> CoverStatus:
        """
        Set the cover from an already-added image.

        Args:
            image_path: Internal image path as returned by add_image
            css_path: Optional internal stylesheet path as returned by add_css;
                the default cover stylesheet is used without one

        Raises:
            FileRetrievalError: If the default stylesheet cannot be registered
            FragmentInvalidError: If the image path breaks the wrapper markup

        Returns:
            CoverStatus.DEGRADED when the cover had to go without its
            default stylesheet, CoverStatus.INSTALLED otherwise
        """
        if self.state.is_set:
            self._teardown(keep_image=posixpath.basename(image_path),
                           keep_css=posixpath.basename(css_path) if css_path else "")

        status = CoverStatus.INSTALLED
        self.state.image_filename = posixpath.basename(image_path)

        if not css_path:
            self.state.css_temp_source = encode_data_url(DEFAULT_COVER_CSS_CONTENT.encode("utf-8"), "text/css")
            css_path = self._add_default_css()
            if not css_path:
                status = CoverStatus.DEGRADED
        self.state.css_filename = posixpath.basename(css_path)

        body = DEFAULT_COVER_BODY.format(image_path=escape(image_path, quote=True))
        # The wrapper has no title so it stays out of the table of contents
        try:
            filename = self.sections.add(body, filename=DEFAULT_COVER_XHTML_FILENAME, css_path=css_path)
        except FilenameAlreadyUsedError:
            filename = self.sections.add(body, css_path=css_path)
        self.state.xhtml_filename = filename

        logger.info(f"Cover set: image={self.state.image_filename} page={filename}")
        return status

    def _add_default_css(self) -> str:
        source = self.state.css_temp_source
        try:
            return self._add_css(source, DEFAULT_COVER_CSS_FILENAME)
        except FilenameAlreadyUsedError:
            pass

        fallback = MediaKind.CSS.generated_name(len(self.css) + 1, ".css")
        try:
            return self._add_css(source, fallback)
        except FilenameAlreadyUsedError as e:
            logger.warning(f"Could not add default cover stylesheet: {e}")
            self.state.css_temp_source = ""
            return ""

    def _teardown(self, keep_image: str, keep_css: str) -> None:
        """Retire the current cover. Resources the new cover reuses are kept."""
        removed = self.sections.remove_root(self.state.xhtml_filename)
        if removed is None:
            logger.warning(f"Cover page {self.state.xhtml_filename} not found at root level")
        if self.state.image_filename != keep_image:
            self.images.remove(self.state.image_filename)
        if self.state.css_filename and self.state.css_filename != keep_css:
            self.css.remove(self.state.css_filename)
        self.state = CoverState()
