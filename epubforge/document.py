"""
EPUB document assembly.

``EpubDocument`` owns everything a book is made of before it is written:
metadata, the section forest, the cover and one resource store per media
kind. Mutating methods are serialized on a per-document lock (held across
network fetches); getters read plain attributes.

Basic usage::

    book = EpubDocument("My title")
    book.set_author("Jane Doe")
    css = book.add_css("styles/book.css")
    book.add_section("<h1>Section 1</h1><p>This is a paragraph.</p>", "Section 1", css_path=css)
    book.write("My EPUB.epub")
"""

import functools
import logging
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config.settings import AppConfig
from .cover import CoverManager, CoverState, CoverStatus
from .embedder import EmbedReport, ImageEmbedder
from .fetcher import ResourceFetcher
from .media import MediaKind, ResourceStore, add_media
from .sections import Section, SectionTree
from .writer import EpubWriter

logger = logging.getLogger(__name__)

URN_UUID_PREFIX = "urn:uuid:"
DEFAULT_LANG = "en"


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class EpubDocument:
    """An EPUB 3 book under construction."""

    def __init__(self, title: str, *, fetcher=None, config: Optional[AppConfig] = None):
        """
        Args:
            title: Book title
            fetcher: Resource fetcher (defaults to a ResourceFetcher built from config)
            config: Application configuration
        """
        self.config = config or AppConfig()
        self.fetcher = fetcher or ResourceFetcher(self.config.fetch)
        self._lock = threading.RLock()

        max_length = self.config.book.max_filename_length
        self._stores: Dict[MediaKind, ResourceStore] = {
            kind: ResourceStore(kind, max_length) for kind in MediaKind
        }
        self._sections = SectionTree()
        self._cover = CoverManager(self._sections, self._stores[MediaKind.IMAGE],
                                   self._stores[MediaKind.CSS], self._add_css)

        self._title = ""
        self._author = ""
        self._identifier = ""
        self._lang = ""
        self._desc = ""
        self._ppd = ""

        self.set_identifier(URN_UUID_PREFIX + str(uuid.uuid4()))
        self.set_lang(self.config.book.default_lang or DEFAULT_LANG)
        self.set_title(title)
        logger.debug(f"New document {self._identifier}")

    # -- resources ---------------------------------------------------------

    @_locked
    def add_css(self, source: str, filename: str = "") -> str:
        """
        Add a stylesheet and return its path relative to sections
        (``../css/<filename>``).

        The source is a URL, a local path or a data URL. The filename must be
        unique among stylesheets; one is generated when omitted.

        Raises:
            FileRetrievalError: If the source cannot be retrieved
            FilenameAlreadyUsedError: If the filename is already used
        """
        return self._add_css(source, filename)

    def _add_css(self, source: str, filename: str = "") -> str:
        return self._add_media(MediaKind.CSS, source, filename)

    @_locked
    def add_font(self, source: str, filename: str = "") -> str:
        """Add a font file; see add_css. Returns ``../fonts/<filename>``."""
        return self._add_media(MediaKind.FONT, source, filename)

    @_locked
    def add_image(self, source: str, filename: str = "") -> str:
        """Add an image; see add_css. Returns ``../images/<filename>``."""
        return self._add_media(MediaKind.IMAGE, source, filename)

    @_locked
    def add_video(self, source: str, filename: str = "") -> str:
        """Add a video; see add_css. Returns ``../videos/<filename>``."""
        return self._add_media(MediaKind.VIDEO, source, filename)

    @_locked
    def add_audio(self, source: str, filename: str = "") -> str:
        """Add an audio file; see add_css. Returns ``../audios/<filename>``."""
        return self._add_media(MediaKind.AUDIO, source, filename)

    def _add_media(self, kind: MediaKind, source: str, filename: str) -> str:
        return add_media(self.fetcher, self._stores[kind], source, filename)

    def store(self, kind: MediaKind) -> ResourceStore:
        return self._stores[kind]

    # -- sections ----------------------------------------------------------

    @_locked
    def add_section(self, body: str, title: str = "", filename: str = "", css_path: str = "") -> str:
        """
        Add a root-level section (chapter, etc.) and return its filename.

        Args:
            body: XHTML placed between the <body> tags; must be well-formed
            title: Table of contents entry; without one the section is not listed
            filename: Optional internal filename (``.xhtml`` is appended if missing)
            css_path: Optional stylesheet path as returned by add_css

        Raises:
            FilenameAlreadyUsedError: If the filename is already used
            FragmentInvalidError: If the body cannot be parsed
        """
        return self._sections.add(body, title, filename, css_path)

    @_locked
    def add_subsection(self, parent_filename: str, body: str, title: str = "",
                       filename: str = "", css_path: str = "") -> str:
        """
        Add a section nested under an existing one; see add_section.

        Raises:
            ParentDoesNotExistError: If no section has the parent filename
        """
        return self._sections.add(body, title, filename, css_path, parent_filename=parent_filename)

    @property
    def sections(self) -> List[Section]:
        """Root-level sections, in order (a copy of the list)."""
        return list(self._sections.roots)

    def find_section(self, filename: str) -> Optional[Section]:
        path = self._sections.locate(filename)
        return self._sections.get(path) if path is not None else None

    def iter_sections(self):
        """Every section of the forest, depth-first."""
        for _path, section in self._sections.walk():
            yield section

    # -- cover -------------------------------------------------------------

    @_locked
    def set_cover(self, image_path: str, css_path: str = "") -> CoverStatus:
        """
        Set the cover page from an image added with add_image.

        A previous cover is removed first (its page, image and stylesheet).
        Without css_path a default cover stylesheet is added.
        """
        return self._cover.set_cover(image_path, css_path)

    @property
    def cover(self) -> CoverState:
        return self._cover.state

    # -- images ------------------------------------------------------------

    @_locked
    def embed_images(self) -> EmbedReport:
        """
        Download the images referenced by root-level sections and point the
        <img> tags at the embedded copies.

        Images that cannot be downloaded are logged and left untouched.
        """
        embedder = ImageEmbedder(self.fetcher, self._stores[MediaKind.IMAGE])
        return embedder.embed(self._sections.roots)

    # -- metadata ----------------------------------------------------------

    @property
    def title(self) -> str:
        return self._title

    @property
    def author(self) -> str:
        return self._author

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def lang(self) -> str:
        return self._lang

    @property
    def description(self) -> str:
        return self._desc

    @property
    def ppd(self) -> str:
        """Page progression direction ("ltr", "rtl" or "" for default)."""
        return self._ppd

    @_locked
    def set_title(self, title: str) -> None:
        self._title = title

    @_locked
    def set_author(self, author: str) -> None:
        self._author = author

    @_locked
    def set_identifier(self, identifier: str) -> None:
        """Set the unique identifier, such as a UUID, DOI, ISBN or ISSN."""
        self._identifier = identifier

    @_locked
    def set_lang(self, lang: str) -> None:
        self._lang = lang

    @_locked
    def set_description(self, desc: str) -> None:
        self._desc = desc

    @_locked
    def set_ppd(self, direction: str) -> None:
        self._ppd = direction

    # -- output ------------------------------------------------------------

    @_locked
    def write(self, dest: Union[str, Path]) -> Path:
        """Write the book to an .epub file; see EpubWriter."""
        return EpubWriter(self).write(dest)
