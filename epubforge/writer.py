"""
Finalization of an EpubDocument into an .epub archive.

The package document (manifest, spine, metadata), the EPUB 3 navigation
document, the EPUB 2 NCX and the zip container (``mimetype`` stored first
and uncompressed) are produced by ebooklib. This module maps the in-memory
document onto an ``epub.EpubBook``:

    EPUB/xhtml/<section>.xhtml
    EPUB/css/, EPUB/fonts/, EPUB/images/, EPUB/videos/, EPUB/audios/
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Union

from ebooklib import epub

from .errors import FileRetrievalError
from .media import MediaKind, guess_media_type
from .sections import Section

if TYPE_CHECKING:
    from .document import EpubDocument

logger = logging.getLogger(__name__)

SECTION_FOLDER = "xhtml"


class EpubWriter:
    """Builds and writes the EPUB for a document."""

    def __init__(self, document: "EpubDocument"):
        self.document = document
        self.fetcher = document.fetcher

    def build(self) -> epub.EpubBook:
        """
        Create the ebooklib book: fetch every resource, render every section.

        Raises:
            FileRetrievalError: If a registered resource cannot be fetched
        """
        doc = self.document
        book = epub.EpubBook()
        book.set_identifier(doc.identifier)
        book.set_title(doc.title)
        book.set_language(doc.lang)
        if doc.author:
            book.add_author(doc.author)
        if doc.description:
            book.add_metadata('DC', 'description', doc.description)
        if doc.ppd:
            book.set_direction(doc.ppd)

        self._add_resources(book)
        items = self._add_sections(book)

        book.toc = self._toc_entries(doc.sections, items)
        book.spine = [items[section.filename] for section in doc.iter_sections()]

        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        return book

    def write(self, dest: Union[str, Path]) -> Path:
        """
        Write the document to an .epub file.

        Args:
            dest: Output path

        Returns:
            The resolved output path
        """
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        book = self.build()
        epub.write_epub(str(dest), book, {})
        logger.info(f"EPUB written: {dest}")
        return dest.resolve()

    def _fetch(self, source: str) -> bytes:
        try:
            return self.fetcher.fetch(source)
        except Exception as e:
            raise FileRetrievalError(source, e) from e

    def _add_resources(self, book: epub.EpubBook) -> None:
        cover_image = self.document.cover.image_filename
        for kind in MediaKind:
            store = self.document.store(kind)
            for index, (filename, source) in enumerate(store.items(), start=1):
                content = self._fetch(source)
                file_name = f"{kind.folder}/{filename}"
                if kind is MediaKind.IMAGE and filename == cover_image:
                    book.set_cover(file_name, content, create_page=False)
                    continue
                book.add_item(epub.EpubItem(
                    uid=f"{kind.name.lower()}{index:04d}",
                    file_name=file_name,
                    media_type=guess_media_type(filename),
                    content=content
                ))
        if cover_image and cover_image not in self.document.store(MediaKind.IMAGE):
            logger.warning(f"Cover image {cover_image} is not among the book's images")

    def _add_sections(self, book: epub.EpubBook) -> Dict[str, epub.EpubHtml]:
        items: Dict[str, epub.EpubHtml] = {}
        for index, section in enumerate(self.document.iter_sections(), start=1):
            item = epub.EpubHtml(
                uid=f"xhtml{index:04d}",
                title=section.title,
                file_name=f"{SECTION_FOLDER}/{section.filename}",
                lang=self.document.lang,
                content=section.xhtml.to_string()
            )
            if section.xhtml.css_path:
                item.add_link(href=section.xhtml.css_path, rel="stylesheet", type="text/css")
            item.properties = section.properties.split()
            book.add_item(item)
            items[section.filename] = item
        return items

    def _toc_entries(self, sections: List[Section], items: Dict[str, epub.EpubHtml]) -> list:
        """Nested TOC of titled sections; children of untitled ones move up a level."""
        entries = []
        for section in sections:
            children = self._toc_entries(section.children, items)
            if not section.title:
                entries.extend(children)
                continue
            item = items[section.filename]
            if children:
                entries.append((epub.Section(section.title, href=item.file_name), children))
            else:
                entries.append(epub.Link(item.file_name, section.title, item.id))
        return entries
