"""
epubforge: assemble EPUB 3 books from XHTML fragments, media and metadata.
"""

from .cover import CoverState, CoverStatus
from .document import EpubDocument
from .embedder import EmbedReport
from .errors import (
    EpubError,
    FileRetrievalError,
    FilenameAlreadyUsedError,
    FragmentInvalidError,
    ParentDoesNotExistError,
)
from .fetcher import ResourceFetcher
from .media import MediaKind
from .properties import properties_from_body
from .writer import EpubWriter

__version__ = "1.0.0"

__all__ = [
    "CoverState",
    "CoverStatus",
    "EmbedReport",
    "EpubDocument",
    "EpubError",
    "EpubWriter",
    "FileRetrievalError",
    "FilenameAlreadyUsedError",
    "FragmentInvalidError",
    "MediaKind",
    "ParentDoesNotExistError",
    "ResourceFetcher",
    "properties_from_body",
]
