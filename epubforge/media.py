"""
Resource stores for the media kinds an EPUB can carry.

Each kind (css, font, image, video, audio) has its own namespace of internal
filenames; the same filename may exist once per kind.
"""

import logging
import mimetypes
import posixpath
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from .errors import FileRetrievalError, FilenameAlreadyUsedError
from .fetcher import is_data_url

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 255

# Types mimetypes does not know on every platform
_MEDIA_TYPE_FALLBACKS = {
    '.css': 'text/css',
    '.otf': 'font/otf',
    '.ttf': 'font/ttf',
    '.woff': 'font/woff',
    '.woff2': 'font/woff2',
    '.svg': 'image/svg+xml',
    '.webp': 'image/webp',
    '.mp3': 'audio/mpeg',
    '.m4a': 'audio/mp4',
    '.ogg': 'audio/ogg',
    '.mp4': 'video/mp4',
    '.webm': 'video/webm',
}


class MediaKind(Enum):
    """Resource namespace: (folder inside the package, filename template)."""
    CSS = ("css", "css%04d%s")
    FONT = ("fonts", "font%04d%s")
    IMAGE = ("images", "image%04d%s")
    VIDEO = ("videos", "video%04d%s")
    AUDIO = ("audios", "audio%04d%s")

    @property
    def folder(self) -> str:
        return self.value[0]

    @property
    def file_format(self) -> str:
        return self.value[1]

    def generated_name(self, sequence: int, extension: str) -> str:
        """Return e.g. ``image0003.png`` for sequence 3 and extension ``.png``."""
        return self.file_format % (sequence, extension)

    def relative_path(self, filename: str) -> str:
        """Path of a resource as seen from a section document."""
        return posixpath.join("..", self.folder, filename)


def is_valid_path(name: str) -> bool:
    """
    Check that a name is a clean, unrooted, slash-separated relative path.

    Rejects empty names, ``.``/``..`` segments, empty segments, leading or
    trailing slashes and backslashes.
    """
    if not name or "\\" in name:
        return False
    if name == ".":
        return True
    return all(elem not in ("", ".", "..") for elem in name.split("/"))


def source_extension(source: str) -> str:
    """Lowercase extension of the last path element of a source reference."""
    return posixpath.splitext(posixpath.basename(source))[1].lower()


def data_url_extension(source: str) -> str:
    """Extension matching the media type declared by a data URL."""
    media_type = source[len("data:"):].split(",", 1)[0].split(";", 1)[0].strip().lower()
    if not media_type:
        return ""
    return mimetypes.guess_extension(media_type) or ""


def guess_media_type(filename: str) -> str:
    """Media type for a file stored in the package."""
    ext = posixpath.splitext(filename)[1].lower()
    if ext in _MEDIA_TYPE_FALLBACKS:
        return _MEDIA_TYPE_FALLBACKS[ext]
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or 'application/octet-stream'


class ResourceStore:
    """Maps internal filenames of one media kind to their source references."""

    def __init__(self, kind: MediaKind, max_filename_length: int = MAX_FILENAME_LENGTH):
        self.kind = kind
        self.max_filename_length = max_filename_length
        self._sources: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, filename: object) -> bool:
        return filename in self._sources

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def items(self) -> Iterator[Tuple[str, str]]:
        """Iterate over (filename, source) pairs in insertion order."""
        return iter(list(self._sources.items()))

    def get(self, filename: str) -> Optional[str]:
        return self._sources.get(filename)

    def remove(self, filename: str) -> Optional[str]:
        """Remove an entry; missing filenames are ignored."""
        return self._sources.pop(filename, None)

    def resolve_filename(self, source: str, filename: str = "") -> str:
        """
        Pick the internal filename for a source.

        A caller-supplied name is returned as is. Without one the base name
        of the source is used, unless it is too long, not a valid relative
        path or already taken, in which case a sequence-numbered name is
        generated from the kind's template.
        """
        if filename:
            return filename
        if is_data_url(source):
            return self.kind.generated_name(len(self._sources) + 1, data_url_extension(source))
        filename = posixpath.basename(source)
        if (len(filename) > self.max_filename_length
                or not is_valid_path(filename)
                or filename in self._sources):
            filename = self.kind.generated_name(len(self._sources) + 1, source_extension(source))
        return filename

    def add(self, source: str, filename: str) -> str:
        """
        Insert a resolved filename.

        Raises:
            FilenameAlreadyUsedError: If the filename is already a key

        Returns:
            Relative path to the resource (``../<folder>/<filename>``)
        """
        if filename in self._sources:
            raise FilenameAlreadyUsedError(filename)
        self._sources[filename] = source
        logger.debug(f"Registered {self.kind.name.lower()}: {filename}")
        return self.kind.relative_path(filename)


def add_media(fetcher, store: ResourceStore, source: str, filename: str = "") -> str:
    """
    Validate a source and register it in a store.

    Args:
        fetcher: Object with a ``check(source)`` method (see ResourceFetcher)
        store: The store of the resource's kind
        source: URL, local path or data URL
        filename: Optional internal filename

    Raises:
        FileRetrievalError: If the source cannot be retrieved
        FilenameAlreadyUsedError: If the filename is already used for this kind

    Returns:
        Relative path to the resource for use inside sections
    """
    try:
        fetcher.check(source)
    except Exception as e:
        raise FileRetrievalError(source, e) from e

    return store.add(source, store.resolve_filename(source, filename))
