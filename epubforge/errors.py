"""
Error types raised while assembling an EPUB document.
"""

from typing import Optional


class EpubError(Exception):
    """Base class for all assembly errors."""


class FilenameAlreadyUsedError(EpubError):
    """Raised when an internal filename is already taken in its namespace."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Filename already used: {filename}")


class FileRetrievalError(EpubError):
    """Raised when the source of a resource cannot be retrieved."""

    def __init__(self, source: str, err: Optional[BaseException] = None):
        self.source = source
        self.err = err
        super().__init__(f"Error retrieving {_shorten(source)!r} from source: {err}")


class ParentDoesNotExistError(EpubError):
    """Raised when a subsection names a parent filename that is not in the book."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Parent with the internal filename {filename} does not exist")


class FragmentInvalidError(EpubError):
    """Raised when a section body cannot be turned into an XHTML document."""

    def __init__(self, body: str, err: Optional[BaseException] = None):
        self.body = body
        self.err = err
        super().__init__(f"Can't create XHTML from body {_shorten(body)!r}: {err}")


def _shorten(value: str, limit: int = 80) -> str:
    # data: URLs and bodies can be very long
    if len(value) <= limit:
        return value
    return value[:limit] + "..."
