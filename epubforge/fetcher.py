"""
Resource fetching for epubforge.

A source reference is an opaque string that is one of:

* a remote locator (``http://`` or ``https://``), fetched with requests,
* an RFC 2397 ``data:`` URL, decoded in memory,
* a local filesystem path (optionally as a ``file://`` URL).

The fetcher raises the underlying error (``OSError``, ``ValueError`` or a
``requests.RequestException``); callers wrap it in ``FileRetrievalError``
together with the source.
"""

import base64
import logging
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, unquote_to_bytes, urlparse

import requests

from .config.settings import FetchConfig

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")
DATA_URL_PREFIX = "data:"


def is_data_url(source: str) -> bool:
    """Return True if the source is an embedded ``data:`` URL."""
    return source[:len(DATA_URL_PREFIX)].lower() == DATA_URL_PREFIX


def is_remote(source: str) -> bool:
    """Return True if the source is an http(s) locator."""
    return urlparse(source).scheme.lower() in REMOTE_SCHEMES


def decode_data_url(source: str) -> Tuple[str, bytes]:
    """
    Decode a ``data:`` URL.

    Args:
        source: The data URL

    Returns:
        Tuple of (media type, payload bytes)

    Raises:
        ValueError: If the URL is malformed
    """
    if not is_data_url(source):
        raise ValueError("not a data URL")
    header, sep, payload = source[len(DATA_URL_PREFIX):].partition(",")
    if not sep:
        raise ValueError("missing ',' in data URL")

    params = [p.strip() for p in header.split(";")]
    media_type = params[0] or "text/plain"
    if params[-1].lower() == "base64":
        try:
            return media_type, base64.b64decode(unquote(payload), validate=True)
        except ValueError as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
    return media_type, unquote_to_bytes(payload)


def encode_data_url(content: bytes, media_type: str) -> str:
    """Encode bytes as a base64 ``data:`` URL."""
    return f"data:{media_type};base64,{base64.b64encode(content).decode('ascii')}"


class ResourceFetcher:
    """
    Retrieves the bytes behind a source reference.

    ``check`` only validates that a source is retrievable, ``fetch``
    materializes it. Time bounds come from ``FetchConfig.timeout_seconds``;
    there is no retry.
    """

    def __init__(self, config: Optional[FetchConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or FetchConfig()
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', self.config.user_agent)

    def check(self, source: str) -> None:
        """
        Validate that a source can be retrieved.

        Raises:
            OSError: Local file missing or unreadable
            ValueError: Malformed data URL or remote access disabled
            requests.RequestException: Remote locator unreachable
        """
        if is_data_url(source):
            decode_data_url(source)
        elif is_remote(source):
            self._require_remote(source)
            response = self.session.get(source, stream=True, timeout=self.config.timeout_seconds)
            try:
                response.raise_for_status()
            finally:
                response.close()
        else:
            path = self._local_path(source)
            if not path.is_file():
                raise FileNotFoundError(f"No such file: {path}")

    def fetch(self, source: str) -> bytes:
        """Return the bytes behind a source."""
        if is_data_url(source):
            return decode_data_url(source)[1]
        if is_remote(source):
            self._require_remote(source)
            response = self.session.get(source, timeout=self.config.timeout_seconds)
            response.raise_for_status()
            logger.debug(f"Fetched {len(response.content)} bytes from {source}")
            return response.content
        return self._local_path(source).read_bytes()

    def probe_content_type(self, url: str) -> str:
        """
        Issue a HEAD request and return the bare Content-Type of the response.

        Returns:
            The media type without parameters, or "" if the server sent none
        """
        self._require_remote(url)
        response = self.session.head(url, allow_redirects=True, timeout=self.config.timeout_seconds)
        response.raise_for_status()
        content_type = response.headers.get('Content-Type', '')
        return content_type.split(';', 1)[0].strip().lower()

    def _require_remote(self, source: str) -> None:
        if not self.config.allow_remote:
            raise ValueError(f"Remote sources are disabled: {source}")

    @staticmethod
    def _local_path(source: str) -> Path:
        parsed = urlparse(source)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        return Path(source)
