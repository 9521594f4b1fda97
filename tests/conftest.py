"""Shared fixtures: an in-memory fetcher so no test touches the network."""

from typing import Dict, List, Optional

import pytest

from epubforge import EpubDocument
from epubforge.fetcher import decode_data_url, is_data_url

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeFetcher:
    """Serves registered sources from memory and records every call."""

    def __init__(self, resources: Optional[Dict[str, bytes]] = None,
                 content_types: Optional[Dict[str, str]] = None):
        self.resources = dict(resources or {})
        self.content_types = dict(content_types or {})
        self.checked: List[str] = []
        self.fetched: List[str] = []
        self.probed: List[str] = []

    def add(self, source: str, content: bytes = PNG_BYTES, content_type: str = "") -> str:
        self.resources[source] = content
        if content_type:
            self.content_types[source] = content_type
        return source

    def check(self, source: str) -> None:
        self.checked.append(source)
        if is_data_url(source):
            decode_data_url(source)
        elif source not in self.resources:
            raise FileNotFoundError(source)

    def fetch(self, source: str) -> bytes:
        self.fetched.append(source)
        if is_data_url(source):
            return decode_data_url(source)[1]
        if source not in self.resources:
            raise FileNotFoundError(source)
        return self.resources[source]

    def probe_content_type(self, url: str) -> str:
        self.probed.append(url)
        if url not in self.resources:
            raise ValueError(f"no such url: {url}")
        return self.content_types.get(url, "")


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def doc(fetcher):
    return EpubDocument("Test Book", fetcher=fetcher)
