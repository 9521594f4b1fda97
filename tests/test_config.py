"""Tests for YAML configuration loading."""

from epubforge import EpubDocument
from epubforge.config import AppConfig, load_config
from epubforge.media import MediaKind, ResourceStore


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")
    assert config == AppConfig()
    assert config.fetch.timeout_seconds == 30.0
    assert config.fetch.allow_remote is True
    assert config.book.default_lang == "en"
    assert config.log_file is None


def test_none_path_gives_defaults():
    assert load_config(None) == AppConfig()


def test_values_are_read_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "log_level: DEBUG\n"
        "log_file: logs/build.log\n"
        "fetch:\n"
        "  timeout_seconds: 5\n"
        "  allow_remote: false\n"
        "book:\n"
        "  default_lang: de\n"
        "  max_filename_length: 40\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.log_level == "DEBUG"
    assert config.log_file == "logs/build.log"
    assert config.fetch.timeout_seconds == 5.0
    assert config.fetch.allow_remote is False
    assert config.fetch.user_agent == "epubforge/1.0"
    assert config.book.default_lang == "de"
    assert config.book.max_filename_length == 40


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == AppConfig()


def test_document_uses_book_defaults(fetcher):
    config = AppConfig()
    config.book.default_lang = "ja"
    config.book.max_filename_length = 12
    doc = EpubDocument("Config", fetcher=fetcher, config=config)

    assert doc.lang == "ja"
    assert doc.identifier.startswith("urn:uuid:")
    store = doc.store(MediaKind.IMAGE)
    assert isinstance(store, ResourceStore)
    assert doc.add_image(fetcher.add("a-rather-long-name.png")) == "../images/image0001.png"
