"""Tests for the per-kind resource stores and add_* methods."""

import re

import pytest

from epubforge import FileRetrievalError, FilenameAlreadyUsedError, MediaKind
from epubforge.media import ResourceStore, add_media, guess_media_type, is_valid_path


ADDERS = [
    ("add_css", MediaKind.CSS, "css", ".css"),
    ("add_font", MediaKind.FONT, "fonts", ".ttf"),
    ("add_image", MediaKind.IMAGE, "images", ".png"),
    ("add_video", MediaKind.VIDEO, "videos", ".mp4"),
    ("add_audio", MediaKind.AUDIO, "audios", ".mp3"),
]


@pytest.mark.parametrize("method, kind, folder, ext", ADDERS)
def test_add_returns_relative_path(doc, fetcher, method, kind, folder, ext):
    source = fetcher.add(f"assets/file{ext}")
    path = getattr(doc, method)(source, f"named{ext}")
    assert path == f"../{folder}/named{ext}"
    assert doc.store(kind).get(f"named{ext}") == source


@pytest.mark.parametrize("method, kind, folder, ext", ADDERS)
def test_generated_filenames_are_distinct_and_sequenced(doc, fetcher, method, kind, folder, ext):
    # Same base name every time, so every add after the first needs a generated name
    sources = [fetcher.add(f"dir{i}/same{ext.upper()}") for i in range(4)]
    paths = [getattr(doc, method)(source) for source in sources]

    names = [p.rsplit("/", 1)[1] for p in paths]
    assert len(set(names)) == len(names)
    assert names[0] == f"same{ext.upper()}"
    prefix = kind.file_format.split("%")[0]
    for name in names[1:]:
        assert re.fullmatch(rf"{prefix}\d{{4}}{re.escape(ext)}", name)


def test_same_filename_twice_is_rejected(doc, fetcher):
    fetcher.add("a.png")
    fetcher.add("b.png")
    doc.add_image("a.png", "image.png")
    with pytest.raises(FilenameAlreadyUsedError) as excinfo:
        doc.add_image("b.png", "image.png")
    assert excinfo.value.filename == "image.png"


def test_generated_name_colliding_with_caller_name_is_rejected(doc, fetcher):
    for source in ("x/photo.png", "y/photo.png", "z/photo.png"):
        fetcher.add(source)
    doc.add_image("x/photo.png")
    # the caller takes the name the next generated one will use
    doc.add_image("y/photo.png", "image0003.png")
    with pytest.raises(FilenameAlreadyUsedError):
        doc.add_image("z/photo.png")
    assert len(doc.store(MediaKind.IMAGE)) == 2


def test_kinds_are_independent_namespaces(doc, fetcher):
    fetcher.add("shared.bin")
    assert doc.add_font("shared.bin", "same.bin") == "../fonts/same.bin"
    assert doc.add_video("shared.bin", "same.bin") == "../videos/same.bin"
    assert doc.add_audio("shared.bin", "same.bin") == "../audios/same.bin"


def test_retrieval_failure_wraps_source(doc):
    with pytest.raises(FileRetrievalError) as excinfo:
        doc.add_css("missing/style.css")
    assert excinfo.value.source == "missing/style.css"
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert len(doc.store(MediaKind.CSS)) == 0


def test_too_long_basename_is_replaced(fetcher):
    store = ResourceStore(MediaKind.IMAGE, max_filename_length=10)
    source = fetcher.add("pics/a-very-long-name.JPG")
    assert add_media(fetcher, store, source) == "../images/image0001.jpg"


def test_data_url_gets_generated_name(doc):
    path = doc.add_css("data:text/css;base64,Ym9keSB7fQ==")
    assert path == "../css/css0001.css"


def test_bad_data_url_is_a_retrieval_error(doc):
    with pytest.raises(FileRetrievalError):
        doc.add_css("data:text/css;base64,@@@")


@pytest.mark.parametrize("name, valid", [
    ("cover.png", True),
    ("dir/cover.png", True),
    ("", False),
    ("..", False),
    ("/abs.png", False),
    ("a//b.png", False),
    ("dir/", False),
    ("win\\path.png", False),
])
def test_is_valid_path(name, valid):
    assert is_valid_path(name) is valid


def test_guess_media_type():
    assert guess_media_type("book.css") == "text/css"
    assert guess_media_type("font.woff2") == "font/woff2"
    assert guess_media_type("pic.png") == "image/png"
    assert guess_media_type("blob.unknownext") == "application/octet-stream"
