#!/usr/bin/env python3
"""
epubforge command line

Builds an EPUB from a YAML recipe describing metadata, resources and the
section tree.

Usage:
    python3 -m epubforge build recipe.yaml -o book.epub
    python3 -m epubforge build recipe.yaml -o book.epub --embed-images --config config.yaml

Recipe example:

    title: My Book
    author: Jane Doe
    lang: en
    css:
      - source: styles/book.css
        filename: book.css
    images:
      - source: art/cover.jpg
    cover:
      image: cover.jpg
    sections:
      - title: Chapter 1
        file: text/ch1.html
        css: book.css
        children:
          - title: Part 1.1
            body: "<p>Inline body</p>"
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from bs4 import BeautifulSoup

from .config import AppConfig, load_config
from .document import EpubDocument
from .errors import EpubError
from .fetcher import is_data_url, is_remote
from .media import MediaKind
from .utils import parse_level, setup_logger

logger = logging.getLogger(__name__)

# recipe key -> (kind, EpubDocument method)
RESOURCE_KEYS = {
    "css": (MediaKind.CSS, "add_css"),
    "fonts": (MediaKind.FONT, "add_font"),
    "images": (MediaKind.IMAGE, "add_image"),
    "videos": (MediaKind.VIDEO, "add_video"),
    "audios": (MediaKind.AUDIO, "add_audio"),
}


def read_body(path: Path) -> str:
    """
    Read a section body from a file.

    Full HTML documents are reduced to the content of their <body>; files
    without a <body> are returned unchanged.
    """
    text = path.read_text(encoding="utf-8")
    soup = BeautifulSoup(text, "html.parser")
    if soup.body is None:
        return text
    return soup.body.decode_contents()


class RecipeBuilder:
    """Turns a parsed recipe into an EpubDocument."""

    def __init__(self, recipe: Dict[str, Any], base_dir: Path, config: AppConfig):
        self.recipe = recipe
        self.base_dir = base_dir
        self.config = config
        self.paths: Dict[MediaKind, Dict[str, str]] = {kind: {} for kind in MediaKind}

    def build(self) -> EpubDocument:
        recipe = self.recipe
        if not recipe.get("title"):
            raise ValueError("Recipe needs a title")

        doc = EpubDocument(recipe["title"], config=self.config)
        if recipe.get("author"):
            doc.set_author(recipe["author"])
        if recipe.get("identifier"):
            doc.set_identifier(recipe["identifier"])
        if recipe.get("lang"):
            doc.set_lang(recipe["lang"])
        if recipe.get("description"):
            doc.set_description(recipe["description"])
        if recipe.get("direction"):
            doc.set_ppd(recipe["direction"])

        for key, (kind, method) in RESOURCE_KEYS.items():
            for entry in recipe.get(key) or []:
                self._add_resource(getattr(doc, method), kind, entry)

        cover = recipe.get("cover")
        if cover:
            image = self._resource_path(MediaKind.IMAGE, cover["image"])
            css = self._resource_path(MediaKind.CSS, cover["css"]) if cover.get("css") else ""
            doc.set_cover(image, css)

        self._add_sections(doc, recipe.get("sections") or [], parent="")

        if recipe.get("embed_images"):
            doc.embed_images()
        return doc

    def _source(self, source: str) -> str:
        if is_data_url(source) or is_remote(source) or Path(source).is_absolute():
            return source
        return str(self.base_dir / source)

    def _add_resource(self, add: Callable[[str, str], str], kind: MediaKind, entry: Any) -> None:
        if isinstance(entry, str):
            entry = {"source": entry}
        path = add(self._source(entry["source"]), entry.get("filename", ""))
        self.paths[kind][Path(path).name] = path
        if entry.get("filename"):
            self.paths[kind][entry["filename"]] = path
        logger.info(f"Added {kind.name.lower()}: {path}")

    def _resource_path(self, kind: MediaKind, name: str) -> str:
        """Resolve a recipe reference (internal filename or relative path) to a section path."""
        if name in self.paths[kind]:
            return self.paths[kind][name]
        return kind.relative_path(name)

    def _add_sections(self, doc: EpubDocument, entries: List[Dict[str, Any]], parent: str) -> None:
        for entry in entries:
            if "file" in entry:
                body = read_body(Path(self._source(entry["file"])))
            else:
                body = entry.get("body", "")
            css = self._resource_path(MediaKind.CSS, entry["css"]) if entry.get("css") else ""
            title = entry.get("title", "")
            if parent:
                filename = doc.add_subsection(parent, body, title, entry.get("filename", ""), css)
            else:
                filename = doc.add_section(body, title, entry.get("filename", ""), css)
            self._add_sections(doc, entry.get("children") or [], parent=filename)


def load_recipe(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Recipe {path} must be a mapping")
    return data


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="epubforge",
        description="Assemble EPUB 3 books from XHTML fragments and media",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build an EPUB from a YAML recipe")
    build.add_argument("recipe", type=Path, help="Path to the recipe YAML")
    build.add_argument("-o", "--output", type=Path, help="Output .epub (default: recipe name)")
    build.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config.yaml")
    build.add_argument("--embed-images", action="store_true",
                       help="Download remote images referenced by sections")
    build.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                       help="Override log level from config")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.log_level:
        config.log_level = args.log_level

    log_file = Path(config.log_file) if config.log_file else None
    setup_logger("epubforge", log_file=log_file, level=parse_level(config.log_level))

    try:
        recipe = load_recipe(args.recipe)
        if args.embed_images:
            recipe["embed_images"] = True
        doc = RecipeBuilder(recipe, args.recipe.resolve().parent, config).build()
        output = args.output or args.recipe.with_suffix(".epub")
        doc.write(output)
    except (EpubError, OSError, KeyError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Build failed: {e}")
        return 1

    print(f"Wrote {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
