"""
Configuration management for epubforge.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class FetchConfig:
    """Resource fetching configuration."""
    timeout_seconds: float = 30.0
    user_agent: str = "epubforge/1.0"
    allow_remote: bool = True  # False rejects http(s) sources outright


@dataclass
class BookConfig:
    """Defaults applied to every new document."""
    default_lang: str = "en"
    max_filename_length: int = 255


@dataclass
class AppConfig:
    """Main application configuration."""
    fetch: FetchConfig = field(default_factory=FetchConfig)
    book: BookConfig = field(default_factory=BookConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_config(config_path: Optional[Path]) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file

    Returns:
        AppConfig instance (defaults if the file does not exist)
    """
    if config_path is None or not Path(config_path).exists():
        return AppConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    fetch_data = data.get('fetch', {}) or {}
    fetch_config = FetchConfig(
        timeout_seconds=float(fetch_data.get('timeout_seconds', 30.0)),
        user_agent=fetch_data.get('user_agent', 'epubforge/1.0'),
        allow_remote=bool(fetch_data.get('allow_remote', True))
    )

    book_data = data.get('book', {}) or {}
    book_config = BookConfig(
        default_lang=book_data.get('default_lang', 'en'),
        max_filename_length=int(book_data.get('max_filename_length', 255))
    )

    return AppConfig(
        fetch=fetch_config,
        book=book_config,
        log_level=data.get('log_level', 'INFO'),
        log_file=data.get('log_file')
    )
