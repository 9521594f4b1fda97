"""
Configuration for epubforge.
"""

from .settings import AppConfig, BookConfig, FetchConfig, load_config

__all__ = ["AppConfig", "BookConfig", "FetchConfig", "load_config"]
