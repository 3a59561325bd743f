"""Source readers."""

from .base import BaseExtractor, StaticExtractor
from .sqlite_extractor import SQLiteExtractor

__all__ = [
    "BaseExtractor",
    "StaticExtractor",
    "SQLiteExtractor",
]
