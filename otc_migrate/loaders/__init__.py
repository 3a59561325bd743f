"""Target writers."""

from .base import BaseLoader
from .postgres_loader import PostgresLoader

__all__ = [
    "BaseLoader",
    "PostgresLoader",
]
