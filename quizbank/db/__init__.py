"""
Database: storage handle, models and queries for the quiz content store.
"""

from .database import Database
from .integrity import IntegrityValidator
from .repository import ContentRepository

__all__ = [
    "Database",
    "ContentRepository",
    "IntegrityValidator",
]
