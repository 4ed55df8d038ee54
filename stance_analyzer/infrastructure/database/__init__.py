"""
Database Infrastructure Package
"""

from .connection import Base, DatabaseManager
from .models import StoredComment

__all__ = [
    "Base",
    "DatabaseManager",
    "StoredComment",
]
