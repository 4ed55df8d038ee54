# stance_analyzer/infrastructure/repositories/__init__.py
"""
Repository Layer
Data access patterns for all entities
"""

from .base import BaseRepository
from .comment_repository import CommentRepository

__all__ = [
    "BaseRepository",
    "CommentRepository",
]
