# stance_analyzer/infrastructure/repositories/base.py
"""
Base Repository Pattern
Provides generic persistence operations for all entities
"""

from typing import Any, Generic, Optional, Type, TypeVar, cast
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from stance_analyzer.infrastructure.database.connection import Base

logger = logging.getLogger(__name__)

# Generic type for models
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Abstract Repository with generic operations

    Usage:
        class CommentRepository(BaseRepository[StoredComment]):
            def __init__(self, session: AsyncSession):
                super().__init__(session, StoredComment)
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """
        Initialize repository

        Args:
            session: Database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    # ========================================================================
    # CREATE Operations
    # ========================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Create new entity

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance
        """
        try:
            instance: ModelType = cast(Any, self.model)(**kwargs)
            self.session.add(instance)
            await self.session.commit()
            await self.session.refresh(instance)
            logger.debug(f"✅ Created {self.model.__name__}")
            return instance
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to create {self.model.__name__}: {e}")
            raise

    # ========================================================================
    # READ Operations
    # ========================================================================

    async def find_one_by(self, **filters) -> Optional[ModelType]:
        """
        Get the first entity matching all filters

        Args:
            **filters: Column equality conditions

        Returns:
            Model instance or None
        """
        try:
            query = select(self.model)
            for key, value in filters.items():
                query = query.where(getattr(self.model, key) == value)

            result = await self.session.execute(query.limit(1))
            return result.scalars().first()
        except Exception as e:
            logger.error(f"❌ Failed to query {self.model.__name__}: {e}")
            raise
