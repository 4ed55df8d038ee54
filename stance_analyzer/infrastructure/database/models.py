"""
ORM Models
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stance_analyzer.domain.models import ClassificationSource, Sentiment

from .connection import Base


class StoredComment(Base):
    """A comment whose sentiment has already been computed"""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(String(32), index=True)
    comment_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    masked_username: Mapped[str] = mapped_column(String(255), default="")
    comment: Mapped[str] = mapped_column(Text, default="")
    sentiment: Mapped[Sentiment] = mapped_column(
        Enum(Sentiment, values_callable=lambda e: [m.value for m in e])
    )
    source: Mapped[ClassificationSource] = mapped_column(
        Enum(ClassificationSource, values_callable=lambda e: [m.value for m in e]),
        default=ClassificationSource.REMOTE,
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    analyzed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<StoredComment {self.comment_id} {self.sentiment.value}>"
