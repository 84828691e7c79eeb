"""
WordShelf Backend: Quote SQLAlchemy Model
==========================================

What:  ORM model for the `quotes` table used by the SQL record store.
Shares id / created_at conventions with `models/word.py`.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wordshelf.database import Base
from wordshelf.models.word import _new_id, _utcnow


class QuoteRow(Base):
    """A quoted sentence together with its translation or explanation."""

    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Quoted content, e.g. '路遥知马力，日久见人心'",
    )
    meaning: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Translation or explanation",
    )
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_quotes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<QuoteRow(id={self.id}, created_at='{self.created_at}')>"
