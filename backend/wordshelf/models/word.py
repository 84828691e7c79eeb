"""
WordShelf Backend: Word SQLAlchemy Model
=========================================

What:  ORM model for the `words` table used by the SQL record store.
How:   Inherits from the shared DeclarativeBase; Alembic mirrors it in 001.

Table Design:
    - id: UUID string assigned by the table mapping at insert time
    - chinese_word / meaning: NOT NULL (required record fields)
    - pinyin, part_of_speech, example, image_url: nullable (optional fields)
    - created_at: UTC timestamp assigned at insert, never updated
    - Index on created_at DESC: the list page reads newest first
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wordshelf.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WordRow(Base):
    """
    A vocabulary entry.

    Lifecycle:
        1. Inserted by SqlRecordStore.create() (id and created_at assigned here)
        2. Changed field by field by SqlRecordStore.update()
        3. Removed by SqlRecordStore.delete(); its image blob is left in place
    """

    __tablename__ = "words"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
        comment="Opaque record identifier (UUID string)",
    )
    chinese_word: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Chinese characters",
    )
    pinyin: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Pronunciation, e.g. 'nǐ hǎo'",
    )
    meaning: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="English or Khmer meaning",
    )
    # noun, verb, adjective, adverb, pronoun, phrase, other (checked by the form layer)
    part_of_speech: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Absolute URL of the illustration, never checked for reachability",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When this word was created (UTC)",
    )

    __table_args__ = (
        Index("idx_words_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<WordRow(id={self.id}, chinese_word={self.chinese_word!r})>"
