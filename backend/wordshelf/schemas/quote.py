"""
WordShelf Backend: Quote Schemas
=================================

Same three-model layout as `schemas/word.py`: QuoteFields (create),
QuotePatch (partial update), Quote (stored record).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wordshelf.schemas.common import check_image_url


class _QuoteBase(BaseModel):
    text: str = Field(description="Quoted content")
    meaning: str = Field(description="Translation or explanation")
    image_url: Optional[str] = Field(default=None, description="Absolute image URL")


class QuoteFields(_QuoteBase):
    """Fields a user submits when adding a quote."""

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return check_image_url(v)


class QuotePatch(BaseModel):
    """Partial quote update: unset fields keep their stored value."""

    text: Optional[str] = None
    meaning: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return check_image_url(v)


class Quote(_QuoteBase):
    """A stored quote."""

    id: str = Field(description="Opaque store-assigned identifier")
    created_at: datetime = Field(description="When the quote was created (UTC)")

    model_config = {"from_attributes": True}
