"""
WordShelf Backend: Word Schemas
================================

What:  Pydantic models for the word vertical.

    WordFields  create payload (everything except id / created_at)
    WordPatch   partial update payload; only fields that were explicitly
                set are sent to the store (`model_dump(exclude_unset=True)`)
    Word        stored record, as returned by every record store

Neither payload model declares `id` or `created_at`, so an update can
never carry them to a store.

Required-field emptiness is not enforced here: form validation
(`services/validation.py`) does that with the form's user-facing
message. These models only enforce types, the part-of-speech
vocabulary and the image URL shape. `Word` re-checks neither the URL nor
the part of speech, so records written by other clients still load.
"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wordshelf.schemas.common import check_image_url


class PartOfSpeech(str, enum.Enum):
    """Vocabulary of the part-of-speech select box."""

    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PRONOUN = "pronoun"
    PHRASE = "phrase"
    OTHER = "other"


class _WordBase(BaseModel):
    chinese_word: str = Field(description="Chinese characters, e.g. 你好")
    pinyin: Optional[str] = Field(default=None, description="Pronunciation, e.g. nǐ hǎo")
    meaning: str = Field(description="English or Khmer meaning")
    part_of_speech: Optional[PartOfSpeech] = Field(default=None)
    example: Optional[str] = Field(default=None, description="Example sentence")
    image_url: Optional[str] = Field(default=None, description="Absolute image URL")


class WordFields(_WordBase):
    """Fields a user submits when adding a word."""

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return check_image_url(v)


class WordPatch(BaseModel):
    """Partial word update: unset fields keep their stored value."""

    chinese_word: Optional[str] = None
    pinyin: Optional[str] = None
    meaning: Optional[str] = None
    part_of_speech: Optional[PartOfSpeech] = None
    example: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return check_image_url(v)


class Word(_WordBase):
    """A stored word."""

    part_of_speech: Optional[str] = Field(default=None)
    id: str = Field(description="Opaque store-assigned identifier")
    created_at: datetime = Field(description="When the word was created (UTC)")

    model_config = {"from_attributes": True}
