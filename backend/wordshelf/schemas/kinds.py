"""
WordShelf Backend: Record Kinds
================================

What:  One `RecordKind` descriptor per kind of catalog entry.
How:   Stores, form validation, the image uploader and the routes are all
       written once and parameterised by a kind, so words and quotes share
       every code path and differ only in the values below.
"""

from dataclasses import dataclass
from typing import Tuple, Type

from pydantic import BaseModel

from wordshelf.schemas.quote import Quote, QuoteFields, QuotePatch
from wordshelf.schemas.word import Word, WordFields, WordPatch


@dataclass(frozen=True)
class RecordKind:
    """
    Attributes:
        name:              Singular kind name ("word"), used in log lines
        plural:            Table / collection / REST resource name ("words")
        label:             Capitalised name shown to users ("Word")
        record_model:      Pydantic model of a stored record
        fields_model:      Create payload model
        patch_model:       Partial update payload model
        required_fields:   Fields that must be non-empty after trimming
        required_message:  Message shown when any required field is empty
        blob_prefix:       First segment of uploaded image paths
        default_bucket:    Object storage bucket for this kind's images
    """

    name: str
    plural: str
    label: str
    record_model: Type[BaseModel]
    fields_model: Type[BaseModel]
    patch_model: Type[BaseModel]
    required_fields: Tuple[str, ...]
    required_message: str
    blob_prefix: str
    default_bucket: str

    @property
    def editable_fields(self) -> Tuple[str, ...]:
        return tuple(self.fields_model.model_fields)

    def __str__(self) -> str:
        return self.name


WORD = RecordKind(
    name="word",
    plural="words",
    label="Word",
    record_model=Word,
    fields_model=WordFields,
    patch_model=WordPatch,
    required_fields=("chinese_word", "meaning"),
    required_message="Chinese word and meaning are required!",
    blob_prefix="words",
    default_bucket="word-images",
)

QUOTE = RecordKind(
    name="quote",
    plural="quotes",
    label="Quote",
    record_model=Quote,
    fields_model=QuoteFields,
    patch_model=QuotePatch,
    required_fields=("text", "meaning"),
    required_message="Quote text and meaning are required!",
    blob_prefix="quotes",
    default_bucket="quote-images",
)

ALL_KINDS = (WORD, QUOTE)
