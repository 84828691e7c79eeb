"""
WordShelf Backend: Form Validation
===================================

What:  Turns a submitted form into a create or partial-update payload.
Who:   Called by the view state controller before any store call.

Rules:
    1. Only the kind's editable fields are read; other keys (the `image`
       file part, stray inputs) are ignored.
    2. Values are stripped. An optional field left empty is dropped, so it
       is never sent to the store.
    3. A create form must fill every required field. An update form only
       fails when it submits a required field blank.
    4. Type rules (part-of-speech vocabulary, image URL shape) come from
       the pydantic payload models; their errors become ValidationFailed.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError

from wordshelf.exceptions import ValidationFailed
from wordshelf.schemas.kinds import RecordKind

logger = logging.getLogger(__name__)


def normalize_form(kind: RecordKind, form: Mapping[str, Any]) -> Dict[str, str]:
    """Stripped, non-empty text values of the kind's editable fields."""
    values: Dict[str, str] = {}
    for name in kind.editable_fields:
        raw = form.get(name)
        if raw is None:
            continue
        if not isinstance(raw, str):
            raise ValidationFailed(
                message=f"{_field_label(name)} must be text.",
                field=name,
            )
        value = raw.strip()
        if value:
            values[name] = value
    return values


def parse_create_form(kind: RecordKind, form: Mapping[str, Any]) -> BaseModel:
    values = normalize_form(kind, form)
    missing = [name for name in kind.required_fields if name not in values]
    if missing:
        raise ValidationFailed(
            message=kind.required_message,
            field=missing[0],
            context={"missing": missing},
        )
    return _build(kind.fields_model, values)


def parse_update_form(kind: RecordKind, form: Mapping[str, Any]) -> BaseModel:
    values = normalize_form(kind, form)
    blanked = [
        name for name in kind.required_fields
        if name in form and name not in values
    ]
    if blanked:
        raise ValidationFailed(
            message=kind.required_message,
            field=blanked[0],
            context={"missing": blanked},
        )
    return _build(kind.patch_model, values)


def attach_image_url(payload: BaseModel, image_url: str) -> BaseModel:
    """Copy of `payload` with `image_url` set; uploaded URLs win over typed ones."""
    data = payload.model_dump(exclude_unset=True)
    data["image_url"] = image_url
    return _build(type(payload), data)


def _build(model: type, values: Dict[str, Any]) -> BaseModel:
    try:
        return model.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        field: Optional[str] = str(first["loc"][0]) if first["loc"] else None
        detail = first["msg"].removeprefix("Value error, ")
        logger.debug("Form rejected on %s: %s", field, detail)
        raise ValidationFailed(
            message=f"Invalid {_field_label(field)}: {detail}",
            field=field,
        )


def _field_label(name: Optional[str]) -> str:
    return (name or "value").replace("_", " ")
