"""JSON encoding of persisted collections.

Collections are stored as JSON arrays of model dumps. Timestamps go out as ISO-8601
text and come back as timezone-aware datetimes through model validation. Decoding is
per record so one damaged entry does not take the whole collection down with it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from services.api.app.services.storage_base import ParseError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def dump_models(models: Iterable[BaseModel], *, indent: int | None = None) -> str:
    return json.dumps([m.model_dump(mode="json") for m in models], indent=indent)


def decode_records(raw: str) -> list[Any]:
    """Parse ``raw`` as a JSON array, raising ParseError otherwise."""

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ParseError(f"expected a JSON array, got {type(data).__name__}")

    return data


def validate_records(records: Iterable[Any], model: type[M], *, source: str) -> list[M]:
    out: list[M] = []
    for index, record in enumerate(records):
        try:
            out.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning(
                "Dropping unreadable %s record at index %d: %s",
                source,
                index,
                e.errors(include_url=False),
            )
    return out


def load_models(raw: str | None, model: type[M], *, source: str) -> list[M]:
    """Decode a stored collection, treating missing or corrupt text as empty."""

    if not raw:
        return []

    try:
        records = decode_records(raw)
    except ParseError as e:
        logger.error("Error loading %s from storage: %s", source, e)
        return []

    return validate_records(records, model, source=source)
