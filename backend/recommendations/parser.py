"""
Parsing of generation replies into ranked recommendations.

The model is asked for ``{"summary": ..., "cards": [...]}`` but replies are
free text that may wrap the JSON in prose, code fences, or return the older
bare ``[...]`` card list. Parsing never raises: every outcome is either a
``ParsedRecommendations`` tagged with its format, or a ``ParseFailure``.

JSON values are located with an incremental scan: each ``{`` / ``[`` is tried
as the start of a JSON value with ``JSONDecoder.raw_decode``, so braces in
surrounding prose or inside string fields do not corrupt the match.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from pydantic import ValidationError

from .models import RecommendedItem, ResponseFormat

logger = logging.getLogger(__name__)

SUMMARY_KEY = "summary"
ITEMS_KEY = "cards"

NO_JSON = "Model answer did not contain any JSON object or array"
MALFORMED_JSON = "Model answer contained malformed JSON"
UNEXPECTED_STRUCTURE = "Model answer JSON did not contain a recommendation list"

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class ParsedRecommendations:
    format: ResponseFormat
    items: list[RecommendedItem]
    summary: str | None = None


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    details: list[str] = field(default_factory=list)


def _iter_json_values(text: str) -> Iterator[tuple[Any | None, str | None]]:
    """
    Yield ``(value, None)`` for each decodable JSON value, or
    ``(None, error)`` for a start position that failed to decode.
    """
    pos = 0
    length = len(text)
    while pos < length:
        starts = [i for i in (text.find("{", pos), text.find("[", pos)) if i != -1]
        if not starts:
            return
        start = min(starts)
        try:
            value, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError as exc:
            yield None, f"offset {start}: {exc.msg}"
            pos = start + 1
            continue
        yield value, None
        pos = end


def _is_item_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def _build_items(raw_items: list[Any]) -> list[RecommendedItem] | ParseFailure:
    items: list[RecommendedItem] = []
    for position, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            return ParseFailure(f"Recommendation #{position} is not an object")
        try:
            item = RecommendedItem.model_validate(raw)
        except ValidationError as exc:
            return ParseFailure(
                f"Recommendation #{position} is malformed",
                details=[err["msg"] for err in exc.errors()],
            )
        items.append(item.model_copy(update={"rank": position}))
    return items


def _summary_of(value: dict[str, Any]) -> str | None:
    summary = value.get(SUMMARY_KEY)
    if summary is None:
        return None
    summary = str(summary).strip()
    return summary or None


def parse_answer(answer: str | None) -> ParsedRecommendations | ParseFailure:
    if not answer or not answer.strip():
        return ParseFailure(NO_JSON)

    saw_json = False
    decode_errors: list[str] = []

    for value, error in _iter_json_values(answer):
        if error is not None:
            decode_errors.append(error)
            continue
        saw_json = True

        if isinstance(value, dict) and isinstance(value.get(ITEMS_KEY), list):
            items = _build_items(value[ITEMS_KEY])
            if isinstance(items, ParseFailure):
                return items
            logger.debug("Parsed primary format with %d items", len(items))
            return ParsedRecommendations(
                format=ResponseFormat.primary,
                items=items,
                summary=_summary_of(value),
            )

        if _is_item_list(value):
            items = _build_items(value)
            if isinstance(items, ParseFailure):
                return items
            logger.debug("Parsed legacy array format with %d items", len(items))
            return ParsedRecommendations(format=ResponseFormat.legacy, items=items)

    if saw_json:
        return ParseFailure(UNEXPECTED_STRUCTURE)
    if decode_errors:
        return ParseFailure(MALFORMED_JSON, details=decode_errors[:5])
    return ParseFailure(NO_JSON)
