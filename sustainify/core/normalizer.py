"""Salvage a single JSON object from free-text model output.

Models asked for "JSON only" still wrap the answer in markdown fences, prefix
it with chatter, or emit JavaScript-style objects with bare keys, single
quotes and trailing commas. ``normalize`` runs a fixed pipeline of text
transforms followed by a strict parse and returns ``None`` instead of raising.
"""

from __future__ import annotations

import json
import re
from typing import Any, Union

from .types import IdentifyResult

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*")
_JSON_PREFIX_RE = re.compile(r"^json", re.IGNORECASE)
_OBJECT_SPAN_RE = re.compile(r"\{.*\}", re.DOTALL)
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z0-9_$-]+)\s*:")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text)


def strip_json_prefix(text: str) -> str:
    return _JSON_PREFIX_RE.sub("", text.strip(), count=1)


def extract_object_span(text: str) -> Union[str, None]:
    # greedy: first "{" through last "}"
    match = _OBJECT_SPAN_RE.search(text)
    return match.group(0) if match else None


def quote_bare_keys(text: str) -> str:
    return _BARE_KEY_RE.sub(r'\1"\2":', text)


def normalize_quotes(text: str) -> str:
    return text.replace("'", '"')


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def repair(text: str) -> str:
    for step in (quote_bare_keys, normalize_quotes, remove_trailing_commas):
        text = step(text)
    return text


def _loads_object(text: str) -> Union[dict[str, Any], None]:
    # huge integers raise ValueError, deep nesting RecursionError
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def normalize(text: Any) -> Union[dict[str, Any], None]:
    """Return the JSON object embedded in ``text`` or ``None``."""
    if not text or not isinstance(text, str):
        return None
    cleaned = strip_json_prefix(strip_fences(text))
    span = extract_object_span(cleaned)
    if span is None:
        return None
    data = _loads_object(span)
    if data is not None:
        return data
    return _loads_object(repair(span))


def to_identify_result(data: dict[str, Any]) -> IdentifyResult:
    return IdentifyResult.from_dict(data)
