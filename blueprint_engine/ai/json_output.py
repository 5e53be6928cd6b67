"""Strict JSON parsing and wrapper unwrapping for raw model output."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from blueprint_engine.ai.errors import DEFAULT_RAW_TRUNCATE_CHARS, JsonParseError, truncate_raw

# Keys the model sometimes nests the real document under, in lookup order.
WRAPPER_KEYS: tuple[str, ...] = ("blueprint", "data", "result", "payload")

# Keys that only appear on a bare blueprint document.
_DOCUMENT_KEYS = frozenset({"header", "overview", "modules", "recommendedResources"})


class WrapperKind(str, Enum):
  BARE = "bare"
  JSON_STRING = "json-string"
  ALIAS_KEY = "alias-key"


def parse_model_output(raw: str, *, truncate_chars: int = DEFAULT_RAW_TRUNCATE_CHARS) -> Any:
  """Parse raw model text as JSON without any repair or fence stripping."""
  try:
    return json.loads(raw)
  except json.JSONDecodeError as exc:
    raise JsonParseError(details=f"{exc.msg} (line {exc.lineno}, column {exc.colno})", raw=truncate_raw(raw, truncate_chars)) from exc
  except (RecursionError, ValueError) as exc:
    # Pathologically nested or otherwise undecodable text is still a parse failure.
    raise JsonParseError(details=f"{type(exc).__name__}: output could not be decoded", raw=truncate_raw(raw, truncate_chars)) from exc


def _decode_string(value: str) -> Any | None:
  try:
    return json.loads(value)
  except (RecursionError, ValueError):
    return None


def _alias_key(value: dict[str, Any]) -> str | None:
  # A document that already looks bare is never unwrapped.
  if _DOCUMENT_KEYS.intersection(value):
    return None
  for key in WRAPPER_KEYS:
    if isinstance(value.get(key), dict):
      return key
  return None


def classify_wrapper(value: Any) -> WrapperKind:
  """Tag which known wrapper shape, if any, the parsed value uses."""
  if isinstance(value, str) and _decode_string(value) is not None:
    return WrapperKind.JSON_STRING
  if isinstance(value, dict) and _alias_key(value) is not None:
    return WrapperKind.ALIAS_KEY
  return WrapperKind.BARE


def unwrap_candidate(value: Any) -> Any:
  """Strip one known wrapper layer; anything unrecognized passes through unchanged."""
  kind = classify_wrapper(value)
  if kind is WrapperKind.JSON_STRING:
    value = _decode_string(value)
    kind = classify_wrapper(value) if isinstance(value, dict) else WrapperKind.BARE
  if kind is WrapperKind.ALIAS_KEY:
    key = _alias_key(value)
    if key is not None:
      return value[key]
  return value


def candidate_keys(value: Any, limit: int = 40) -> list[str] | None:
  """Return the top-level keys of a candidate for diagnostics."""
  if isinstance(value, dict):
    return [str(key) for key in list(value)[:limit]]
  return None
