"""Path-addressable validation violations shared by intake and blueprint checks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

ROOT_PATH = "$"

_VALUE_ERROR_PREFIXES = ("Value error, ", "Assertion failed, ")


@dataclass(frozen=True)
class Violation:
  """A single contract violation addressed by a dotted field path."""

  path: str
  message: str

  def to_dict(self) -> dict[str, str]:
    return {"path": self.path, "message": self.message}

  def __str__(self) -> str:
    return f"{self.path}: {self.message}"


def format_path(loc: Sequence[Any]) -> str:
  """Render a pydantic error location as a dotted path, `$` for the root."""
  if not loc:
    return ROOT_PATH
  return ".".join(str(part) for part in loc)


def join_path(base: str, *parts: Any) -> str:
  prefix = "" if base == ROOT_PATH else base
  tail = ".".join(str(part) for part in parts)
  if not prefix:
    return tail or ROOT_PATH
  return f"{prefix}.{tail}" if tail else prefix


def clean_message(message: str) -> str:
  """Drop pydantic's error-kind prefix so messages read as plain sentences."""
  for prefix in _VALUE_ERROR_PREFIXES:
    if message.startswith(prefix):
      return message[len(prefix) :]
  return message


def violations_from_errors(errors: Iterable[dict[str, Any]], *, skip_loc: int = 0) -> list[Violation]:
  """Convert pydantic error dicts into violations, optionally dropping leading loc parts."""
  violations: list[Violation] = []
  for error in errors:
    loc = tuple(error.get("loc", ()))[skip_loc:]
    violations.append(Violation(path=format_path(loc), message=clean_message(str(error.get("msg", "")))))
  return violations


def dedupe(violations: Iterable[Violation]) -> list[Violation]:
  """Drop repeated violations while keeping first-seen order."""
  return list(dict.fromkeys(violations))


def group_by_path(violations: Iterable[Violation]) -> dict[str, list[str]]:
  grouped: dict[str, list[str]] = {}
  for violation in violations:
    grouped.setdefault(violation.path, []).append(violation.message)
  return grouped
