"""Data contracts for one blueprint generation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from blueprint_engine.schema.blueprint_models import Blueprint
from blueprint_engine.schema.violations import Violation


class PipelineState(str, Enum):
  START = "start"
  NORMALIZING = "normalizing"
  COMPOSING = "composing"
  INVOKING = "invoking"
  PARSING = "parsing"
  VALIDATING = "validating"
  REPAIRING = "repairing"
  PERSISTING = "persisting"
  DONE = "done"
  FAILED = "failed"


class AttemptKind(str, Enum):
  INITIAL = "initial"
  REPAIR = "repair"


class FailureKind(str, Enum):
  EMPTY = "empty"
  JSON = "json"
  SCHEMA = "schema"


# Stage tags reported to callers, keyed by which attempt failed and how.
FAILURE_STAGES: dict[tuple[AttemptKind, FailureKind], str] = {
  (AttemptKind.INITIAL, FailureKind.EMPTY): "openai",
  (AttemptKind.INITIAL, FailureKind.JSON): "json-parse",
  (AttemptKind.INITIAL, FailureKind.SCHEMA): "schema-validate",
  (AttemptKind.REPAIR, FailureKind.EMPTY): "openai-repair-empty",
  (AttemptKind.REPAIR, FailureKind.JSON): "json-parse-repair",
  (AttemptKind.REPAIR, FailureKind.SCHEMA): "schema-validate-repair",
}


@dataclass(frozen=True)
class AttemptRecord:
  """Prompt, raw output and outcome of one model invocation."""

  kind: AttemptKind
  prompt: str
  raw: str | None = None
  failure: FailureKind | None = None
  violations: tuple[Violation, ...] = ()
  parse_error: str | None = None
  usage: dict[str, int] | None = None

  @property
  def stage(self) -> str | None:
    if self.failure is None:
      return None
    return FAILURE_STAGES[(self.kind, self.failure)]

  def details(self) -> Any:
    """Diagnostic payload for error bodies: violations, or the parser message."""
    if self.failure is FailureKind.SCHEMA:
      return [violation.to_dict() for violation in self.violations]
    if self.failure is FailureKind.JSON:
      return self.parse_error
    return None


@dataclass(frozen=True)
class OrchestrationResult:
  """Output from a successful generation run."""

  blueprint_id: str
  blueprint: Blueprint
  request_id: str
  model: str
  repaired: bool
  attempts: tuple[AttemptRecord, ...]
  transitions: tuple[PipelineState, ...]
  logs: list[str] = field(default_factory=list)
  usage: list[dict[str, Any]] = field(default_factory=list)
  latency_ms: int = 0

  @property
  def repair_attempt(self) -> AttemptRecord | None:
    for attempt in self.attempts:
      if attempt.kind is AttemptKind.REPAIR:
        return attempt
    return None
