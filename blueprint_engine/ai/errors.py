"""Stage-tagged failure taxonomy for the blueprint generation pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from blueprint_engine.schema.violations import Violation

DEFAULT_RAW_TRUNCATE_CHARS = 4000


def truncate_raw(raw: str | None, limit: int = DEFAULT_RAW_TRUNCATE_CHARS) -> str | None:
  """Clamp raw model output so diagnostics stay bounded."""
  if raw is None:
    return None
  return raw[:limit]


def _serialize_details(details: Any) -> Any:
  if isinstance(details, Sequence) and not isinstance(details, str):
    return [item.to_dict() if isinstance(item, Violation) else item for item in details]
  return details


class PipelineFailure(RuntimeError):
  """Base class for every terminal pipeline failure surfaced to callers."""

  stage = "unhandled"
  status_code = 500
  default_message = "Unexpected error."

  def __init__(
    self,
    message: str | None = None,
    *,
    stage: str | None = None,
    details: Any = None,
    raw: str | None = None,
    initial_raw: str | None = None,
    initial_details: Any = None,
    logs: list[str] | None = None,
  ) -> None:
    self.message = message or self.default_message
    super().__init__(self.message)
    # Instance-level stage overrides the class default (e.g. repair-branch tags).
    if stage is not None:
      self.stage = stage
    self.details = details
    self.raw = raw
    self.initial_raw = initial_raw
    self.initial_details = initial_details
    self.logs = logs or []

  def to_payload(self, *, truncate_chars: int = DEFAULT_RAW_TRUNCATE_CHARS) -> dict[str, Any]:
    """Build the structured error body returned to HTTP callers."""
    payload: dict[str, Any] = {"error": self.message, "stage": self.stage}
    if self.details is not None:
      payload["details"] = _serialize_details(self.details)
    if self.raw is not None:
      payload["raw"] = truncate_raw(self.raw, truncate_chars)
    if self.initial_raw is not None:
      payload["initialRaw"] = truncate_raw(self.initial_raw, truncate_chars)
    if self.initial_details is not None:
      payload["initialDetails"] = _serialize_details(self.initial_details)
    return payload


class IntakeInvalid(PipelineFailure):
  stage = "intake-validate"
  status_code = 400
  default_message = "Invalid intake."

  def __init__(self, violations: Sequence[Violation], message: str | None = None) -> None:
    super().__init__(message, details=list(violations))
    self.violations = list(violations)


class Unauthorized(PipelineFailure):
  stage = "auth"
  status_code = 401
  default_message = "Unauthorized"


class ConfigError(PipelineFailure):
  stage = "config"
  status_code = 500
  default_message = "Service configuration is incomplete."


class UpstreamError(PipelineFailure):
  """The generation service call itself failed (transport, auth, rate limit)."""

  stage = "openai"
  status_code = 502
  default_message = "Generation service request failed."


class UpstreamEmpty(PipelineFailure):
  stage = "openai"
  status_code = 502
  default_message = "Model returned empty output."


class JsonParseError(PipelineFailure):
  stage = "json-parse"
  status_code = 502
  default_message = "Model returned invalid JSON."


class SchemaInvalid(PipelineFailure):
  stage = "schema-validate"
  status_code = 502
  default_message = "Blueprint schema validation failed."

  def __init__(self, violations: Sequence[Violation], message: str | None = None, **kwargs: Any) -> None:
    super().__init__(message, details=list(violations), **kwargs)
    self.violations = list(violations)


class PersistenceError(PipelineFailure):
  stage = "insert"
  status_code = 500
  default_message = "Failed to store blueprint."


class Unhandled(PipelineFailure):
  stage = "unhandled"
  status_code = 500
  default_message = "Unexpected error."
