"""Orchestration for the blueprint generation, validation and repair pipeline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from blueprint_engine.ai.errors import DEFAULT_RAW_TRUNCATE_CHARS, JsonParseError, PipelineFailure, SchemaInvalid, Unhandled, UpstreamEmpty, UpstreamError, truncate_raw
from blueprint_engine.ai.json_output import candidate_keys, parse_model_output, unwrap_candidate
from blueprint_engine.ai.pipeline.contracts import AttemptKind, AttemptRecord, FailureKind, OrchestrationResult, PipelineState
from blueprint_engine.ai.prompts import render_blueprint_prompt, render_repair_prompt
from blueprint_engine.ai.providers.base import AIModel
from blueprint_engine.schema.blueprint_models import Blueprint
from blueprint_engine.schema.intake import NormalizedIntake, normalize_intake, validate_intake
from blueprint_engine.schema.validate_blueprint import BlueprintInvalid, validate_blueprint
from blueprint_engine.schema.violations import ROOT_PATH, Violation
from blueprint_engine.services.blueprints import BlueprintGateway
from blueprint_engine.utils.ids import generate_request_id

logger = logging.getLogger(__name__)

ModelFactory = Callable[[], AIModel]


@dataclass
class _RunContext:
  """Mutable state for one run."""

  request_id: str
  started_at: float
  transitions: list[PipelineState] = field(default_factory=list)
  logs: list[str] = field(default_factory=list)
  attempts: list[AttemptRecord] = field(default_factory=list)
  usage: list[dict[str, Any]] = field(default_factory=list)

  def enter(self, state: PipelineState) -> None:
    self.transitions.append(state)
    message = f"state={state.value}"
    self.logs.append(message)
    logger.info("Blueprint run request_id=%s %s", self.request_id, message)


@dataclass(frozen=True)
class _AttemptOutcome:
  record: AttemptRecord
  blueprint: Blueprint | None = None


class BlueprintOrchestrator:
  """Runs intake, prompt, model call, parse and validate, with at most one repair pass."""

  def __init__(self, *, model_factory: ModelFactory, gateway: BlueprintGateway, repair_enabled: bool = True, raw_truncate_chars: int = DEFAULT_RAW_TRUNCATE_CHARS) -> None:
    self._model_factory = model_factory
    self._gateway = gateway
    self._repair_enabled = repair_enabled
    self._raw_truncate_chars = raw_truncate_chars

  async def generate(self, payload: Any, *, owner_id: str, request_id: str | None = None) -> OrchestrationResult:
    """Run the pipeline for one intake payload and persist the validated blueprint."""
    ctx = _RunContext(request_id=request_id or generate_request_id(), started_at=time.perf_counter())
    ctx.enter(PipelineState.START)
    try:
      return await self._run(ctx, payload, owner_id)
    except PipelineFailure as exc:
      exc.logs = list(ctx.logs)
      ctx.enter(PipelineState.FAILED)
      logger.warning("Blueprint run failed request_id=%s stage=%s error=%s", ctx.request_id, exc.stage, exc.message)
      raise
    except Exception as exc:
      ctx.enter(PipelineState.FAILED)
      logger.error("Blueprint run unhandled request_id=%s error_type=%s", ctx.request_id, type(exc).__name__, exc_info=True)
      raise Unhandled(str(exc) or type(exc).__name__, logs=list(ctx.logs)) from exc

  async def _run(self, ctx: _RunContext, payload: Any, owner_id: str) -> OrchestrationResult:
    # Intake errors surface before any prompt or model work.
    ctx.enter(PipelineState.NORMALIZING)
    intake = normalize_intake(validate_intake(payload))

    ctx.enter(PipelineState.COMPOSING)
    prompt = render_blueprint_prompt(intake)

    # Building the model checks configuration before any network call.
    model = self._model_factory()

    # One initial call plus at most one repair call.
    attempt_plan = [AttemptKind.INITIAL, AttemptKind.REPAIR] if self._repair_enabled else [AttemptKind.INITIAL]
    blueprint: Blueprint | None = None
    for kind in attempt_plan:
      outcome = await self._attempt(ctx, model, kind, prompt)
      ctx.attempts.append(outcome.record)
      if outcome.blueprint is not None:
        blueprint = outcome.blueprint
        break
      if kind is attempt_plan[-1]:
        raise self._terminal_failure(ctx)
      # The repair prompt restates the contract with the violations and the bad output.
      ctx.enter(PipelineState.REPAIRING)
      prompt = render_repair_prompt(self._repair_violations(outcome.record), outcome.record.raw or "", role=intake.role)

    if blueprint is None:
      raise RuntimeError("Attempt loop finished without a blueprint or a failure.")

    return await self._persist(ctx, intake, blueprint, owner_id, model)

  async def _attempt(self, ctx: _RunContext, model: AIModel, kind: AttemptKind, prompt: str) -> _AttemptOutcome:
    ctx.enter(PipelineState.INVOKING)
    try:
      response = await model.generate(prompt)
    except UpstreamEmpty:
      logger.warning("Empty model output request_id=%s attempt=%s", ctx.request_id, kind.value)
      return _AttemptOutcome(AttemptRecord(kind=kind, prompt=prompt, raw="", failure=FailureKind.EMPTY))
    except UpstreamError as exc:
      # A failed repair call keeps the first attempt diagnostics.
      if kind is AttemptKind.REPAIR and ctx.attempts:
        initial = ctx.attempts[0]
        exc.initial_raw = truncate_raw(initial.raw, self._raw_truncate_chars)
        exc.initial_details = initial.details()
      raise

    # Usage is recorded per attempt even when the output turns out unusable.
    raw = response.content
    if response.usage:
      ctx.usage.append({"attempt": kind.value, **response.usage})
    if not raw.strip():
      return _AttemptOutcome(AttemptRecord(kind=kind, prompt=prompt, raw=raw, failure=FailureKind.EMPTY, usage=response.usage))

    ctx.enter(PipelineState.PARSING)
    try:
      parsed = parse_model_output(raw, truncate_chars=self._raw_truncate_chars)
    except JsonParseError as exc:
      logger.warning("Invalid JSON request_id=%s attempt=%s error=%s raw=%s", ctx.request_id, kind.value, exc.details, truncate_raw(raw, self._raw_truncate_chars))
      return _AttemptOutcome(AttemptRecord(kind=kind, prompt=prompt, raw=raw, failure=FailureKind.JSON, parse_error=str(exc.details), usage=response.usage))

    # Strip one known wrapper layer before checking the contract.
    ctx.enter(PipelineState.VALIDATING)
    candidate = unwrap_candidate(parsed)
    result = validate_blueprint(candidate)
    if isinstance(result, BlueprintInvalid):
      logger.warning(
        "Schema validation failed request_id=%s attempt=%s violations=%d keys=%s raw=%s",
        ctx.request_id,
        kind.value,
        len(result.violations),
        candidate_keys(candidate),
        truncate_raw(raw, self._raw_truncate_chars),
      )
      return _AttemptOutcome(AttemptRecord(kind=kind, prompt=prompt, raw=raw, failure=FailureKind.SCHEMA, violations=result.violations, usage=response.usage))

    return _AttemptOutcome(AttemptRecord(kind=kind, prompt=prompt, raw=raw, usage=response.usage), blueprint=result.blueprint)

  def _repair_violations(self, record: AttemptRecord) -> list[Violation]:
    if record.failure is FailureKind.SCHEMA:
      return list(record.violations)
    if record.failure is FailureKind.JSON:
      return [Violation(ROOT_PATH, f"Output was not valid JSON: {record.parse_error}")]
    return [Violation(ROOT_PATH, "Output was empty; return the complete JSON object.")]

  def _terminal_failure(self, ctx: _RunContext) -> PipelineFailure:
    """Map the last failed attempt to its stage-tagged error, carrying first-attempt diagnostics on the repair branch."""
    last = ctx.attempts[-1]
    repaired_branch = last.kind is AttemptKind.REPAIR
    initial = ctx.attempts[0] if repaired_branch else None
    extra: dict[str, Any] = {"stage": last.stage}
    if initial is not None:
      extra["initial_raw"] = truncate_raw(initial.raw, self._raw_truncate_chars)
      extra["initial_details"] = initial.details()

    if last.failure is FailureKind.EMPTY:
      message = "Model repair returned empty output." if repaired_branch else "Model returned empty output."
      return UpstreamEmpty(message, **extra)
    if last.failure is FailureKind.JSON:
      message = "Model repair returned invalid JSON." if repaired_branch else "Model returned invalid JSON."
      return JsonParseError(message, details=last.parse_error, raw=truncate_raw(last.raw, self._raw_truncate_chars), **extra)
    message = "Blueprint schema validation failed (after repair)." if repaired_branch else "Blueprint schema validation failed."
    return SchemaInvalid(last.violations, message, raw=truncate_raw(last.raw, self._raw_truncate_chars), **extra)

  async def _persist(self, ctx: _RunContext, intake: NormalizedIntake, blueprint: Blueprint, owner_id: str, model: AIModel) -> OrchestrationResult:
    ctx.enter(PipelineState.PERSISTING)
    # Only a validated blueprint reaches storage.
    repaired = len(ctx.attempts) > 1
    latency_ms = int((time.perf_counter() - ctx.started_at) * 1000)
    blueprint_id = await self._gateway.insert(owner_id, intake, blueprint, model=model.name, repaired=repaired, latency_ms=latency_ms)
    ctx.enter(PipelineState.DONE)
    return OrchestrationResult(
      blueprint_id=blueprint_id,
      blueprint=blueprint,
      request_id=ctx.request_id,
      model=model.name,
      repaired=repaired,
      attempts=tuple(ctx.attempts),
      transitions=tuple(ctx.transitions),
      logs=list(ctx.logs),
      usage=list(ctx.usage),
      latency_ms=latency_ms,
    )
