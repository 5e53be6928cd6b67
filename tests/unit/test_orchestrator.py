"""Unit tests for the generate, validate and repair state machine."""

from __future__ import annotations

import json

import pytest

from blueprint_engine.ai.errors import ConfigError, IntakeInvalid, JsonParseError, PersistenceError, SchemaInvalid, UpstreamEmpty, UpstreamError
from blueprint_engine.ai.orchestrator import BlueprintOrchestrator
from blueprint_engine.ai.pipeline.contracts import PipelineState

OWNER = "owner-1"


def _break_flow(document: dict) -> dict:
  document["modules"]["teacher"]["lessonPlan"]["sessions"][0]["flow"][0]["minutes"] = 10
  return document


@pytest.mark.anyio
async def test_first_attempt_success_persists_once(intake_payload, teacher_blueprint, model_class, orchestrator_for, repo) -> None:
  model = model_class([teacher_blueprint])
  result = await orchestrator_for(model).generate(intake_payload, owner_id=OWNER, request_id="req-1")

  assert model.calls == 1
  assert result.repaired is False
  assert result.repair_attempt is None
  assert result.request_id == "req-1"
  assert result.transitions[-1] is PipelineState.DONE
  assert PipelineState.REPAIRING not in result.transitions

  record = repo.records[result.blueprint_id]
  assert record.user_id == OWNER
  assert record.title == "Who Is My Neighbor?"
  assert record.role == "Teacher"
  assert record.group_name == "Tuesday Adults"
  assert record.model == "fake-model"
  assert record.repaired is False
  assert record.intake["durationMinutes"] == 60


@pytest.mark.anyio
async def test_wrapped_output_is_accepted(intake_payload, teacher_blueprint, model_class, orchestrator_for) -> None:
  model = model_class([{"blueprint": teacher_blueprint}])
  result = await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 1
  assert result.blueprint.header.title == "Who Is My Neighbor?"


@pytest.mark.anyio
async def test_schema_failure_then_successful_repair(intake_payload, teacher_blueprint, model_class, orchestrator_for, repo) -> None:
  broken = _break_flow(json.loads(json.dumps(teacher_blueprint)))
  model = model_class([broken, teacher_blueprint])
  result = await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)

  assert model.calls == 2
  assert result.repaired is True
  assert PipelineState.REPAIRING in result.transitions
  repair_prompt = model.prompts[1]
  assert "Validation errors you must fix:" in repair_prompt
  assert "Flow minutes sum to 55 but durationMinutes is 60." in repair_prompt
  assert json.dumps(broken) in repair_prompt
  assert repo.records[result.blueprint_id].repaired is True


@pytest.mark.anyio
async def test_schema_failure_after_repair_is_terminal(intake_payload, teacher_blueprint, model_class, orchestrator_for, repo) -> None:
  broken = _break_flow(teacher_blueprint)
  model = model_class([broken, broken])
  with pytest.raises(SchemaInvalid) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)

  exc = exc_info.value
  assert model.calls == 2
  assert exc.stage == "schema-validate-repair"
  assert exc.status_code == 502
  assert exc.message == "Blueprint schema validation failed (after repair)."
  assert exc.initial_raw == json.dumps(broken)[:4000]
  assert exc.initial_details[0]["message"] == "Flow minutes sum to 55 but durationMinutes is 60."
  assert "state=repairing" in exc.logs
  assert repo.records == {}


@pytest.mark.anyio
async def test_invalid_json_then_repair(intake_payload, teacher_blueprint, model_class, orchestrator_for) -> None:
  model = model_class(["```json\n{}\n```", teacher_blueprint])
  result = await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 2
  assert result.repaired is True
  assert "Output was not valid JSON" in model.prompts[1]


@pytest.mark.anyio
async def test_invalid_json_after_repair(intake_payload, model_class, orchestrator_for) -> None:
  model = model_class(["not json", "still not json"])
  with pytest.raises(JsonParseError) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert exc_info.value.stage == "json-parse-repair"
  assert exc_info.value.raw == "still not json"
  assert exc_info.value.initial_raw == "not json"


@pytest.mark.anyio
async def test_empty_output_after_repair(intake_payload, model_class, orchestrator_for) -> None:
  model = model_class(["", ""])
  with pytest.raises(UpstreamEmpty) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 2
  assert exc_info.value.stage == "openai-repair-empty"


@pytest.mark.anyio
async def test_repair_disabled_reports_first_attempt(intake_payload, teacher_blueprint, model_class, orchestrator_for) -> None:
  model = model_class([_break_flow(teacher_blueprint)])
  with pytest.raises(SchemaInvalid) as exc_info:
    await orchestrator_for(model, repair_enabled=False).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 1
  assert exc_info.value.stage == "schema-validate"
  assert exc_info.value.initial_raw is None


@pytest.mark.anyio
async def test_invalid_intake_never_calls_model(intake_payload, model_class, orchestrator_for) -> None:
  model = model_class([])
  with pytest.raises(IntakeInvalid) as exc_info:
    await orchestrator_for(model).generate({**intake_payload, "duration": "Custom"}, owner_id=OWNER)
  assert model.calls == 0
  assert "state=normalizing" in exc_info.value.logs


@pytest.mark.anyio
async def test_missing_credential_fails_before_network(intake_payload, gateway) -> None:
  def _factory():
    raise ConfigError("OPENAI_API_KEY missing.")

  orchestrator = BlueprintOrchestrator(model_factory=_factory, gateway=gateway)
  with pytest.raises(ConfigError) as exc_info:
    await orchestrator.generate(intake_payload, owner_id=OWNER)
  assert exc_info.value.stage == "config"
  assert exc_info.value.status_code == 500


@pytest.mark.anyio
async def test_upstream_error_is_terminal_without_repair(intake_payload, model_class, orchestrator_for) -> None:
  model = model_class([UpstreamError(details="APITimeoutError: timed out")])
  with pytest.raises(UpstreamError) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 1
  assert exc_info.value.stage == "openai"


@pytest.mark.anyio
async def test_insert_failure_is_reported_after_success(intake_payload, teacher_blueprint, model_class, orchestrator_for, repo) -> None:
  repo.insert_error = OSError("connection refused")
  model = model_class([teacher_blueprint])
  with pytest.raises(PersistenceError) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert exc_info.value.stage == "insert"
  assert "state=persisting" in exc_info.value.logs


@pytest.mark.anyio
async def test_missing_role_module_on_both_attempts(intake_payload, teacher_blueprint, model_class, orchestrator_for, repo) -> None:
  teacher_blueprint["modules"] = {}
  model = model_class([teacher_blueprint, teacher_blueprint])
  with pytest.raises(SchemaInvalid) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)

  exc = exc_info.value
  assert model.calls == 2
  assert '"path": "modules.teacher"' in model.prompts[1]
  assert "modules.teacher is required when header.role is Teacher." in model.prompts[1]
  assert exc.stage == "schema-validate-repair"
  assert "modules.teacher" in {violation.path for violation in exc.violations}
  assert {"path": "modules.teacher", "message": "modules.teacher is required when header.role is Teacher."} in exc.initial_details
  assert repo.records == {}


@pytest.mark.anyio
async def test_deeply_nested_output_is_repairable(intake_payload, teacher_blueprint, model_class, orchestrator_for) -> None:
  model = model_class(["[" * 100000 + "]" * 100000, teacher_blueprint])
  result = await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)
  assert model.calls == 2
  assert result.repaired is True
  assert "Output was not valid JSON" in model.prompts[1]


@pytest.mark.anyio
async def test_upstream_error_on_repair_keeps_first_attempt(intake_payload, teacher_blueprint, model_class, orchestrator_for) -> None:
  broken = _break_flow(teacher_blueprint)
  model = model_class([broken, UpstreamError(details="APIConnectionError: reset")])
  with pytest.raises(UpstreamError) as exc_info:
    await orchestrator_for(model).generate(intake_payload, owner_id=OWNER)

  exc = exc_info.value
  assert model.calls == 2
  assert exc.stage == "openai"
  assert exc.initial_raw == json.dumps(broken)[:4000]
  assert exc.initial_details[0]["message"] == "Flow minutes sum to 55 but durationMinutes is 60."
