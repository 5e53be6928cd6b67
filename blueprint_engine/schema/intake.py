"""Intake contract: request validation plus task-driven derivation of planning defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from blueprint_engine.ai.errors import IntakeInvalid
from blueprint_engine.schema.fields import NonBlankStr
from blueprint_engine.schema.options import (
  DURATION_MINUTES,
  MAX_CONSTRAINTS,
  MAX_SESSION_MINUTES,
  MIN_SESSION_MINUTES,
  AgeGroup,
  Constraint,
  DesignType,
  Duration,
  Role,
  Setting,
  Task,
  TimeHorizon,
)
from blueprint_engine.schema.violations import ROOT_PATH, Violation, violations_from_errors

DESIRED_OUTCOME_MIN_CHARS = 5


@dataclass(frozen=True)
class TaskDefaults:
  """Planning fields implied by a task when the user leaves them unset."""

  role: Role
  design_type: DesignType
  time_horizon: TimeHorizon


TASK_DEFAULTS: dict[Task, TaskDefaults] = {
  Task.TEACHING_A_CLASS: TaskDefaults(Role.TEACHER, DesignType.SINGLE_LESSON, TimeHorizon.SINGLE_SESSION),
  Task.LEADING_A_WORKSHOP: TaskDefaults(Role.PASTOR_LEADER, DesignType.SINGLE_LESSON, TimeHorizon.SINGLE_SESSION),
  Task.BUILDING_A_CURRICULUM: TaskDefaults(Role.PASTOR_LEADER, DesignType.QUARTER_CURRICULUM, TimeHorizon.QUARTER_SEMESTER),
}


def derive_for_task(task: Task) -> TaskDefaults:
  """Return the fixed role/design/horizon triple for a task."""
  return TASK_DEFAULTS[task]


class Intake(BaseModel):
  """User-declared planning request as received on the wire."""

  model_config = ConfigDict(extra="forbid", alias_generator=to_camel, frozen=True)

  task: Task
  role: Role | None = None
  design_type: DesignType | None = None
  time_horizon: TimeHorizon | None = None
  age_group: AgeGroup
  group_name: NonBlankStr
  leader_name: NonBlankStr | None = None
  desired_outcome: str
  topic_or_text: str | None = None
  setting: Setting
  setting_detail: str | None = Field(default=None, validate_default=True)
  duration: Duration
  duration_custom_minutes: StrictInt | None = Field(default=None, ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES, validate_default=True)
  constraints: list[Constraint] = Field(default_factory=list)

  @field_validator("desired_outcome")
  @classmethod
  def _check_desired_outcome(cls, value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) < DESIRED_OUTCOME_MIN_CHARS:
      raise ValueError(f"desiredOutcome must be at least {DESIRED_OUTCOME_MIN_CHARS} characters.")
    return trimmed

  @field_validator("topic_or_text", "setting_detail")
  @classmethod
  def _blank_to_none(cls, value: str | None) -> str | None:
    if value is None:
      return None
    trimmed = value.strip()
    return trimmed or None

  @field_validator("setting_detail", mode="after")
  @classmethod
  def _require_setting_detail(cls, value: str | None, info: ValidationInfo) -> str | None:
    if info.data.get("setting") == Setting.OTHER and not (value or "").strip():
      raise ValueError("settingDetail is required when setting is Other.")
    return value

  @field_validator("duration_custom_minutes", mode="before")
  @classmethod
  def _custom_minutes_only_for_custom(cls, value: Any, info: ValidationInfo) -> Any:
    duration = info.data.get("duration")
    # Custom minutes are irrelevant unless the duration option asks for them.
    if duration is not None and duration != Duration.CUSTOM:
      return None
    if duration == Duration.CUSTOM and value is None:
      raise ValueError("durationCustomMinutes is required when duration is Custom.")
    return value

  @field_validator("constraints")
  @classmethod
  def _check_constraints(cls, value: list[Constraint]) -> list[Constraint]:
    unique = list(dict.fromkeys(value))
    if len(unique) > MAX_CONSTRAINTS:
      raise ValueError(f"Choose at most {MAX_CONSTRAINTS} constraints.")
    return unique


class NormalizedIntake(BaseModel):
  """Intake with every derivable field resolved; the only input the prompt composer reads."""

  model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True, frozen=True)

  task: Task
  role: Role
  design_type: DesignType
  time_horizon: TimeHorizon
  age_group: AgeGroup
  group_name: str
  leader_name: str | None = None
  desired_outcome: str
  topic_or_text: str = ""
  setting: Setting
  setting_detail: str | None = None
  duration: Duration
  duration_minutes: int
  constraints: tuple[Constraint, ...] = ()

  def to_json(self) -> dict[str, Any]:
    """Return the camelCase document stored alongside the blueprint."""
    return self.model_dump(mode="json", by_alias=True)


def resolve_duration_minutes(duration: Duration, custom_minutes: int | None) -> int:
  fixed = DURATION_MINUTES.get(duration)
  if fixed is not None:
    return fixed
  if custom_minutes is None:
    raise ValueError("durationCustomMinutes is required when duration is Custom.")
  return custom_minutes


def _wire_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  # Defaulted fields report their Python name; paths must use the camelCase wire name.
  wired: list[dict[str, Any]] = []
  for error in errors:
    loc = tuple(error.get("loc", ()))
    field = Intake.model_fields.get(loc[0]) if loc and isinstance(loc[0], str) else None
    if field is not None and field.alias:
      loc = (field.alias, *loc[1:])
    wired.append({**error, "loc": loc})
  return wired


def validate_intake(payload: Any) -> Intake:
  """Validate a raw request body, raising IntakeInvalid with every violation found."""
  if not isinstance(payload, dict):
    raise IntakeInvalid([Violation(ROOT_PATH, "Intake must be a JSON object.")])

  try:
    return Intake.model_validate(payload)
  except ValidationError as exc:
    raise IntakeInvalid(violations_from_errors(_wire_errors(exc.errors()))) from exc


def normalize_intake(intake: Intake) -> NormalizedIntake:
  """Fill role, design type and time horizon from the task when they were not supplied."""
  defaults = derive_for_task(intake.task)
  return NormalizedIntake(
    task=intake.task,
    role=intake.role or defaults.role,
    design_type=intake.design_type or defaults.design_type,
    time_horizon=intake.time_horizon or defaults.time_horizon,
    age_group=intake.age_group,
    group_name=intake.group_name,
    leader_name=intake.leader_name,
    desired_outcome=intake.desired_outcome,
    topic_or_text=intake.topic_or_text or "",
    setting=intake.setting,
    setting_detail=intake.setting_detail,
    duration=intake.duration,
    duration_minutes=resolve_duration_minutes(intake.duration, intake.duration_custom_minutes),
    constraints=tuple(intake.constraints),
  )


def parse_intake(payload: Any) -> NormalizedIntake:
  return normalize_intake(validate_intake(payload))
