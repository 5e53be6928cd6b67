"""Pydantic models for the generated blueprint document.

The wire format is camelCase and closed: every object rejects unknown keys, and the
`modules` object carries exactly the module that matches `header.role`. The three
role variants form a tagged union selected by `header.role`.
"""

from __future__ import annotations

from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, StrictInt, Tag, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from blueprint_engine.schema.fields import NonBlankStr, SegmentMinutes, SessionMinutes, StringList
from blueprint_engine.schema.methodology import movement_for_bloom_level
from blueprint_engine.schema.options import BloomLevel, DesignType, Movement, PlanType, Role, TimeHorizon

MIN_GROWTH_INDICATORS = 3
MIN_RESOURCES = 3
MAX_RESOURCES = 6

# Module key carried by each role variant.
MODULE_KEY_BY_ROLE: dict[Role, str] = {Role.TEACHER: "teacher", Role.PASTOR_LEADER: "pastorLeader", Role.YOUTH_LEADER: "youthLeader"}


class _BlueprintModel(BaseModel):
  model_config = ConfigDict(extra="forbid", alias_generator=to_camel, frozen=True)


class PreparedFor(_BlueprintModel):
  leader_name: NonBlankStr
  group_name: NonBlankStr


class HeaderContext(_BlueprintModel):
  design_type: DesignType
  time_horizon: TimeHorizon
  age_group: NonBlankStr
  setting: NonBlankStr
  duration_minutes: SessionMinutes
  topic_or_text: str
  constraints: list[NonBlankStr] | None = None


class Header(_BlueprintModel):
  title: NonBlankStr
  subtitle: NonBlankStr | None = None
  role: Role
  prepared_for: PreparedFor
  context: HeaderContext


class Outcomes(_BlueprintModel):
  formation_goal: NonBlankStr
  how_to_measure_growth: Annotated[list[NonBlankStr], Field(min_length=MIN_GROWTH_INDICATORS)]


class ObjectiveSet(_BlueprintModel):
  head: NonBlankStr
  heart: NonBlankStr
  hands: NonBlankStr


class Overview(_BlueprintModel):
  outcomes: Outcomes
  head_heart_hands_objectives: ObjectiveSet


class Engagement(_BlueprintModel):
  inform: StringList
  inspire: StringList
  involve: StringList


class FlowSegment(_BlueprintModel):
  segment: NonBlankStr
  minutes: SegmentMinutes
  purpose: NonBlankStr
  movement: Movement
  bloom_level: BloomLevel | None = None

  @model_validator(mode="after")
  def _bloom_level_matches_movement(self) -> FlowSegment:
    if self.bloom_level is not None:
      expected = movement_for_bloom_level(self.bloom_level)
      if expected != self.movement:
        raise ValueError(f"bloomLevel {self.bloom_level.value} belongs to the {expected.value} movement, not {self.movement.value}.")
    return self


class Session(_BlueprintModel):
  title: NonBlankStr
  duration_minutes: SessionMinutes
  objectives: ObjectiveSet
  engagement: Engagement
  flow: Annotated[list[FlowSegment], Field(min_length=1)]


# Teacher module


class FacilitationPrompts(_BlueprintModel):
  opening_questions: StringList
  discussion_questions: StringList
  application_prompts: StringList


class LessonPlan(_BlueprintModel):
  plan_type: PlanType
  sessions: Annotated[list[Session], Field(min_length=1)]


class TeacherModule(_BlueprintModel):
  prep_checklist: StringList
  lesson_plan: LessonPlan
  facilitation_prompts: FacilitationPrompts


# Pastor/Leader module


class PlanOverview(_BlueprintModel):
  plan_type: PlanType
  cadence: NonBlankStr
  alignment_notes: StringList


class LeaderSession(_BlueprintModel):
  title: NonBlankStr
  objective: NonBlankStr
  leader_prep: StringList
  session_plan: Session
  take_home_practice: StringList


class TrainingSession(_BlueprintModel):
  title: NonBlankStr
  duration_minutes: SessionMinutes
  agenda: StringList


class LeaderTrainingPlan(_BlueprintModel):
  training_sessions: Annotated[list[TrainingSession], Field(min_length=1)]
  coaching_notes: StringList


class MeasurementFramework(_BlueprintModel):
  inputs_to_track: StringList
  outcomes_to_measure: StringList
  simple_rubric: StringList


class PastorLeaderModule(_BlueprintModel):
  plan_overview: PlanOverview
  sessions: Annotated[list[LeaderSession], Field(min_length=1)]
  leader_training_plan: LeaderTrainingPlan
  measurement_framework: MeasurementFramework


# Youth Leader module


class ActivityIntegratedPlan(_BlueprintModel):
  sessions: Annotated[list[Session], Field(min_length=1)]


class Activity(_BlueprintModel):
  name: NonBlankStr
  objective_tie: NonBlankStr
  setup: NonBlankStr
  time_minutes: Annotated[StrictInt, Field(ge=1)]
  debrief_questions: StringList


class LeaderNotes(_BlueprintModel):
  transitions: StringList
  engagement_moves: StringList
  guardrails: StringList


class YouthLeaderModule(_BlueprintModel):
  activity_integrated_plan: ActivityIntegratedPlan
  activity_bank: Annotated[list[Activity], Field(min_length=1)]
  leader_notes: LeaderNotes


class TeacherModules(_BlueprintModel):
  teacher: TeacherModule


class PastorLeaderModules(_BlueprintModel):
  pastor_leader: PastorLeaderModule


class YouthLeaderModules(_BlueprintModel):
  youth_leader: YouthLeaderModule


class Resource(_BlueprintModel):
  title: NonBlankStr
  author: NonBlankStr
  publisher: NonBlankStr
  amazon_url: NonBlankStr
  publisher_url: NonBlankStr
  why_this_helps: NonBlankStr


class _BlueprintBase(_BlueprintModel):
  header: Header
  overview: Overview
  recommended_resources: Annotated[list[Resource], Field(min_length=MIN_RESOURCES, max_length=MAX_RESOURCES)]

  def to_json(self) -> dict[str, Any]:
    """Return the camelCase wire document, omitting unset optional fields."""
    return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TeacherBlueprint(_BlueprintBase):
  modules: TeacherModules


class PastorLeaderBlueprint(_BlueprintBase):
  modules: PastorLeaderModules


class YouthLeaderBlueprint(_BlueprintBase):
  modules: YouthLeaderModules


Blueprint = TeacherBlueprint | PastorLeaderBlueprint | YouthLeaderBlueprint

_ROLE_VALUES = frozenset(role.value for role in Role)


def role_tag(value: Any) -> str | None:
  """Pick the union variant from `header.role`; None when the role is missing or unknown."""
  if isinstance(value, _BlueprintBase):
    return value.header.role.value
  if isinstance(value, dict):
    header = value.get("header")
    if isinstance(header, dict):
      role = header.get("role")
      if isinstance(role, str) and role in _ROLE_VALUES:
        return role
  return None


BlueprintDocument = Annotated[
  Union[
    Annotated[TeacherBlueprint, Tag(Role.TEACHER.value)],
    Annotated[PastorLeaderBlueprint, Tag(Role.PASTOR_LEADER.value)],
    Annotated[YouthLeaderBlueprint, Tag(Role.YOUTH_LEADER.value)],
  ],
  Discriminator(role_tag, custom_error_type="invalid_role", custom_error_message="header.role must be one of: Teacher, Pastor/Leader, Youth Leader."),
]

BLUEPRINT_ADAPTER: TypeAdapter[Blueprint] = TypeAdapter(BlueprintDocument)
