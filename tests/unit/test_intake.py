"""Unit tests for intake validation and task-driven derivation."""

from __future__ import annotations

import pytest

from blueprint_engine.ai.errors import IntakeInvalid
from blueprint_engine.schema.intake import normalize_intake, parse_intake, validate_intake
from blueprint_engine.schema.options import DesignType, Duration, Role, Task, TimeHorizon


def _paths(exc: IntakeInvalid) -> set[str]:
  return {violation.path for violation in exc.violations}


def test_teaching_a_class_derives_teacher_single_lesson(intake_payload) -> None:
  normalized = parse_intake(intake_payload)
  assert normalized.role is Role.TEACHER
  assert normalized.design_type is DesignType.SINGLE_LESSON
  assert normalized.time_horizon is TimeHorizon.SINGLE_SESSION
  assert normalized.duration_minutes == 60


@pytest.mark.parametrize(
  ("task", "role", "design_type", "time_horizon"),
  [
    (Task.LEADING_A_WORKSHOP, Role.PASTOR_LEADER, DesignType.SINGLE_LESSON, TimeHorizon.SINGLE_SESSION),
    (Task.BUILDING_A_CURRICULUM, Role.PASTOR_LEADER, DesignType.QUARTER_CURRICULUM, TimeHorizon.QUARTER_SEMESTER),
  ],
)
def test_task_defaults_fill_unset_fields(intake_payload, task, role, design_type, time_horizon) -> None:
  normalized = parse_intake({**intake_payload, "task": task.value})
  assert (normalized.role, normalized.design_type, normalized.time_horizon) == (role, design_type, time_horizon)


def test_explicit_fields_override_task_defaults(intake_payload) -> None:
  payload = {**intake_payload, "role": "Youth Leader", "designType": "Multi-Week Series", "timeHorizon": "4–6 Weeks"}
  normalized = parse_intake(payload)
  assert normalized.role is Role.YOUTH_LEADER
  assert normalized.design_type is DesignType.MULTI_WEEK_SERIES
  assert normalized.time_horizon is TimeHorizon.WEEKS_4_6


def test_seventy_five_to_ninety_resolves_to_ninety(intake_payload) -> None:
  assert parse_intake({**intake_payload, "duration": "75–90 min"}).duration_minutes == 90


def test_custom_duration_uses_custom_minutes(intake_payload) -> None:
  normalized = parse_intake({**intake_payload, "duration": "Custom", "durationCustomMinutes": 40})
  assert normalized.duration is Duration.CUSTOM
  assert normalized.duration_minutes == 40


def test_custom_duration_without_minutes_is_rejected(intake_payload) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "duration": "Custom"})
  assert exc_info.value.status_code == 400
  assert exc_info.value.stage == "intake-validate"
  assert "durationCustomMinutes" in _paths(exc_info.value)


@pytest.mark.parametrize("minutes", [9, 241, "45", 45.0])
def test_custom_minutes_must_be_integer_in_range(intake_payload, minutes) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "duration": "Custom", "durationCustomMinutes": minutes})
  assert "durationCustomMinutes" in _paths(exc_info.value)


def test_custom_minutes_ignored_for_fixed_duration(intake_payload) -> None:
  intake = validate_intake({**intake_payload, "durationCustomMinutes": 500})
  assert intake.duration_custom_minutes is None
  assert normalize_intake(intake).duration_minutes == 60


def test_other_setting_requires_detail(intake_payload) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "setting": "Other", "settingDetail": "   "})
  assert "settingDetail" in _paths(exc_info.value)


@pytest.mark.parametrize(
  ("overrides", "path"),
  [({"setting": "Other"}, "settingDetail"), ({"duration": "Custom"}, "durationCustomMinutes")],
)
def test_omitted_conditional_field_is_reported_by_wire_name(intake_payload, overrides, path) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, **overrides})
  assert _paths(exc_info.value) == {path}


def test_other_setting_with_detail_is_accepted(intake_payload) -> None:
  normalized = parse_intake({**intake_payload, "setting": "Other", "settingDetail": " Retreat weekend "})
  assert normalized.setting_detail == "Retreat weekend"


def test_desired_outcome_is_trimmed_and_checked(intake_payload) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "desiredOutcome": "  abc  "})
  assert "desiredOutcome" in _paths(exc_info.value)


def test_constraints_are_deduplicated_and_capped(intake_payload) -> None:
  normalized = parse_intake({**intake_payload, "constraints": ["Limited prep time", "Limited prep time", "Short session window"]})
  assert [constraint.value for constraint in normalized.constraints] == ["Limited prep time", "Short session window"]

  with pytest.raises(IntakeInvalid):
    validate_intake({**intake_payload, "constraints": ["Limited prep time", "Short session window", "High energy / easily distracted group"]})


def test_unknown_option_and_extra_key_are_reported_together(intake_payload) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "ageGroup": "Toddlers", "favoriteColor": "blue"})
  assert {"ageGroup", "favoriteColor"} <= _paths(exc_info.value)


def test_blank_group_name_is_rejected(intake_payload) -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake({**intake_payload, "groupName": "   "})
  assert "groupName" in _paths(exc_info.value)


def test_non_object_payload_is_rejected() -> None:
  with pytest.raises(IntakeInvalid) as exc_info:
    validate_intake(["not", "an", "object"])
  assert _paths(exc_info.value) == {"$"}


def test_blank_topic_normalizes_to_empty_string(intake_payload) -> None:
  normalized = parse_intake({**intake_payload, "topicOrText": "   "})
  assert normalized.topic_or_text == ""
  assert normalized.to_json()["topicOrText"] == ""
