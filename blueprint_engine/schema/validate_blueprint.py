"""Validate candidate blueprint documents and report path-addressable violations."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from blueprint_engine.schema.blueprint_models import BLUEPRINT_ADAPTER, MODULE_KEY_BY_ROLE, Blueprint, role_tag
from blueprint_engine.schema.options import DesignType, Role, enum_values
from blueprint_engine.schema.violations import ROOT_PATH, Violation, clean_message, dedupe, format_path, group_by_path, join_path

ROOT_KEYS: tuple[str, ...] = ("header", "overview", "modules", "recommendedResources")

# Where each role variant keeps its delivery sessions, and how to reach the Session object in each item.
_SESSION_LOCATIONS: dict[Role, tuple[tuple[str, ...], str | None]] = {
  Role.TEACHER: (("modules", "teacher", "lessonPlan", "sessions"), None),
  Role.PASTOR_LEADER: (("modules", "pastorLeader", "sessions"), "sessionPlan"),
  Role.YOUTH_LEADER: (("modules", "youthLeader", "activityIntegratedPlan", "sessions"), None),
}


@dataclass(frozen=True)
class BlueprintValid:
  blueprint: Blueprint
  ok: bool = True


@dataclass(frozen=True)
class BlueprintInvalid:
  violations: tuple[Violation, ...]
  ok: bool = False

  def by_path(self) -> dict[str, list[str]]:
    return group_by_path(self.violations)


ValidationResult = BlueprintValid | BlueprintInvalid


def _is_int(value: Any) -> bool:
  return isinstance(value, int) and not isinstance(value, bool)


def _dig(document: Any, keys: tuple[str, ...]) -> Any:
  current = document
  for key in keys:
    if not isinstance(current, dict):
      return None
    current = current.get(key)
  return current


def _pydantic_violations(exc: ValidationError, role: Role) -> list[Violation]:
  expected_key = MODULE_KEY_BY_ROLE[role]
  other_keys = {key for key in MODULE_KEY_BY_ROLE.values() if key != expected_key}
  violations: list[Violation] = []
  for error in exc.errors():
    # The first loc entry is the union tag (the role), not a document key.
    loc = tuple(error.get("loc", ()))[1:]
    message = clean_message(str(error.get("msg", "")))
    if len(loc) == 2 and loc[0] == "modules":
      if loc[1] in other_keys:
        message = f"Only modules.{expected_key} may be present when header.role is {role.value}."
      elif loc[1] == expected_key and error.get("type") == "missing":
        message = f"modules.{expected_key} is required when header.role is {role.value}."
    violations.append(Violation(format_path(loc), message))
  return violations


def _iter_delivery_sessions(candidate: dict[str, Any], role: Role) -> Iterator[tuple[str, dict[str, Any]]]:
  keys, inner_key = _SESSION_LOCATIONS[role]
  sessions = _dig(candidate, keys)
  if not isinstance(sessions, list):
    return
  base = ".".join(keys)
  for index, item in enumerate(sessions):
    session = item.get(inner_key) if inner_key and isinstance(item, dict) else item
    if isinstance(session, dict):
      path = join_path(base, index, inner_key) if inner_key else join_path(base, index)
      yield path, session


def _flow_violation(path: str, session: dict[str, Any]) -> Violation | None:
  declared = session.get("durationMinutes")
  flow = session.get("flow")
  if not _is_int(declared) or not isinstance(flow, list) or not flow:
    return None
  minutes = [segment.get("minutes") if isinstance(segment, dict) else None for segment in flow]
  # A sum is only meaningful when every segment carries an integer minute count.
  if not all(_is_int(value) for value in minutes):
    return None
  total = sum(minutes)
  if total != declared:
    return Violation(join_path(path, "flow"), f"Flow minutes sum to {total} but durationMinutes is {declared}.")
  return None


def cross_field_violations(candidate: Any) -> list[Violation]:
  """Numeric and cardinality invariants checked on the raw document.

  These run even when unrelated fields are malformed so that, for example, a flow
  that does not add up is always reported.
  """
  if not isinstance(candidate, dict):
    return []
  tag = role_tag(candidate)
  if tag is None:
    return []
  role = Role(tag)

  violations: list[Violation] = []
  context = _dig(candidate, ("header", "context"))
  context_minutes = context.get("durationMinutes") if isinstance(context, dict) else None
  design_type = context.get("designType") if isinstance(context, dict) else None

  sessions = list(_iter_delivery_sessions(candidate, role))
  for path, session in sessions:
    flow_violation = _flow_violation(path, session)
    if flow_violation is not None:
      violations.append(flow_violation)
    declared = session.get("durationMinutes")
    if _is_int(context_minutes) and _is_int(declared) and declared != context_minutes:
      violations.append(Violation(join_path(path, "durationMinutes"), f"Session durationMinutes is {declared} but header.context.durationMinutes is {context_minutes}."))

  keys, _inner = _SESSION_LOCATIONS[role]
  raw_sessions = _dig(candidate, keys)
  if design_type == DesignType.SINGLE_LESSON.value and isinstance(raw_sessions, list) and len(raw_sessions) > 1:
    violations.append(Violation(".".join(keys), f"A Single Lesson design must contain exactly one session, found {len(raw_sessions)}."))

  return violations


def _root_violations(candidate: dict[str, Any]) -> list[Violation]:
  violations: list[Violation] = []
  role = _dig(candidate, ("header", "role"))
  if role is None:
    violations.append(Violation("header.role", "Field required"))
  else:
    violations.append(Violation("header.role", f"header.role must be one of: {', '.join(enum_values(Role))}."))
  for key in ROOT_KEYS:
    if key not in candidate:
      violations.append(Violation(key, "Field required"))
  for key in candidate:
    if key not in ROOT_KEYS:
      violations.append(Violation(str(key), "Extra inputs are not permitted"))
  return violations


def validate_blueprint(candidate: Any) -> ValidationResult:
  """Validate a parsed candidate against the blueprint contract.

  Returns BlueprintValid with the typed document, or BlueprintInvalid with a flat
  list of violations suitable for feeding back into a repair prompt.
  """
  if not isinstance(candidate, dict):
    return BlueprintInvalid((Violation(ROOT_PATH, f"Blueprint must be a JSON object, got {type(candidate).__name__}."),))

  tag = role_tag(candidate)
  # Without a usable role the module variant cannot be chosen.
  if tag is None:
    return BlueprintInvalid(tuple(_root_violations(candidate)))

  violations: list[Violation] = []
  blueprint: Blueprint | None = None
  try:
    blueprint = BLUEPRINT_ADAPTER.validate_python(candidate)
  except ValidationError as exc:
    violations.extend(_pydantic_violations(exc, Role(tag)))

  violations.extend(cross_field_violations(candidate))

  if violations or blueprint is None:
    return BlueprintInvalid(tuple(dedupe(violations)))
  return BlueprintValid(blueprint)
