"""Prompt rendering for blueprint generation and the single repair pass.

Both prompts restate the same canonical shape text so a repair never introduces
requirements the first prompt did not carry.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from blueprint_engine.schema.blueprint_models import MAX_RESOURCES, MIN_GROWTH_INDICATORS, MIN_RESOURCES, MODULE_KEY_BY_ROLE
from blueprint_engine.schema.intake import NormalizedIntake
from blueprint_engine.schema.methodology import CORE_CONVICTIONS, METHOD_NAME, MOVEMENTS, OBJECTIVE_DIMENSIONS
from blueprint_engine.schema.options import BloomLevel, DesignType, Movement, PlanType, Role, Setting, TimeHorizon, enum_values
from blueprint_engine.schema.violations import Violation


def _choices(enum_cls: type) -> str:
  return " | ".join(enum_values(enum_cls))


_SESSION_SHAPE = f"""{{
  "title": "string",
  "durationMinutes": number,
  "objectives": {{ "head": "string", "heart": "string", "hands": "string" }},
  "engagement": {{ "inform": ["string", "..."], "inspire": ["string", "..."], "involve": ["string", "..."] }},
  "flow": [
    {{ "segment": "string", "minutes": number, "purpose": "string", "movement": "{_choices(Movement)}", "bloomLevel": "{_choices(BloomLevel)} (optional)" }}
  ]
}}"""

_MODULE_SHAPES: dict[Role, str] = {
  Role.TEACHER: f"""{{
  "prepChecklist": ["string", "..."],
  "lessonPlan": {{
    "planType": "{_choices(PlanType)}",
    "sessions": [SESSION]
  }},
  "facilitationPrompts": {{ "openingQuestions": ["string", "..."], "discussionQuestions": ["string", "..."], "applicationPrompts": ["string", "..."] }}
}}""",
  Role.PASTOR_LEADER: f"""{{
  "planOverview": {{ "planType": "{_choices(PlanType)}", "cadence": "string", "alignmentNotes": ["string", "..."] }},
  "sessions": [
    {{ "title": "string", "objective": "string", "leaderPrep": ["string", "..."], "sessionPlan": SESSION, "takeHomePractice": ["string", "..."] }}
  ],
  "leaderTrainingPlan": {{
    "trainingSessions": [ {{ "title": "string", "durationMinutes": number, "agenda": ["string", "..."] }} ],
    "coachingNotes": ["string", "..."]
  }},
  "measurementFramework": {{ "inputsToTrack": ["string", "..."], "outcomesToMeasure": ["string", "..."], "simpleRubric": ["string", "..."] }}
}}""",
  Role.YOUTH_LEADER: """{
  "activityIntegratedPlan": { "sessions": [SESSION] },
  "activityBank": [
    { "name": "string", "objectiveTie": "string", "setup": "string", "timeMinutes": number, "debriefQuestions": ["string", "..."] }
  ],
  "leaderNotes": { "transitions": ["string", "..."], "engagementMoves": ["string", "..."], "guardrails": ["string", "..."] }
}""",
}

_TRACK_GUIDANCE: dict[Role, str] = {
  Role.TEACHER: """- Focus on volunteer-friendly clarity: prep checklist + session flow + facilitation prompts.
- Provide discussion questions and application prompts that are concrete and Scripture-shaped.
- Keep it practical (assume limited prep time).""",
  Role.PASTOR_LEADER: """- Focus on alignment across preaching, teaching, and small groups around shared formation outcomes.
- Include leader training and a simple measurement framework.
- Prefer scalable structures and coaching notes for ministry teams.""",
  Role.YOUTH_LEADER: """- Integrate activities AND connect them explicitly to the Inform / Inspire / Involve movements.
- Keep segments short, interactive, and transition-friendly.
- Include debrief questions that turn activities into learning evidence.""",
}

_COUNT_RULES: dict[Role, str] = {
  Role.TEACHER: """- prepChecklist: at least 5 items
- facilitationPrompts.openingQuestions: at least 3
- facilitationPrompts.discussionQuestions: at least 4
- facilitationPrompts.applicationPrompts: at least 3""",
  Role.PASTOR_LEADER: """- planOverview.alignmentNotes: at least 3
- each session.leaderPrep: at least 2
- each session.takeHomePractice: at least 2
- leaderTrainingPlan.trainingSessions: at least 1, each agenda at least 4 items
- measurementFramework lists: at least 3 items each""",
  Role.YOUTH_LEADER: """- activityBank: at least 3 activities
- each activity.debriefQuestions: at least 3
- leaderNotes lists: at least 3 items each""",
}


def render_methodology() -> str:
  """Render the mandatory teaching method as a prompt section."""
  lines = [f"{METHOD_NAME} (mandatory method)", "Core convictions:"]
  lines.extend(f"- {conviction}" for conviction in CORE_CONVICTIONS)
  lines.append("Movements (every session moves through all three, in order):")
  for stage in MOVEMENTS:
    levels = " + ".join(level.value for level in stage.bloom_levels)
    lines.append(f"- {stage.movement.value} ({levels}): {stage.summary}")
  lines.append("Objective dimensions:")
  lines.extend(f"- {key}: {question}" for key, question in OBJECTIVE_DIMENSIONS)
  return "\n".join(lines)


def render_blueprint_shape(role: Role) -> str:
  """Render the exact JSON shape and hard rules for a role. Shared by generation and repair."""
  module_key = MODULE_KEY_BY_ROLE[role]
  module_shape = _MODULE_SHAPES[role].replace("SESSION", _SESSION_SHAPE)
  omitted = " and ".join(f'"modules.{key}"' for key in MODULE_KEY_BY_ROLE.values() if key != module_key)
  return f"""REQUIRED ROOT KEYS (exactly these, no extra):
- header
- overview
- modules
- recommendedResources

REQUIRED SHAPE (keys must match exactly):
{{
  "header": {{
    "title": "string",
    "subtitle": "string (optional)",
    "role": "{role.value}",
    "preparedFor": {{ "leaderName": "string", "groupName": "string" }},
    "context": {{
      "designType": "{_choices(DesignType)}",
      "timeHorizon": "{_choices(TimeHorizon)}",
      "ageGroup": "string",
      "setting": "string",
      "durationMinutes": number,
      "topicOrText": "string",
      "constraints": ["string"] (optional)
    }}
  }},
  "overview": {{
    "outcomes": {{ "formationGoal": "string", "howToMeasureGrowth": ["string", "..."] }},
    "headHeartHandsObjectives": {{ "head": "string", "heart": "string", "hands": "string" }}
  }},
  "modules": {{
    "{module_key}": {module_shape}
  }},
  "recommendedResources": [
    {{ "title": "string", "author": "string", "publisher": "string", "amazonUrl": "string", "publisherUrl": "string", "whyThisHelps": "string" }}
  ]
}}

HARD RULES:
- Output ONLY a single JSON object. No wrapper keys like {{ "blueprint": ... }}.
- Include ONLY "modules.{module_key}"; omit {omitted} entirely (never null, never {{}}).
- modules.{module_key} MUST be a fully populated OBJECT (not an array, not empty).
- Every string must be non-empty. Numbers must be JSON integers.
- Each session includes objectives (head, heart, hands) and engagement (inform, inspire, involve).
- Each flow item MUST include movement: {_choices(Movement)}. bloomLevel, when present, must belong to that movement.
- Flow minutes MUST sum to the session durationMinutes exactly.
- Every session durationMinutes MUST equal header.context.durationMinutes.
- A "{DesignType.SINGLE_LESSON.value}" design contains exactly one session.
- overview.outcomes.howToMeasureGrowth: at least {MIN_GROWTH_INDICATORS} observable indicators.
- recommendedResources: {MIN_RESOURCES}–{MAX_RESOURCES} items.
{_COUNT_RULES[role]}"""


def _format_setting(intake: NormalizedIntake) -> str:
  if intake.setting == Setting.OTHER and intake.setting_detail:
    return f"{intake.setting.value}: {intake.setting_detail}"
  return intake.setting.value


def _format_constraints(intake: NormalizedIntake) -> str:
  return ", ".join(constraint.value for constraint in intake.constraints) or "None provided"


def render_blueprint_prompt(intake: NormalizedIntake) -> str:
  """Render the generation prompt. Pure: the same intake always yields the same text."""
  topic = intake.topic_or_text.strip() or "Not provided"
  leader = intake.leader_name or "Not provided"
  return f"""You are an expert Christian educator and ministry formation strategist.
Create a lesson blueprint using the {METHOD_NAME} method below.

Write with pastoral warmth and educational rigor. Be concrete and actionable. No fluff.
Assume the user is a busy volunteer or ministry leader with no formal training in education.
Use volunteer-friendly language (simple, practical, no academic jargon).

{render_methodology()}

INPUTS
Task: {intake.task.value}
Role: {intake.role.value}
Design type: {intake.design_type.value}
Time horizon: {intake.time_horizon.value}
Audience (age group): {intake.age_group.value}
Setting: {_format_setting(intake)}
Session duration (minutes): {intake.duration_minutes}
Topic / passage / series focus: {topic}
Desired outcome (primary): {intake.desired_outcome}
Constraints: {_format_constraints(intake)}
Prepared for: {leader} ({intake.group_name})

ROLE-SPECIFIC PRIORITIES
{_TRACK_GUIDANCE[intake.role]}

HEADER VALUES TO ECHO
- header.role: "{intake.role.value}"
- header.context.designType: "{intake.design_type.value}"
- header.context.timeHorizon: "{intake.time_horizon.value}"
- header.context.durationMinutes: {intake.duration_minutes}
- header.context.topicOrText: {json.dumps(intake.topic_or_text, ensure_ascii=False)}
- header.preparedFor.groupName: {json.dumps(intake.group_name, ensure_ascii=False)}

OUTPUT REQUIREMENTS
- Return ONLY valid JSON. No markdown. No commentary.

{render_blueprint_shape(intake.role)}

RECOMMENDED RESOURCES RULES
- Keep them credible and widely available.
- Use real URLs only when confident; otherwise use search URLs:
  Amazon search: https://www.amazon.com/s?k=<urlencoded title + author>
  Publisher search: https://www.google.com/search?q=<urlencoded publisher + title>
- Do NOT invent ISBNs, endorsements or quotes.

FINAL CHECK BEFORE RETURNING JSON
- header.role matches "{intake.role.value}" exactly and ONLY the matching module exists.
- Flow minutes add up for every session.
- Return pure JSON only. No extra keys. No trailing commas."""


def render_repair_prompt(violations: Sequence[Violation], bad_raw: str, *, role: Role) -> str:
  """Render the corrective prompt for the single repair pass."""
  serialized = json.dumps([violation.to_dict() for violation in violations], indent=2, ensure_ascii=False)
  return f"""Fix the JSON to match the REQUIRED schema EXACTLY. Return ONLY the corrected JSON object.

IMPORTANT:
- Use volunteer-friendly language (simple, practical, no academic jargon).
- The {METHOD_NAME} method is mandatory: objectives cover head, heart and hands; engagement covers inform, inspire and involve.

{render_blueprint_shape(role)}

Validation errors you must fix:
{serialized}

Bad JSON you produced:
{bad_raw}"""
