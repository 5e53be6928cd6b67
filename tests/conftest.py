"""Shared fixtures: environment, sample documents, in-memory storage and a scripted model."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import replace
from typing import Any

os.environ.setdefault("BLUEPRINT_ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("BLUEPRINT_ENV", "test")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from blueprint_engine.ai.errors import UpstreamEmpty  # noqa: E402
from blueprint_engine.ai.orchestrator import BlueprintOrchestrator  # noqa: E402
from blueprint_engine.ai.providers.base import AIModel, ModelResponse, SimpleModelResponse  # noqa: E402
from blueprint_engine.api.deps import get_gateway, get_orchestrator  # noqa: E402
from blueprint_engine.core.security import get_current_user_id  # noqa: E402
from blueprint_engine.main import app  # noqa: E402
from blueprint_engine.services.blueprints import BlueprintGateway  # noqa: E402
from blueprint_engine.storage.blueprints_repo import BlueprintRecord, BlueprintSummary  # noqa: E402

TEST_USER_ID = "user-123"
SCHEMA_VERSION = "2"
PROMPT_VERSION = "v1"


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


def _session(title: str, minutes: int = 60) -> dict[str, Any]:
  return {
    "title": title,
    "durationMinutes": minutes,
    "objectives": {"head": "Explain the parable", "heart": "Feel compassion for neighbors", "hands": "Serve one neighbor this week"},
    "engagement": {"inform": ["Read Luke 10:25-37"], "inspire": ["Share a story of mercy"], "involve": ["Plan a service step"]},
    "flow": [
      {"segment": "Welcome and read", "minutes": 15, "purpose": "Ground the group in the text", "movement": "Inform", "bloomLevel": "Remember"},
      {"segment": "Story and reflection", "minutes": 25, "purpose": "Move the heart toward mercy", "movement": "Inspire", "bloomLevel": "Analyze"},
      {"segment": "Practice planning", "minutes": 20, "purpose": "Commit to one act of service", "movement": "Involve", "bloomLevel": "Create"},
    ],
  }


def _header(role: str, *, design_type: str = "Single Lesson", time_horizon: str = "Single Session") -> dict[str, Any]:
  return {
    "title": "Who Is My Neighbor?",
    "subtitle": "The Good Samaritan",
    "role": role,
    "preparedFor": {"leaderName": "Sam", "groupName": "Tuesday Adults"},
    "context": {"designType": design_type, "timeHorizon": time_horizon, "ageGroup": "Adults", "setting": "Small Group", "durationMinutes": 60, "topicOrText": "Luke 10:25-37"},
  }


_OVERVIEW = {
  "outcomes": {"formationGoal": "Love neighbors across boundaries", "howToMeasureGrowth": ["Names a neighbor in need", "Describes a mercy step", "Reports back next week"]},
  "headHeartHandsObjectives": {"head": "Know the parable", "heart": "Desire to show mercy", "hands": "Act on it this week"},
}

_RESOURCES = [
  {"title": f"Resource {index}", "author": "Author", "publisher": "Publisher", "amazonUrl": "https://www.amazon.com/s?k=resource", "publisherUrl": "https://www.google.com/search?q=resource", "whyThisHelps": "Deepens the study."}
  for index in range(1, 4)
]


def _teacher_blueprint() -> dict[str, Any]:
  return {
    "header": _header("Teacher"),
    "overview": copy.deepcopy(_OVERVIEW),
    "modules": {
      "teacher": {
        "prepChecklist": ["Read the passage", "Print handouts"],
        "lessonPlan": {"planType": "Single Session", "sessions": [_session("Session 1")]},
        "facilitationPrompts": {"openingQuestions": ["Who has helped you?"], "discussionQuestions": ["Why did the priest pass by?"], "applicationPrompts": ["Who will you serve?"]},
      }
    },
    "recommendedResources": copy.deepcopy(_RESOURCES),
  }


def _pastor_blueprint() -> dict[str, Any]:
  return {
    "header": _header("Pastor/Leader", design_type="Multi-Week Series", time_horizon="4–6 Weeks"),
    "overview": copy.deepcopy(_OVERVIEW),
    "modules": {
      "pastorLeader": {
        "planOverview": {"planType": "Multi-Session", "cadence": "Weekly", "alignmentNotes": ["Sermon and groups share one text"]},
        "sessions": [
          {"title": "Week 1", "objective": "See the neighbor", "leaderPrep": ["Pray for the group"], "sessionPlan": _session("Week 1"), "takeHomePractice": ["Notice one need"]},
          {"title": "Week 2", "objective": "Serve the neighbor", "leaderPrep": ["Gather stories"], "sessionPlan": _session("Week 2"), "takeHomePractice": ["Meet one need"]},
        ],
        "leaderTrainingPlan": {"trainingSessions": [{"title": "Leader huddle", "durationMinutes": 45, "agenda": ["Review the text"]}], "coachingNotes": ["Model vulnerability"]},
        "measurementFramework": {"inputsToTrack": ["Attendance"], "outcomesToMeasure": ["Service stories"], "simpleRubric": ["Beginning, growing, established"]},
      }
    },
    "recommendedResources": copy.deepcopy(_RESOURCES),
  }


def _youth_blueprint() -> dict[str, Any]:
  return {
    "header": _header("Youth Leader"),
    "overview": copy.deepcopy(_OVERVIEW),
    "modules": {
      "youthLeader": {
        "activityIntegratedPlan": {"sessions": [_session("Night 1")]},
        "activityBank": [{"name": "Roadside rescue", "objectiveTie": "Hands", "setup": "Cones and a blindfold", "timeMinutes": 10, "debriefQuestions": ["How did it feel to be helped?"]}],
        "leaderNotes": {"transitions": ["Use a countdown"], "engagementMoves": ["Call on small teams"], "guardrails": ["Keep it physically safe"]},
      }
    },
    "recommendedResources": copy.deepcopy(_RESOURCES),
  }


@pytest.fixture
def teacher_blueprint() -> dict[str, Any]:
  return _teacher_blueprint()


@pytest.fixture
def pastor_blueprint() -> dict[str, Any]:
  return _pastor_blueprint()


@pytest.fixture
def youth_blueprint() -> dict[str, Any]:
  return _youth_blueprint()


@pytest.fixture
def intake_payload() -> dict[str, Any]:
  return {
    "task": "Teaching A Class",
    "ageGroup": "Adults",
    "groupName": "Tuesday Adults",
    "leaderName": "Sam",
    "desiredOutcome": "Grow in practical mercy toward neighbors",
    "topicOrText": "Luke 10:25-37",
    "setting": "Small Group",
    "duration": "45–60 min",
    "constraints": ["Limited prep time"],
  }


class InMemoryBlueprintsRepo:
  """Dict-backed repository matching the BlueprintsRepository contract."""

  def __init__(self) -> None:
    self.records: dict[str, BlueprintRecord] = {}
    self.insert_error: Exception | None = None

  async def insert_blueprint(self, record: BlueprintRecord) -> str:
    if self.insert_error is not None:
      raise self.insert_error
    stored = replace(record, created_at=f"2026-01-01T00:00:{len(self.records):02d}+00:00")
    self.records[record.blueprint_id] = stored
    return record.blueprint_id

  async def get_blueprint(self, blueprint_id: str, user_id: str) -> BlueprintRecord | None:
    record = self.records.get(blueprint_id)
    if record is None or record.user_id != user_id:
      return None
    return record

  async def list_blueprints(self, user_id: str, *, limit: int, offset: int) -> list[BlueprintSummary]:
    owned = [record for record in self.records.values() if record.user_id == user_id]
    owned.sort(key=lambda record: record.created_at or "", reverse=True)
    return [BlueprintSummary(blueprint_id=record.blueprint_id, title=record.title, role=record.role, group_name=record.group_name, created_at=record.created_at) for record in owned[offset : offset + limit]]


class FakeModel(AIModel):
  """Returns queued outputs in order; an exception in the queue is raised instead."""

  def __init__(self, outputs: list[Any], name: str = "fake-model") -> None:
    self.name = name
    self._outputs = list(outputs)
    self.prompts: list[str] = []

  def push(self, *outputs: Any) -> None:
    self._outputs.extend(outputs)

  @property
  def calls(self) -> int:
    return len(self.prompts)

  async def generate(self, prompt: str) -> ModelResponse:
    self.prompts.append(prompt)
    if not self._outputs:
      raise AssertionError("FakeModel called more times than outputs were queued.")
    output = self._outputs.pop(0)
    if isinstance(output, Exception):
      raise output
    if output == "":
      raise UpstreamEmpty()
    text = output if isinstance(output, str) else json.dumps(output)
    return SimpleModelResponse(content=text, usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30})


@pytest.fixture
def repo() -> InMemoryBlueprintsRepo:
  return InMemoryBlueprintsRepo()


@pytest.fixture
def gateway(repo: InMemoryBlueprintsRepo) -> BlueprintGateway:
  return BlueprintGateway(repo, schema_version=SCHEMA_VERSION, prompt_version=PROMPT_VERSION)


def build_orchestrator(gateway: BlueprintGateway, model: AIModel, *, repair_enabled: bool = True) -> BlueprintOrchestrator:
  return BlueprintOrchestrator(model_factory=lambda: model, gateway=gateway, repair_enabled=repair_enabled, raw_truncate_chars=4000)


@pytest.fixture
def model_class() -> type[FakeModel]:
  return FakeModel


@pytest.fixture
def orchestrator_for(gateway: BlueprintGateway):
  """Build an orchestrator around a scripted model sharing the test gateway."""

  def _build(model: AIModel, *, repair_enabled: bool = True) -> BlueprintOrchestrator:
    return build_orchestrator(gateway, model, repair_enabled=repair_enabled)

  return _build


@pytest.fixture
def fake_model() -> FakeModel:
  return FakeModel([])


@pytest.fixture
async def async_client(gateway: BlueprintGateway, fake_model: FakeModel):
  app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
  app.dependency_overrides[get_gateway] = lambda: gateway
  app.dependency_overrides[get_orchestrator] = lambda: build_orchestrator(gateway, fake_model)
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
