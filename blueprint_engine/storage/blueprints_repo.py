"""Storage interfaces and records for blueprint persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class BlueprintRecord:
  """Row stored in the blueprints table."""

  blueprint_id: str
  user_id: str
  intake: dict[str, Any]
  blueprint: dict[str, Any]
  title: str
  role: str
  group_name: str
  schema_version: str
  prompt_version: str
  model: str
  repaired: bool = False
  latency_ms: int = 0
  created_at: str | None = None


@dataclass(frozen=True)
class BlueprintSummary:
  """List-view projection built from the denormalized columns only."""

  blueprint_id: str
  title: str
  role: str
  group_name: str
  created_at: str | None


class BlueprintsRepository(Protocol):
  """Repository contract for blueprint persistence."""

  async def insert_blueprint(self, record: BlueprintRecord) -> str:
    """Persist a new blueprint row and return its id."""

  async def get_blueprint(self, blueprint_id: str, user_id: str) -> BlueprintRecord | None:
    """Fetch one blueprint row owned by the user."""

  async def list_blueprints(self, user_id: str, *, limit: int, offset: int) -> list[BlueprintSummary]:
    """List the user's blueprints, newest first."""
