"""Persistence gateway for validated blueprints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from blueprint_engine.ai.errors import PersistenceError
from blueprint_engine.schema.blueprint_models import Blueprint
from blueprint_engine.schema.intake import NormalizedIntake
from blueprint_engine.schema.validate_blueprint import BlueprintInvalid, validate_blueprint
from blueprint_engine.storage.blueprints_repo import BlueprintRecord, BlueprintsRepository, BlueprintSummary
from blueprint_engine.utils.ids import generate_blueprint_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlueprint:
  """A stored document that passed re-validation against the current contract."""

  blueprint_id: str
  blueprint: Blueprint
  created_at: str | None


class BlueprintGateway:
  """Insert, fetch and list blueprints on top of a repository."""

  def __init__(self, repo: BlueprintsRepository, *, schema_version: str, prompt_version: str) -> None:
    self._repo = repo
    self._schema_version = schema_version
    self._prompt_version = prompt_version

  async def insert(self, owner_id: str, intake: NormalizedIntake, blueprint: Blueprint, *, model: str = "", repaired: bool = False, latency_ms: int = 0) -> str:
    """Store a validated blueprint with its denormalized index fields and return the new id."""
    # Index columns are copied out of the document for listing.
    record = BlueprintRecord(
      blueprint_id=generate_blueprint_id(),
      user_id=owner_id,
      intake=intake.to_json(),
      blueprint=blueprint.to_json(),
      title=blueprint.header.title,
      role=blueprint.header.role.value,
      group_name=blueprint.header.prepared_for.group_name,
      schema_version=self._schema_version,
      prompt_version=self._prompt_version,
      model=model,
      repaired=repaired,
      latency_ms=latency_ms,
    )
    # Driver and connection errors map to the insert stage.
    try:
      return await self._repo.insert_blueprint(record)
    except (SQLAlchemyError, OSError) as exc:
      logger.error("Blueprint insert failed user_id=%s error_type=%s", owner_id, type(exc).__name__, exc_info=True)
      raise PersistenceError(str(exc) or type(exc).__name__) from exc

  async def fetch_by_id(self, blueprint_id: str, owner_id: str) -> StoredBlueprint | None:
    """Return the stored blueprint, or None when it is unknown or no longer satisfies the current contract."""
    record = await self._repo.get_blueprint(blueprint_id, owner_id)
    if record is None:
      return None

    # Rows written under another schema version are not readable by the current validator.
    if record.schema_version != self._schema_version:
      logger.warning("Blueprint schema version mismatch id=%s stored=%s current=%s", blueprint_id, record.schema_version, self._schema_version)
      return None

    # Re-validate against the current contract.
    result = validate_blueprint(record.blueprint)
    if isinstance(result, BlueprintInvalid):
      keys = sorted(record.blueprint) if isinstance(record.blueprint, dict) else None
      logger.warning("Stored blueprint failed re-validation id=%s violations=%d keys=%s", blueprint_id, len(result.violations), keys)
      return None

    return StoredBlueprint(blueprint_id=record.blueprint_id, blueprint=result.blueprint, created_at=record.created_at)

  async def list_for_owner(self, owner_id: str, *, limit: int = 50, offset: int = 0) -> list[BlueprintSummary]:
    """Return the owner's list items, newest first."""
    return await self._repo.list_blueprints(owner_id, limit=limit, offset=offset)
