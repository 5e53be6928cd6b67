"""Postgres-backed repository for blueprint persistence using SQLAlchemy."""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from blueprint_engine.core.database import get_session_factory
from blueprint_engine.schema.blueprints import BlueprintRow
from blueprint_engine.storage.blueprints_repo import BlueprintRecord, BlueprintsRepository, BlueprintSummary

logger = logging.getLogger(__name__)


def _iso(value: datetime.datetime | None) -> str | None:
  return value.isoformat() if value is not None else None


class PostgresBlueprintsRepository(BlueprintsRepository):
  """Persist blueprints to Postgres using SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def insert_blueprint(self, record: BlueprintRecord) -> str:
    """Insert a blueprint row."""
    async with self._session_factory() as session:
      row = BlueprintRow(
        id=record.blueprint_id,
        user_id=record.user_id,
        intake=record.intake,
        blueprint=record.blueprint,
        title=record.title,
        role=record.role,
        group_name=record.group_name,
        schema_version=record.schema_version,
        prompt_version=record.prompt_version,
        model=record.model,
        repaired=record.repaired,
        latency_ms=record.latency_ms,
        created_at=datetime.datetime.now(datetime.UTC),
      )
      # Creation time is stamped in UTC.
      session.add(row)
      await session.commit()
      logger.info("Inserted blueprint id=%s user_id=%s role=%s", row.id, row.user_id, row.role)
      return row.id

  async def get_blueprint(self, blueprint_id: str, user_id: str) -> BlueprintRecord | None:
    """Fetch a blueprint row scoped to its owner."""
    async with self._session_factory() as session:
      # Owner-scoped; another user's id reads as unknown.
      stmt = select(BlueprintRow).where(BlueprintRow.id == blueprint_id, BlueprintRow.user_id == user_id)
      result = await session.execute(stmt)
      row = result.scalar_one_or_none()
      if row is None:
        return None
      return self._model_to_record(row)

  async def list_blueprints(self, user_id: str, *, limit: int, offset: int) -> list[BlueprintSummary]:
    """Return the owner's list items without loading the documents."""
    async with self._session_factory() as session:
      # Newest first, summary columns only.
      stmt = (
        select(BlueprintRow.id, BlueprintRow.title, BlueprintRow.role, BlueprintRow.group_name, BlueprintRow.created_at)
        .where(BlueprintRow.user_id == user_id)
        .order_by(BlueprintRow.created_at.desc())
        .limit(limit)
        .offset(offset)
      )
      result = await session.execute(stmt)
      return [BlueprintSummary(blueprint_id=row.id, title=row.title, role=row.role, group_name=row.group_name, created_at=_iso(row.created_at)) for row in result.all()]

  def _model_to_record(self, row: BlueprintRow) -> BlueprintRecord:
    """Convert a SQLAlchemy model to a domain record."""
    return BlueprintRecord(
      blueprint_id=row.id,
      user_id=row.user_id,
      intake=row.intake,
      blueprint=row.blueprint,
      title=row.title,
      role=row.role,
      group_name=row.group_name,
      schema_version=row.schema_version,
      prompt_version=row.prompt_version,
      model=row.model,
      repaired=bool(row.repaired),
      latency_ms=row.latency_ms,
      created_at=_iso(row.created_at),
    )
