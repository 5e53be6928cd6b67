from blueprint_engine.config import Settings
from blueprint_engine.storage.blueprints_repo import BlueprintsRepository
from blueprint_engine.storage.postgres_blueprints_repo import PostgresBlueprintsRepository


def get_blueprints_repo(settings: Settings) -> BlueprintsRepository:
  """Return the active blueprints repository."""

  # Enforce Postgres-backed storage for blueprints.

  if not settings.pg_dsn:
    raise ValueError("BLUEPRINT_PG_DSN must be set to enable Postgres persistence.")

  return PostgresBlueprintsRepository()
