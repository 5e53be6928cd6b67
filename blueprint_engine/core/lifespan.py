import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from blueprint_engine.core.database import dispose_engine
from blueprint_engine.core.firebase import initialize_firebase
from blueprint_engine.core.logging import initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and Firebase on startup; release database connections on shutdown."""
  from blueprint_engine.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("blueprint_engine.core.lifespan")

  initialize_logging(settings)
  logger.info("Startup environment=%s model=%s repair_enabled=%s", settings.environment, settings.openai_model, settings.repair_enabled)
  # Missing secrets are reported, not fatal; requests fail with a config stage instead.
  if not settings.openai_api_key:
    logger.warning("OPENAI_API_KEY is not set; generation requests will fail with stage=config.")
  if not settings.pg_dsn:
    logger.warning("BLUEPRINT_PG_DSN is not set; persistence is unavailable.")
  initialize_firebase()

  yield

  await dispose_engine()
  logger.info("Shutdown complete.")
