"""Shared FastAPI dependencies for persistence and generation."""

from __future__ import annotations

import logging

from fastapi import Depends

from blueprint_engine.ai.errors import ConfigError
from blueprint_engine.ai.orchestrator import BlueprintOrchestrator
from blueprint_engine.ai.providers.base import AIModel
from blueprint_engine.ai.providers.openai_provider import build_openai_model
from blueprint_engine.config import Settings, get_settings
from blueprint_engine.services.blueprints import BlueprintGateway
from blueprint_engine.storage.blueprints_repo import BlueprintsRepository
from blueprint_engine.storage.factory import get_blueprints_repo

logger = logging.getLogger(__name__)


def get_repo(settings: Settings = Depends(get_settings)) -> BlueprintsRepository:  # noqa: B008
  """Return the configured blueprints repository, failing with a config stage when storage is unset."""
  try:
    return get_blueprints_repo(settings)
  except (ValueError, RuntimeError) as exc:
    logger.error("Blueprint storage unavailable: %s", exc)
    raise ConfigError(str(exc)) from exc


def get_gateway(repo: BlueprintsRepository = Depends(get_repo), settings: Settings = Depends(get_settings)) -> BlueprintGateway:  # noqa: B008
  """Build a request-scoped persistence gateway."""
  return BlueprintGateway(repo, schema_version=settings.schema_version, prompt_version=settings.prompt_version)


def get_model_factory(settings: Settings = Depends(get_settings)):  # noqa: ANN201, B008
  """Return a factory so the model (and its credential check) is built inside the pipeline."""

  def _factory() -> AIModel:
    return build_openai_model(settings)

  return _factory


def get_orchestrator(gateway: BlueprintGateway = Depends(get_gateway), model_factory=Depends(get_model_factory), settings: Settings = Depends(get_settings)) -> BlueprintOrchestrator:  # noqa: B008
  """Build a request-scoped orchestrator."""
  return BlueprintOrchestrator(model_factory=model_factory, gateway=gateway, repair_enabled=settings.repair_enabled, raw_truncate_chars=settings.raw_truncate_chars)
