"""Response models for the blueprint HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateBlueprintResponse(_ApiModel):
  id: str


class BlueprintResponse(_ApiModel):
  id: str
  blueprint: dict[str, Any]
  created_at: str | None = None


class BlueprintListItem(_ApiModel):
  id: str
  title: str
  role: str
  group_name: str
  created_at: str | None = None


class BlueprintListResponse(_ApiModel):
  items: list[BlueprintListItem]
  limit: int
  offset: int


class ViolationModel(_ApiModel):
  path: str
  message: str


class ValidationResponse(_ApiModel):
  ok: bool
  errors: list[ViolationModel] = Field(default_factory=list)


class EnvCheckResponse(BaseModel):
  OPENAI_API_KEY: bool
  BLUEPRINT_PG_DSN: bool
  FIREBASE_PROJECT_ID: bool
  FIREBASE_SERVICE_ACCOUNT_JSON_PATH: bool
