"""Blueprint generation, retrieval and validation endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status

from blueprint_engine.ai.json_output import unwrap_candidate
from blueprint_engine.ai.orchestrator import BlueprintOrchestrator
from blueprint_engine.api.deps import get_gateway, get_orchestrator
from blueprint_engine.api.models import BlueprintListItem, BlueprintListResponse, BlueprintResponse, GenerateBlueprintResponse, ValidationResponse, ViolationModel
from blueprint_engine.core.security import get_current_user_id
from blueprint_engine.schema.validate_blueprint import BlueprintInvalid, validate_blueprint
from blueprint_engine.services.blueprints import BlueprintGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateBlueprintResponse, status_code=status.HTTP_201_CREATED)
async def generate_blueprint(
  request: Request,
  payload: Any = Body(...),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  orchestrator: BlueprintOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> GenerateBlueprintResponse:
  """Generate, validate and store a blueprint for the caller's intake."""
  # The body is taken as-is so intake violations surface as stage-tagged 400s, not FastAPI 422s.
  request_id = getattr(request.state, "request_id", None)
  result = await orchestrator.generate(payload, owner_id=user_id, request_id=request_id)
  logger.info("Blueprint generated id=%s request_id=%s repaired=%s latency_ms=%d", result.blueprint_id, result.request_id, result.repaired, result.latency_ms)
  return GenerateBlueprintResponse(id=result.blueprint_id)


@router.get("", response_model=BlueprintListResponse)
async def list_blueprints(
  limit: int = Query(50, ge=1, le=100),
  offset: int = Query(0, ge=0),
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  gateway: BlueprintGateway = Depends(get_gateway),  # noqa: B008
) -> BlueprintListResponse:
  """List the caller's blueprints, newest first."""
  summaries = await gateway.list_for_owner(user_id, limit=limit, offset=offset)
  items = [BlueprintListItem(id=item.blueprint_id, title=item.title, role=item.role, group_name=item.group_name, created_at=item.created_at) for item in summaries]
  return BlueprintListResponse(items=items, limit=limit, offset=offset)


@router.post("/validate", response_model=ValidationResponse)
async def validate_endpoint(payload: Any = Body(...), _user_id: str = Depends(get_current_user_id)) -> ValidationResponse:  # noqa: B008
  """Validate a candidate blueprint document against the current contract."""
  result = validate_blueprint(unwrap_candidate(payload))
  if isinstance(result, BlueprintInvalid):
    return ValidationResponse(ok=False, errors=[ViolationModel(path=violation.path, message=violation.message) for violation in result.violations])
  return ValidationResponse(ok=True)


@router.get("/{blueprint_id}", response_model=BlueprintResponse)
async def get_blueprint(blueprint_id: str, user_id: str = Depends(get_current_user_id), gateway: BlueprintGateway = Depends(get_gateway)) -> BlueprintResponse:  # noqa: B008
  """Fetch a stored blueprint owned by the caller."""
  stored = await gateway.fetch_by_id(blueprint_id, user_id)
  if stored is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blueprint not found.")
  return BlueprintResponse(id=stored.blueprint_id, blueprint=stored.blueprint.to_json(), created_at=stored.created_at)
