from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from blueprint_engine.ai.errors import Unauthorized
from blueprint_engine.core.firebase import verify_id_token

# auto_error is off so a missing header yields the stage-tagged 401 body, not FastAPI's 403.
security_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(token: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)]) -> str:
  """Resolve the caller's identity from a Firebase ID token, or fail with Unauthorized."""
  if token is None or not token.credentials:
    raise Unauthorized("Missing bearer token.")

  # The Admin SDK verifies synchronously (it may fetch signing certificates).
  decoded_claims = await run_in_threadpool(verify_id_token, token.credentials)
  if not decoded_claims:
    raise Unauthorized("Invalid authentication credentials.")

  user_id = decoded_claims.get("uid")
  if not user_id:
    raise Unauthorized("Invalid token claims.")

  return str(user_id)
