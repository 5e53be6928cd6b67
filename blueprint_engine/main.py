from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from blueprint_engine import __version__
from blueprint_engine.ai.errors import PipelineFailure
from blueprint_engine.api.routes import blueprints, configuration
from blueprint_engine.config import get_settings
from blueprint_engine.core.exceptions import global_exception_handler, http_exception_handler, pipeline_failure_handler, request_validation_exception_handler
from blueprint_engine.core.lifespan import lifespan
from blueprint_engine.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

settings = get_settings()

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])


# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(PipelineFailure, pipeline_failure_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(blueprints.router, prefix="/v1/blueprints", tags=["blueprints"])
app.include_router(configuration.router, prefix="/v1/config", tags=["config"])
