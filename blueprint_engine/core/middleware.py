import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from blueprint_engine.config import get_settings

logger = logging.getLogger("blueprint_engine.core.middleware")

# Intake fields that identify people, plus credential-like keys.
SENSITIVE_KEYS = frozenset({"leadername", "groupname", "password", "token", "authorization", "cookie", "secret", "apikey", "api_key", "email"})


def redact_sensitive_keys(data: Any) -> Any:
  """Redact sensitive keys from a dictionary or list recursively."""
  if isinstance(data, dict):
    return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else redact_sensitive_keys(v)) for k, v in data.items()}
  if isinstance(data, list):
    return [redact_sensitive_keys(item) for item in data]
  return data


def _is_json(content_type: str | None) -> bool:
  if not content_type:
    return False
  normalized = content_type.lower()
  return "application/json" in normalized or normalized.split(";")[0].endswith("+json")


def format_body_for_log(body: bytes, content_type: str | None, max_bytes: int) -> str:
  """Format a request/response body for logging with redaction and a size cap."""
  if not body:
    return "<empty>"

  if not _is_json(content_type) and not (content_type or "").lower().startswith("text/"):
    return f"<non-text body {len(body)} bytes>"

  # Truncated JSON is logged as text; parsing it would be misleading.
  if len(body) > max_bytes:
    return f"{body[:max_bytes].decode('utf-8', errors='replace')}...(truncated)"

  text = body.decode("utf-8", errors="replace")
  if _is_json(content_type):
    try:
      parsed = json.loads(text)
    except json.JSONDecodeError:
      return text
    return json.dumps(redact_sensitive_keys(parsed), ensure_ascii=True)

  return text


def _request_target(scope: Scope) -> str:
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"
  return path


class RequestLoggingMiddleware:
  """Assign a request id and log request/response metadata, optionally with bodies."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    log_bodies = settings.log_http_bodies
    max_bytes = settings.log_http_body_bytes

    # Downstream handlers and exception logging read the id from request.state.
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.perf_counter()
    logger.info("Incoming request request_id=%s %s %s", request_id, scope.get("method", "UNKNOWN"), _request_target(scope))

    headers = {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}
    downstream_receive = receive
    if log_bodies:
      chunks: list[bytes] = []
      more_body = True
      while more_body:
        message = await receive()
        if message.get("type") != "http.request":
          break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
      request_body = b"".join(chunks)
      replayed = False

      # Replay the drained body so request handlers receive the payload as usual.
      async def downstream_receive() -> Message:
        nonlocal replayed
        if replayed:
          return {"type": "http.request", "body": b"", "more_body": False}
        replayed = True
        return {"type": "http.request", "body": request_body, "more_body": False}

      logger.info("Request body request_id=%s body=%s", request_id, format_body_for_log(request_body, headers.get("content-type"), max_bytes))

    status_code = 0
    response_content_type: str | None = None
    response_chunks: list[bytes] = []

    async def send_wrapper(message: Message) -> None:
      nonlocal status_code, response_content_type
      if message["type"] == "http.response.start":
        status_code = message.get("status", 0)
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id
        response_content_type = response_headers.get("content-type")
      elif log_bodies and message["type"] == "http.response.body":
        # Stop collecting once past the cap; formatting truncates the remainder.
        if sum(len(chunk) for chunk in response_chunks) <= max_bytes:
          response_chunks.append(message.get("body", b""))
      await send(message)

    await self.app(scope, downstream_receive, send_wrapper)

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code, elapsed_ms)
    if log_bodies:
      logger.info("Response body request_id=%s status=%s body=%s", request_id, status_code, format_body_for_log(b"".join(response_chunks), response_content_type, max_bytes))


class SecurityHeadersMiddleware:
  """Strip server-identifying headers from responses."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_wrapper(message: Message) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        for name in ("x-powered-by", "server"):
          if name in headers:
            del headers[name]
        headers.setdefault("x-content-type-options", "nosniff")
      await send(message)

    await self.app(scope, receive, send_wrapper)
