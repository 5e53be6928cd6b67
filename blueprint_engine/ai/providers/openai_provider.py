"""OpenAI chat-completions model used to generate blueprint JSON."""

from __future__ import annotations

import logging
from typing import Final

from openai import AsyncOpenAI, OpenAIError

from blueprint_engine.ai.errors import ConfigError, UpstreamEmpty, UpstreamError
from blueprint_engine.ai.providers.base import AIModel, ModelResponse, SimpleModelResponse
from blueprint_engine.config import DEFAULT_OPENAI_MODEL, Settings

logger = logging.getLogger(__name__)

JSON_ONLY_SYSTEM_PROMPT: Final[str] = "Return ONLY valid JSON. No markdown. No commentary. No backticks. A single JSON object only."


class OpenAIModel(AIModel):
  """Single-shot JSON generator; retry policy belongs to the orchestrator."""

  def __init__(self, name: str = DEFAULT_OPENAI_MODEL, *, api_key: str | None, temperature: float = 0.3, base_url: str | None = None, timeout_seconds: float = 120.0, client: AsyncOpenAI | None = None) -> None:
    # Fail before any network call when the credential is absent.
    if not api_key:
      raise ConfigError("OPENAI_API_KEY missing.")
    self.name = name
    self.temperature = temperature
    # SDK-level retries are disabled so each generate() is exactly one outbound call.
    self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds, max_retries=0)

  async def generate(self, prompt: str) -> ModelResponse:
    """Send one prompt and return the raw text, failing on transport errors or blank output."""
    try:
      response = await self._client.chat.completions.create(model=self.name, temperature=self.temperature, messages=[{"role": "system", "content": JSON_ONLY_SYSTEM_PROMPT}, {"role": "user", "content": prompt}])
    except OpenAIError as exc:
      logger.warning("OpenAI request failed model=%s error_type=%s", self.name, type(exc).__name__)
      raise UpstreamError(details=f"{type(exc).__name__}: {exc}") from exc

    content = ""
    if response.choices:
      content = response.choices[0].message.content or ""

    usage = None
    if response.usage:
      usage = {"prompt_tokens": response.usage.prompt_tokens, "completion_tokens": response.usage.completion_tokens, "total_tokens": response.usage.total_tokens}
    logger.info("OpenAI response model=%s chars=%d usage=%s", self.name, len(content), usage)

    if not content.strip():
      raise UpstreamEmpty()

    return SimpleModelResponse(content=content, usage=usage)


def build_openai_model(settings: Settings) -> OpenAIModel:
  """Build the configured generator, raising ConfigError when the API key is missing."""
  return OpenAIModel(settings.openai_model, api_key=settings.openai_api_key, temperature=settings.openai_temperature, base_url=settings.openai_base_url, timeout_seconds=settings.openai_timeout_seconds)
