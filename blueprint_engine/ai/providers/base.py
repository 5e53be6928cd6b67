"""Model interface the blueprint orchestrator calls for generation and repair."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol


class ModelResponse(Protocol):
  """Raw text returned by one generation call, with optional token usage."""

  content: str
  usage: dict[str, int] | None


@dataclass
class SimpleModelResponse:
  """Plain response used by providers and scripted test models."""

  content: str
  usage: dict[str, int] | None = None


class AIModel(ABC):
  """A named text model; one `generate` call is one upstream request."""

  name: str

  @abstractmethod
  async def generate(self, prompt: str) -> ModelResponse:
    """Return the raw model text for a prompt, raising UpstreamError or UpstreamEmpty on failure."""
