"""Unit tests for the OpenAI model adapter."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from blueprint_engine.ai.errors import ConfigError, UpstreamEmpty, UpstreamError
from blueprint_engine.ai.providers.openai_provider import JSON_ONLY_SYSTEM_PROMPT, OpenAIModel


class _FakeCompletions:
  def __init__(self, result) -> None:
    self.result = result
    self.calls: list[dict] = []

  async def create(self, **kwargs):
    self.calls.append(kwargs)
    if isinstance(self.result, Exception):
      raise self.result
    return self.result


def _client(result) -> SimpleNamespace:
  return SimpleNamespace(chat=SimpleNamespace(completions=_FakeCompletions(result)))


def _completion(content: str | None) -> SimpleNamespace:
  usage = SimpleNamespace(prompt_tokens=12, completion_tokens=34, total_tokens=46)
  return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))], usage=usage)


def test_missing_api_key_fails_before_any_client_is_built() -> None:
  with pytest.raises(ConfigError) as exc_info:
    OpenAIModel(api_key=None, client=_client(_completion("{}")))
  assert exc_info.value.stage == "config"
  assert exc_info.value.status_code == 500


@pytest.mark.anyio
async def test_generate_returns_content_and_usage() -> None:
  client = _client(_completion('{"ok": true}'))
  model = OpenAIModel("gpt-test", api_key="sk-test", temperature=0.2, client=client)
  response = await model.generate("prompt text")
  assert response.content == '{"ok": true}'
  assert response.usage == {"prompt_tokens": 12, "completion_tokens": 34, "total_tokens": 46}

  call = client.chat.completions.calls[0]
  assert call["model"] == "gpt-test"
  assert call["temperature"] == 0.2
  assert call["messages"] == [{"role": "system", "content": JSON_ONLY_SYSTEM_PROMPT}, {"role": "user", "content": "prompt text"}]


@pytest.mark.anyio
@pytest.mark.parametrize("content", [None, "", "   \n"])
async def test_blank_output_raises_upstream_empty(content) -> None:
  model = OpenAIModel(api_key="sk-test", client=_client(_completion(content)))
  with pytest.raises(UpstreamEmpty):
    await model.generate("prompt")


@pytest.mark.anyio
async def test_sdk_errors_become_upstream_errors() -> None:
  request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
  model = OpenAIModel(api_key="sk-test", client=_client(openai.APIConnectionError(request=request)))
  with pytest.raises(UpstreamError) as exc_info:
    await model.generate("prompt")
  assert exc_info.value.stage == "openai"
  assert exc_info.value.status_code == 502
  assert "APIConnectionError" in exc_info.value.details
