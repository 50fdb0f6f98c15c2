"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from colosseum.models import ModelResponse
from colosseum.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

_SYSTEM_JSON = "You write poker debate scripts. Answer with a single JSON object and nothing else."


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK.

    Claude has no JSON response mode. With json_output set, the reply is
    prefilled with "{" so the model continues straight into the object.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _request(self, prompt: str, purpose: str) -> dict:
        messages = [{"role": "user", "content": prompt}]
        request: dict = {"model": self._config.model, "max_tokens": self._config.max_tokens}
        if self._config.json_output and purpose != "ping":
            messages.append({"role": "assistant", "content": "{"})
            request["system"] = _SYSTEM_JSON
        request["messages"] = messages
        return request

    async def generate(self, prompt: str, purpose: str = "generate") -> ModelResponse:
        request = self._request(prompt, purpose)
        prefilled = len(request["messages"]) > 1
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**request),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        text = "".join(b.text for b in response.content or [] if b.type == "text")
        if not text.strip():
            raise ProviderError(self._config.name, f"No text in {purpose} response")
        if prefilled:
            text = "{" + text

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info("Claude %s: %.2fs, %s tokens (stop: %s)", purpose, latency, token_count, response.stop_reason)
        if response.stop_reason == "max_tokens":
            logger.warning("Claude %s output hit max_tokens=%d; JSON is likely truncated",
                           purpose, self._config.max_tokens)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            purpose=purpose,
            content=text,
            latency_sec=latency,
            token_count=token_count,
        )
