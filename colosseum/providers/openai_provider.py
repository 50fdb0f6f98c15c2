"""OpenAI provider using openai SDK with native async.

Also serves OpenAI-compatible endpoints (xAI, DeepSeek) when the model config
sets base_url.
"""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from colosseum.models import ModelResponse
from colosseum.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

# JSON mode rejects requests whose messages never mention JSON.
_SYSTEM_JSON = "You write poker debate scripts. Respond with a single JSON object."


class OpenAIProvider(AIProvider):
    """OpenAI provider via openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, purpose: str = "generate") -> ModelResponse:
        messages = [{"role": "user", "content": prompt}]
        extra: dict = {}
        if self._config.json_output and purpose != "ping":
            messages.insert(0, {"role": "system", "content": _SYSTEM_JSON})
            extra["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=messages,
                    max_tokens=self._config.max_tokens,
                    **extra,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, f"Empty {purpose} response")
        if choice.finish_reason == "length":
            logger.warning("%s %s output hit max_tokens=%d", self._config.name, purpose, self._config.max_tokens)

        token_count = response.usage.total_tokens if response.usage else None

        logger.info("%s %s: %.2fs, %s tokens", self._config.name, purpose, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            purpose=purpose,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )
