"""Gemini provider using google-genai SDK with native async. Default generator."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from colosseum.models import ModelResponse
from colosseum.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)


class GeminiProvider(AIProvider):
    """Google Gemini via google-genai.

    With json_output set, create/continue calls ask for application/json so
    the reply needs no fence stripping. Pings stay plain text.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _generation_config(self, purpose: str) -> genai_types.GenerateContentConfig:
        wants_json = self._config.json_output and purpose != "ping"
        return genai_types.GenerateContentConfig(
            max_output_tokens=self._config.max_tokens,
            response_mime_type="application/json" if wants_json else None,
        )

    async def generate(self, prompt: str, purpose: str = "generate") -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=prompt,
                    config=self._generation_config(purpose),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"{purpose} timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"{purpose} call failed: {exc}") from exc

        latency = time.monotonic() - start

        feedback = response.prompt_feedback
        if feedback is not None and feedback.block_reason:
            raise ProviderError(self._config.name, f"Prompt blocked: {feedback.block_reason}")

        finish = response.candidates[0].finish_reason if response.candidates else None
        if finish == genai_types.FinishReason.MAX_TOKENS:
            logger.warning("Gemini %s output hit max_tokens=%d", purpose, self._config.max_tokens)

        if not response.text:
            raise ProviderError(self._config.name, f"Empty {purpose} response (finish: {finish})")

        usage = response.usage_metadata
        token_count = usage.total_token_count if usage else None
        logger.info("Gemini %s: %.2fs, %s tokens", purpose, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            purpose=purpose,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
        )
