"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from compare_agent.errors import OperationCancelled
from compare_agent.models import Response
from compare_agent.pricing import estimate_cost_usd
from compare_agent.providers.base import ProviderError, ResponseProvider
from config.config_loader import ModelConfig

logger = logging.getLogger(__name__)


class GeminiProvider(ResponseProvider):
    """Google Gemini provider via google-genai SDK."""

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

    async def generate(self, prompt: str, cancel: asyncio.Event) -> Response:
        if cancel.is_set():
            raise OperationCancelled(f"{self._config.name} call skipped, shutdown requested")

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=prompt,
                    config=genai_types.GenerateContentConfig(
                        max_output_tokens=self._config.max_tokens,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        content = response.text or ""
        if not content:
            logger.warning("%s returned no text content", self._config.name)

        input_tokens: int | None = None
        output_tokens: int | None = None
        token_count: int | None = None
        usage = response.usage_metadata
        if usage:
            input_tokens = usage.prompt_token_count
            output_tokens = usage.candidates_token_count
            token_count = usage.total_token_count

        logger.info("Gemini: %.2fs, %s tokens", latency, token_count)

        return Response.create(
            model_name=self._config.model,
            provider=self._config.name,
            response_text=content,
            token_count=token_count,
            estimated_cost=estimate_cost_usd(
                self._config,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=token_count,
            ),
        )
