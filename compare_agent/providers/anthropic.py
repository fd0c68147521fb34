"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from compare_agent.errors import OperationCancelled
from compare_agent.models import Response
from compare_agent.pricing import estimate_cost_usd
from compare_agent.providers.base import ProviderError, ResponseProvider
from config.config_loader import ModelConfig

logger = logging.getLogger(__name__)


class AnthropicProvider(ResponseProvider):
    """Anthropic Claude provider via anthropic SDK."""

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

    async def generate(self, prompt: str, cancel: asyncio.Event) -> Response:
        if cancel.is_set():
            raise OperationCancelled(f"{self._config.name} call skipped, shutdown requested")

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self._config.model,
                    max_tokens=self._config.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        text_blocks = [b.text for b in (response.content or []) if b.type == "text"]
        content = "\n".join(text_blocks)
        if not content:
            logger.warning("%s returned no text content", self._config.name)

        input_tokens: int | None = None
        output_tokens: int | None = None
        token_count: int | None = None
        if response.usage:
            input_tokens = response.usage.input_tokens
            output_tokens = response.usage.output_tokens
            token_count = input_tokens + output_tokens

        logger.info("Anthropic: %.2fs, %s tokens", latency, token_count)

        return Response.create(
            model_name=self._config.model,
            provider=self._config.name,
            response_text=content,
            token_count=token_count,
            estimated_cost=estimate_cost_usd(
                self._config, input_tokens=input_tokens, output_tokens=output_tokens
            ),
        )
