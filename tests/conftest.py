"""Shared pytest fixtures."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from compare_agent.comparison import create_comparison
from compare_agent.models import Comparison, Question, Response
from compare_agent.providers.base import ResponseProvider
from compare_agent.store import JsonComparisonStore
from config.config_loader import ModelConfig


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
        input_per_1m=1.0,
        output_per_1m=2.0,
    )


@pytest.fixture
def sample_question() -> Question:
    return Question.from_file("/tmp/inbox/pets.txt", "Where did the animals sit?")


@pytest.fixture
def sample_responses() -> list[Response]:
    return [
        Response.create("model-a", "provider_a", "the cat sat on the mat", token_count=12, estimated_cost=0.0001),
        Response.create("model-b", "provider_b", "the dog sat on the rug"),
    ]


@pytest.fixture
def sample_comparison(sample_question: Question, sample_responses: list[Response]) -> Comparison:
    return create_comparison(sample_question, sample_responses)


@pytest.fixture
def store(tmp_path: Path) -> JsonComparisonStore:
    return JsonComparisonStore(tmp_path / "comparisons")


@pytest.fixture
def cancel() -> asyncio.Event:
    return asyncio.Event()


class MockProvider(ResponseProvider):
    """Test double ResponseProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=Response.create(
                model_name=f"{provider_name}-model",
                provider=provider_name,
                response_text=response_content,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return f"{self._name}-model"

    async def generate(self, prompt: str, cancel: asyncio.Event) -> Response:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return Response.create(f"{self._name}-model", self._name, self._response_content)


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def two_mock_providers() -> list[MockProvider]:
    return [
        MockProvider("provider_a", "the cat sat on the mat"),
        MockProvider("provider_b", "the dog sat on the rug"),
    ]
