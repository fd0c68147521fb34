"""Frozen dataclasses for the comparison pipeline. No I/O."""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType

from compare_agent.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Question:
    file_path: str
    file_name: str
    content: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.file_path or not self.file_path.strip():
            raise ValidationError("Question file path must not be empty")
        if not self.content or not self.content.strip():
            raise ValidationError(f"Question content must not be empty: {self.file_path}")

    @classmethod
    def from_file(cls, file_path: str | Path, content: str) -> "Question":
        """Build a Question from a file path and the text read from it."""
        path_str = str(file_path)
        return cls(file_path=path_str, file_name=Path(path_str).name, content=content)


@dataclass(frozen=True)
class Response:
    model_name: str        # actual model string, e.g. "gpt-4o-mini"
    provider: str          # "openai", "claude", "gemini", ...
    response_text: str     # may be empty
    timestamp: datetime = field(default_factory=utc_now)
    token_count: int | None = None
    estimated_cost: float | None = None

    def __post_init__(self) -> None:
        if not self.model_name or not self.model_name.strip():
            raise ValidationError("Response model name must not be blank")
        if not self.provider or not self.provider.strip():
            raise ValidationError("Response provider must not be blank")
        if self.response_text is None:
            raise ValidationError(f"Response text from {self.provider} must not be None")

    @classmethod
    def create(
        cls,
        model_name: str,
        provider: str,
        response_text: str,
        token_count: int | None = None,
        estimated_cost: float | None = None,
    ) -> "Response":
        return cls(
            model_name=model_name,
            provider=provider,
            response_text=response_text,
            token_count=token_count,
            estimated_cost=estimated_cost,
        )


@dataclass(frozen=True)
class WordAnalysis:
    shared_words: tuple[str, ...]
    # Read-only view; left out of the hash since mapping proxies are unhashable
    unique_words_by_model: Mapping[str, tuple[str, ...]] = field(hash=False)
    analyzed_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shared_words", tuple(self.shared_words))
        object.__setattr__(
            self,
            "unique_words_by_model",
            MappingProxyType({label: tuple(words) for label, words in self.unique_words_by_model.items()}),
        )


@dataclass(frozen=True)
class Comparison:
    question: Question
    responses: tuple[Response, ...]
    analysis: WordAnalysis
    id: str = field(default_factory=new_id)
    compared_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "responses", tuple(self.responses))
        if len(self.responses) < 2:
            raise ValidationError(
                f"A comparison needs at least 2 responses, got {len(self.responses)}"
            )
