"""File-based persistence: one pretty-printed JSON record per Comparison.

Directory layout:
    {store_dir}/
        20260118_142501_{uuid}.json
        20260118_142733_{uuid}.json

The filename stem is the record key. Keys sort chronologically because they
start with the comparison timestamp, and are unique because they end with
the comparison id.
"""

import contextlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from compare_agent.errors import CorruptRecordError, StorageError
from compare_agent.models import Comparison, Question, Response, WordAnalysis

logger = logging.getLogger(__name__)

_KEY_TIME_FORMAT = "%Y%m%d_%H%M%S"
_SUFFIX = ".json"


def record_key(comparison: Comparison) -> str:
    return f"{comparison.compared_at.strftime(_KEY_TIME_FORMAT)}_{comparison.id}"


def _question_to_dict(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "filePath": question.file_path,
        "fileName": question.file_name,
        "content": question.content,
        "createdAt": question.created_at.isoformat(),
    }


def _response_to_dict(response: Response) -> dict[str, Any]:
    return {
        "modelName": response.model_name,
        "provider": response.provider,
        "responseText": response.response_text,
        "timestamp": response.timestamp.isoformat(),
        "tokenCount": response.token_count,
        "estimatedCost": response.estimated_cost,
    }


def comparison_to_dict(comparison: Comparison) -> dict[str, Any]:
    """Serialize a Comparison to a JSON-ready dict with camelCase keys."""
    analysis = comparison.analysis
    return {
        "id": comparison.id,
        "question": _question_to_dict(comparison.question),
        "responses": [_response_to_dict(r) for r in comparison.responses],
        "analysis": {
            "sharedWords": list(analysis.shared_words),
            "uniqueWordsByModel": {
                model: list(words) for model, words in analysis.unique_words_by_model.items()
            },
            "analyzedAt": analysis.analyzed_at.isoformat(),
        },
        "comparedAt": comparison.compared_at.isoformat(),
    }


def comparison_from_dict(data: dict[str, Any]) -> Comparison:
    """Inverse of comparison_to_dict.

    Raises:
        KeyError, TypeError, ValueError: If the dict does not have the
            expected shape or breaks a model invariant (ValidationError is a
            ValueError). Callers translate these into CorruptRecordError.
    """
    q = data["question"]
    question = Question(
        id=q["id"],
        file_path=q["filePath"],
        file_name=q["fileName"],
        content=q["content"],
        created_at=datetime.fromisoformat(q["createdAt"]),
    )
    responses = tuple(
        Response(
            model_name=r["modelName"],
            provider=r["provider"],
            response_text=r["responseText"],
            timestamp=datetime.fromisoformat(r["timestamp"]),
            token_count=r.get("tokenCount"),
            estimated_cost=r.get("estimatedCost"),
        )
        for r in data["responses"]
    )
    a = data["analysis"]
    analysis = WordAnalysis(
        shared_words=tuple(a["sharedWords"]),
        unique_words_by_model={model: tuple(words) for model, words in a["uniqueWordsByModel"].items()},
        analyzed_at=datetime.fromisoformat(a["analyzedAt"]),
    )
    return Comparison(
        id=data["id"],
        question=question,
        responses=responses,
        analysis=analysis,
        compared_at=datetime.fromisoformat(data["comparedAt"]),
    )


class JsonComparisonStore:
    """Append-only comparison store backed by a directory of JSON files."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, comparison: Comparison) -> Path:
        """Write the comparison as a new record and return its path.

        The record is written to a temporary sibling, flushed to disk and then
        hard-linked into place, so a crash never leaves a truncated .json record
        and an existing record is never replaced.

        Raises:
            StorageError: On any I/O failure or if the record already exists.
        """
        key = record_key(comparison)
        path = self._directory / f"{key}{_SUFFIX}"
        tmp_path = self._directory / f".{key}{_SUFFIX}.tmp"
        payload = json.dumps(comparison_to_dict(comparison), indent=2, ensure_ascii=False)

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            try:
                os.link(tmp_path, path)
            except FileExistsError as exc:
                raise StorageError(f"Record already exists: {path}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to save comparison {comparison.id}: {exc}") from exc
        finally:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)

        logger.info("Comparison saved to: %s", path)
        return path

    def get_by_id(self, comparison_id: str) -> Comparison | None:
        """Return the comparison with the given id, or None when absent.

        Raises:
            CorruptRecordError: If the record exists but cannot be parsed.
            StorageError: If the record cannot be read.
        """
        if not self._directory.is_dir():
            return None

        suffix = f"_{comparison_id}{_SUFFIX}"
        matches = sorted(p for p in self._directory.iterdir() if p.name.endswith(suffix))
        if not matches:
            return None

        comparison = self._load(matches[0])
        if comparison is None:
            # Removed between the scan and the read
            return None
        return comparison

    def get_all(self) -> list[Comparison]:
        """Return every stored comparison in ascending key order.

        Takes a snapshot of the directory listing; records added afterwards
        by concurrent writers are not included.

        Raises:
            CorruptRecordError: On the first record that cannot be parsed.
        """
        if not self._directory.is_dir():
            return []

        files = sorted(self._directory.glob(f"*{_SUFFIX}"), key=lambda p: p.name)
        comparisons: list[Comparison] = []
        for path in files:
            comparison = self._load(path)
            if comparison is not None:
                comparisons.append(comparison)
        return comparisons

    def _load(self, path: Path) -> Comparison | None:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("Record vanished before it could be read: %s", path)
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptRecordError(str(path), str(exc)) from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

        try:
            return comparison_from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CorruptRecordError(str(path), f"unexpected record shape: {exc!r}") from exc
