"""Per-file comparison pipeline: filter, settle, read, fan out, join, build, persist, display.

Every file-creation event runs through ComparisonPipeline.process() on its own
task. Events share nothing but the providers (stateless clients) and the
append-only store, whose record keys are unique per event.
"""

import asyncio
import enum
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from compare_agent.cancellation import raise_if_cancelled, sleep_or_cancel, until_cancelled
from compare_agent.comparison import create_comparison
from compare_agent.errors import IntakeError, OperationCancelled, StorageError, ValidationError
from compare_agent.models import Comparison, Question, Response
from compare_agent.providers.base import ProviderError, ResponseProvider
from compare_agent.store import JsonComparisonStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SEC = 0.5


class EventOutcome(str, enum.Enum):
    """Terminal state of one file event."""

    IGNORED = "ignored"
    CANCELLED = "cancelled"
    FAILED = "failed"
    DISPLAYED = "displayed"


def render_prompt(instruction: str, content: str) -> str:
    return f"{instruction}{content}"


def _read_text(path: Path) -> str:
    # Byte-faithful text: a UTF-8 BOM is dropped, line endings are kept as written
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        return f.read()


class ComparisonPipeline:
    """Turns a newly created file into a persisted, displayed Comparison."""

    def __init__(
        self,
        providers: Sequence[ResponseProvider],
        store: JsonComparisonStore,
        is_allowed: Callable[[Path], bool],
        instruction: str,
        debounce_sec: float = DEFAULT_DEBOUNCE_SEC,
        on_comparison: Callable[[Comparison], None] | None = None,
        allow_partial: bool = False,
    ) -> None:
        if len(providers) < 2:
            raise ValidationError(f"Need at least 2 providers to compare, got {len(providers)}")
        self._providers = list(providers)
        self._store = store
        self._is_allowed = is_allowed
        self._instruction = instruction
        self._debounce_sec = debounce_sec
        self._on_comparison = on_comparison
        self._allow_partial = allow_partial

    @property
    def providers(self) -> list[ResponseProvider]:
        return list(self._providers)

    async def process(self, path: Path, cancel: asyncio.Event) -> EventOutcome:
        """Run one file event to a terminal state.

        Never raises for filter rejections, cancellation, I/O, provider,
        validation or storage failures; those are logged and reported through
        the returned outcome so the watcher keeps running.
        """
        path = Path(path)
        if cancel.is_set():
            logger.debug("Shutdown requested, not processing %s", path.name)
            return EventOutcome.CANCELLED

        if not self._is_allowed(path):
            logger.info("Ignoring file: %s", path.name)
            return EventOutcome.IGNORED

        logger.info("New file detected: %s", path.name)

        try:
            comparison = await self._run(path, cancel)
        except OperationCancelled as exc:
            logger.debug("Cancelled while processing %s: %s", path.name, exc)
            return EventOutcome.CANCELLED
        except (OSError, UnicodeDecodeError) as exc:
            if cancel.is_set():
                return EventOutcome.CANCELLED
            logger.error("I/O error while processing file '%s': %s", path, exc)
            return EventOutcome.FAILED
        except IntakeError as exc:
            logger.error("Cannot build a question from '%s': %s", path, exc)
            return EventOutcome.FAILED
        except ProviderError as exc:
            if cancel.is_set():
                return EventOutcome.CANCELLED
            logger.error("Provider failure while processing file '%s': %s", path, exc)
            return EventOutcome.FAILED
        except StorageError as exc:
            logger.error("Could not persist comparison for '%s': %s", path, exc)
            return EventOutcome.FAILED
        except ValidationError:
            logger.exception("Invalid comparison for file '%s'", path)
            return EventOutcome.FAILED
        except Exception:
            logger.exception("Unexpected error while processing file '%s'", path)
            return EventOutcome.FAILED

        if self._on_comparison is not None:
            try:
                self._on_comparison(comparison)
            except Exception:
                logger.exception("Display failed for comparison %s", comparison.id)
        return EventOutcome.DISPLAYED

    async def _run(self, path: Path, cancel: asyncio.Event) -> Comparison:
        await sleep_or_cancel(self._debounce_sec, cancel)

        content = await until_cancelled(asyncio.to_thread(_read_text, path), cancel, "file read")
        try:
            question = Question.from_file(path, content)
        except ValidationError as exc:
            raise IntakeError(str(exc)) from exc

        responses = await self._dispatch(render_prompt(self._instruction, question.content), cancel)
        comparison = create_comparison(question, responses)

        # Not raced against cancel: a started write is allowed to finish
        raise_if_cancelled(cancel, "saving comparison")
        saved = await asyncio.to_thread(self._store.save, comparison)
        logger.info("Processed: %s -> %s", path.name, saved.name)
        return comparison

    async def _dispatch(self, prompt: str, cancel: asyncio.Event) -> list[Response]:
        """Launch every provider, then join.

        Default join is all-or-nothing: the first failure cancels the remaining
        calls and is raised. With allow_partial, failures are logged and the
        successful responses are kept as long as at least 2 remain.
        """
        raise_if_cancelled(cancel, "dispatch")
        logger.info("Dispatching to %d providers", len(self._providers))

        tasks = [
            asyncio.create_task(self._call_provider(p, prompt, cancel), name=f"provider:{p.name()}")
            for p in self._providers
        ]
        try:
            if not self._allow_partial:
                return list(await until_cancelled(asyncio.gather(*tasks), cancel, "provider calls"))
            results = await until_cancelled(
                asyncio.gather(*tasks, return_exceptions=True), cancel, "provider calls"
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Retrieve every outcome so no task exception goes unobserved
            await asyncio.gather(*tasks, return_exceptions=True)

        responses: list[Response] = []
        failures: list[BaseException] = []
        for result in results:
            if isinstance(result, Response):
                responses.append(result)
            elif isinstance(result, OperationCancelled):
                raise result
            else:
                failures.append(result)

        for failure in failures:
            logger.warning("Dropping failed provider call: %s", failure)

        if len(responses) < 2 and failures:
            raise failures[0]

        logger.info("%d/%d providers succeeded", len(responses), len(self._providers))
        return responses

    @staticmethod
    async def _call_provider(provider: ResponseProvider, prompt: str, cancel: asyncio.Event) -> Response:
        raise_if_cancelled(cancel, f"calling {provider.name()}")
        try:
            result = await provider.generate(prompt, cancel)
        except (ProviderError, OperationCancelled):
            raise
        except Exception as exc:
            raise ProviderError(provider.name(), f"Unexpected error: {exc}") from exc

        if not isinstance(result, Response):
            raise ProviderError(provider.name(), f"Unusable result type: {type(result).__name__}")
        return result
