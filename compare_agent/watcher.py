"""Folder watching, extension filtering, and the per-event task runner."""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from watchfiles import Change, awatch

from compare_agent.pipeline import ComparisonPipeline, EventOutcome

logger = logging.getLogger(__name__)


class ExtensionFilter:
    """Allows paths whose suffix is in the configured set, ignoring case."""

    def __init__(self, allowed_extensions: Iterable[str]) -> None:
        self._allowed = {self._normalize(ext) for ext in allowed_extensions if ext.strip()}
        if not self._allowed:
            raise ValueError("At least one allowed extension is required")

    @staticmethod
    def _normalize(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith(".") else f".{ext}"

    @property
    def allowed(self) -> frozenset[str]:
        return frozenset(self._allowed)

    def is_allowed(self, path: str | Path) -> bool:
        if not str(path):
            raise ValueError("Path must not be empty")
        return Path(path).suffix.lower() in self._allowed

    def __call__(self, path: str | Path) -> bool:
        return self.is_allowed(path)


def ensure_dir(directory: Path) -> None:
    """Create the watched directory if it doesn't exist."""
    directory.mkdir(parents=True, exist_ok=True)


async def watch_folder(directory: Path, queue: asyncio.Queue, stop_event: asyncio.Event) -> None:
    """Push the path of every file created in directory onto queue until stop_event is set.

    Only the top level is watched, so a store directory nested inside the
    watched folder does not feed its own records back in.
    """
    ensure_dir(directory)
    logger.info("Watching folder: %s", directory)
    async for changes in awatch(directory, watch_filter=None, recursive=False, stop_event=stop_event):
        for change, raw_path in sorted(changes, key=lambda c: c[1]):
            if change == Change.added:
                logger.debug("Created: %s", raw_path)
                queue.put_nowait(Path(raw_path))
    logger.debug("Stopped watching %s", directory)


async def run_agent(
    pipeline: ComparisonPipeline,
    directory: Path,
    cancel: asyncio.Event,
    max_concurrent_events: int = 0,
) -> dict[EventOutcome, int]:
    """Watch directory and run pipeline.process() on its own task for each new file.

    Args:
        pipeline: The per-file pipeline.
        directory: Folder to watch; created if absent.
        cancel: Shared shutdown signal. Setting it stops the watcher and makes
            in-flight events abort silently.
        max_concurrent_events: Upper bound on events processed at once,
            0 for no bound.

    Returns:
        Count of events per terminal outcome.

    Raises:
        Exception: Whatever stopped the folder watcher, if it was not cancel.
    """
    queue: asyncio.Queue[Path] = asyncio.Queue()
    limiter = asyncio.Semaphore(max_concurrent_events) if max_concurrent_events > 0 else None
    in_flight: set[asyncio.Task] = set()
    outcomes: dict[EventOutcome, int] = {outcome: 0 for outcome in EventOutcome}

    async def handle(path: Path) -> None:
        if limiter is None:
            outcome = await pipeline.process(path, cancel)
        else:
            async with limiter:
                outcome = await pipeline.process(path, cancel)
        outcomes[outcome] += 1

    watcher = asyncio.create_task(watch_folder(directory, queue, cancel), name="folder-watcher")
    try:
        while not cancel.is_set():
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                break
            path = getter.result()
            task = asyncio.create_task(handle(path), name=f"event:{path.name}")
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)
    finally:
        if in_flight:
            logger.info("Waiting for %d in-flight event(s)", len(in_flight))
            await asyncio.gather(*in_flight, return_exceptions=True)
        if not watcher.done():
            watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    if not watcher.cancelled() and watcher.exception() is not None:
        raise watcher.exception()
    return outcomes
