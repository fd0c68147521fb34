"""Cooperative cancellation around a shared asyncio.Event."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from compare_agent.errors import OperationCancelled

T = TypeVar("T")


def raise_if_cancelled(cancel: asyncio.Event, what: str = "operation") -> None:
    if cancel.is_set():
        raise OperationCancelled(f"Shutdown requested before {what}")


async def sleep_or_cancel(delay: float, cancel: asyncio.Event) -> None:
    """Sleep for delay seconds, raising OperationCancelled as soon as cancel is set."""
    raise_if_cancelled(cancel, "delay")
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return
    raise OperationCancelled("Shutdown requested during delay")


async def until_cancelled(awaitable: Awaitable[T], cancel: asyncio.Event, what: str = "operation") -> T:
    """Await awaitable, abandoning it if cancel is set first.

    The abandoned awaitable is cancelled and awaited before OperationCancelled
    is raised. Work already running in a thread keeps running; only its result
    is discarded.
    """
    work = asyncio.ensure_future(awaitable)
    if cancel.is_set():
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise OperationCancelled(f"Shutdown requested before {what}")

    stopper = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({work, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not work.done():
            work.cancel()

    if work in done:
        return work.result()

    await asyncio.gather(work, return_exceptions=True)
    raise OperationCancelled(f"Shutdown requested during {what}")
