"""Provider health checks — ping each API once before watching starts."""

import asyncio
import logging
import time

from compare_agent.providers.base import ResponseProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
DEFAULT_TIMEOUT_SEC = 15.0


async def _ping(name: str, provider: ResponseProvider, timeout_sec: float) -> tuple[bool, str]:
    start = time.monotonic()
    try:
        await asyncio.wait_for(provider.generate(_PING_PROMPT, asyncio.Event()), timeout=timeout_sec)
    except TimeoutError:
        return False, f"No reply within {timeout_sec}s"
    except Exception as exc:
        logger.debug("Health check for %s (%s) failed", name, provider.model_string(), exc_info=True)
        return False, str(exc)
    logger.debug("Health check for %s passed in %.2fs", name, time.monotonic() - start)
    return True, ""


async def run_health_checks(
    providers: dict[str, ResponseProvider],
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    names = list(providers)
    results = await asyncio.gather(*(_ping(n, providers[n], timeout_sec) for n in names))
    return dict(zip(names, results))
