from __future__ import annotations

import asyncio
import logging

from .sessions import SessionRegistry


logger = logging.getLogger(__name__)


def sweep_once(registry: SessionRegistry, timeout: float, now: float | None = None) -> bool:
    """Run a single eviction pass. Returns False if the pass failed.

    A failing pass is logged and swallowed so the periodic loop keeps going.
    """
    try:
        registry.evict_expired(now, timeout)
    except Exception:
        logger.exception("Session sweep failed")
        return False
    return True


async def run_periodic(registry: SessionRegistry, interval: float, timeout: float) -> None:
    # Runs until cancelled (server shutdown).
    while True:
        await asyncio.sleep(interval)
        sweep_once(registry, timeout)
