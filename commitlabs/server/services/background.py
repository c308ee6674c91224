"""
Background Sweeper.

Periodically removes expired nonces, expired sessions and ended rate-limit
windows. Started and cancelled by the application lifespan.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from commitlabs.core.logging_config import get_logger

from .auth import NonceStore, SessionStore
from .rate_limit import RateLimiter

logger = get_logger(__name__)


class Sweeper:
    def __init__(
        self,
        nonce_store: NonceStore,
        session_store: SessionStore,
        rate_limiter: RateLimiter,
        interval_seconds: float = 300,
    ) -> None:
        self.nonce_store = nonce_store
        self.session_store = session_store
        self.rate_limiter = rate_limiter
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def sweep_once(self) -> dict:
        removed = {
            "nonces": self.nonce_store.sweep(),
            "sessions": self.session_store.sweep(),
            "rate_limit_windows": self.rate_limiter.sweep(),
        }
        if any(removed.values()):
            logger.debug(f"Sweeper removed expired entries: {removed}")
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep_once()
            except Exception as e:
                logger.error(f"Sweeper iteration failed: {e}", exc_info=True)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="commitlabs-sweeper")
        logger.info(f"Sweeper started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweeper stopped")
