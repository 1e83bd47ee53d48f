"""
Single-flight lock guarding full index runs.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class IndexRunSlot:
    """
    The active index run slot.

    At most one holder at a time. Acquisition blocks until the slot is free,
    so concurrent reindex requests queue rather than fail. Use as an async
    context manager so the slot is released on every exit path.
    """

    def __init__(self, name: str = "index-run"):
        self.name = name
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait for the slot and take it."""
        if self._lock.locked():
            logger.info(f"Waiting for active {self.name} to finish")
        await self._lock.acquire()
        logger.debug(f"Slot acquired: {self.name}")

    def release(self):
        """Give the slot back."""
        self._lock.release()
        logger.debug(f"Slot released: {self.name}")

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()

    @property
    def is_acquired(self) -> bool:
        """Check if an index run currently holds the slot."""
        return self._lock.locked()
