"""
Async repository base

Every public storage operation is async. The backend call itself runs
synchronously, in issue order, before the simulated round-trip delay,
so sequential callers observe their writes in the order they made them.
The delay stands in for a networked backend; it is fixed and bounded.
"""

import asyncio
from typing import Optional, TypeVar

import structlog

from devotional.config import get_settings
from devotional.services.storage.interface import KeyValueBackend


T = TypeVar("T")


class KeyValueRepository:
    """Shared plumbing for repositories over a `KeyValueBackend`."""

    def __init__(
        self,
        backend: KeyValueBackend,
        latency_seconds: Optional[float] = None,
    ):
        """
        Args:
            backend: Keyspace to read and write
            latency_seconds: Simulated round-trip delay.
                             Defaults to the configured value.
        """
        self._backend = backend
        if latency_seconds is None:
            latency_seconds = get_settings().app.simulated_latency_seconds
        self._latency = max(0.0, latency_seconds)
        self._logger = structlog.get_logger(type(self).__module__)

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    async def _respond(self, value: T = None) -> T:
        await asyncio.sleep(self._latency)
        return value
