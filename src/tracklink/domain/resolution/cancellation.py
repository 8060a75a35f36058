"""Cooperative cancellation for background resolution runs."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot stop signal shared between the registry and a worker.

    Workers poll ``cancelled`` at their suspension points and use ``sleep`` for
    delays so that a stop request wakes them immediately.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; return ``True`` if cancelled meanwhile."""

        if self._event.is_set():
            return True
        if seconds <= 0:
            await asyncio.sleep(0)
            return self._event.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True
