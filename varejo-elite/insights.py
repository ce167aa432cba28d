"""
Tracks the advisor insight for the currently active store.

One request is made per store activation. Activating another store, or a new
committed version of the same store, cancels the pending request and its
result is discarded. A failed request leaves the board "unavailable" until
the next activation; there is no automatic retry.
"""
import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

from schemas import Store

logger = logging.getLogger(__name__)

InsightGenerator = Callable[[Store], Awaitable[Optional[str]]]


class InsightState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class InsightBoard:
    def __init__(self, generate: InsightGenerator):
        self._generate = generate
        self._store: Optional[Store] = None
        self._task: Optional[asyncio.Task] = None
        self._text: Optional[str] = None
        self.state = InsightState.IDLE

    @property
    def store(self) -> Optional[Store]:
        return self._store

    @property
    def text(self) -> Optional[str]:
        return self._text

    def activate(self, store: Optional[Store]) -> None:
        """Makes `store` the active one. Must be called from a running event loop."""
        if store is self._store:
            return
        self._supersede()
        self._store = store
        self._text = None
        if store is None:
            self.state = InsightState.IDLE
            return
        self.state = InsightState.LOADING
        self._task = asyncio.get_running_loop().create_task(self._run(store))

    def reset(self) -> None:
        self.activate(None)

    async def wait(self) -> Optional[str]:
        """Waits for the pending request of the active store, if any."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})
        if task is not self._task:
            return None
        return self._text

    def _supersede(self) -> None:
        if self._task is not None and not self._task.done():
            logger.info("Discarding pending insight for store %s.", self._store.code if self._store else None)
            self._task.cancel()
        self._task = None

    async def _run(self, store: Store) -> None:
        try:
            text = await self._generate(store)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Insight generation for store %s failed: %s", store.code, e)
            text = None

        if store is not self._store:
            return
        self._text = text
        self.state = InsightState.READY if text else InsightState.UNAVAILABLE
