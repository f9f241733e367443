"""Keeps one preview in sync with the files it was built from."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Generic
from typing import TypeVar

from ..loader import Loader
from ..loader import LoaderSession
from ..loader import LoadResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

DependencyHandler = Callable[[list[str]], None]


class PreviewController(Generic[T]):
    """Runs a loader on behalf of one preview panel.

    Every refresh starts a new session and cancels the one still in flight,
    so rapid document switches only ever finish the latest request.

    Attributes:
        loader: Loader producing the previewed value
        last_result: Result of the latest successful refresh
    """

    def __init__(self, loader: Loader[T]):
        self.loader = loader
        self.last_result: LoadResult[T] | None = None
        self._session: LoaderSession | None = None
        self._cached_dependencies: list[str] | None = None
        self._dependency_handlers: list[DependencyHandler] = []
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def on_dependencies_changed(self, handler: DependencyHandler) -> None:
        """Subscribe to changes of the preview's dependency list."""
        self._dependency_handlers.append(handler)

    async def refresh(self, force: bool = False) -> LoadResult[T]:
        """Load the preview, superseding any refresh still in flight.

        Raises:
            LoadCancelledError: If a newer refresh superseded this one
        """
        if self._session is not None:
            self._session.cancel()

        session = LoaderSession(force=force)
        self._session = session
        try:
            result = await self.loader.load(session)
        finally:
            if self._session is session:
                self._session = None

        self.last_result = result
        self._update_dependencies(result.dependencies)
        return result

    async def reload(self) -> LoadResult[T]:
        """Explicit refresh: recompute everything."""
        return await self.refresh(force=True)

    async def watch(
        self,
        interval: float,
        on_update: Callable[[LoadResult[T]], None],
        iterations: int | None = None,
    ) -> None:
        """Poll the loader and report each result that was recomputed.

        Args:
            interval: Seconds between polls
            on_update: Called with every new result (reused results are skipped)
            iterations: Number of polls, None to poll until disposed
        """
        reported: LoadResult[T] | None = None
        count = 0
        while not self._disposed and (iterations is None or count < iterations):
            result = await self.refresh()
            if result is not reported:
                reported = result
                on_update(result)
            count += 1
            await asyncio.sleep(interval)

    def dispose(self) -> None:
        if self._session is not None:
            self._session.cancel()
        self._dependency_handlers.clear()
        self._disposed = True

    def _update_dependencies(self, dependencies: list[str]) -> None:
        if self._cached_dependencies is None or self._cached_dependencies != dependencies:
            logger.debug(f"dependencies: {self.loader} {dependencies}")
            for handler in list(self._dependency_handlers):
                try:
                    handler(dependencies)
                except Exception:
                    logger.exception(f"Error in dependency handler for {self.loader}")

        self._cached_dependencies = list(dependencies)
