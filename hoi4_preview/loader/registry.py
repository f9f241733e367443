"""Shared loader instances and per-parent sub-loader bookkeeping."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from collections.abc import Iterable
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar

from ..errors import ResourceIOError
from ..filesystem import normalize_path
from .merge import load_optional
from .merge import merge_dependencies
from .result import LoadResult
from .session import LoaderSession

if TYPE_CHECKING:
    from ..context import PreviewContext
    from .loader import ContentLoader
    from .loader import Loader

logger = logging.getLogger(__name__)

L = TypeVar("L", bound="ContentLoader")


class LoaderRegistry:
    """One ContentLoader instance per (loader class, file) for the whole process.

    Sharing instances is what lets two parents depending on the same file
    coalesce their loads and reuse each other's results.
    """

    def __init__(self, context: PreviewContext):
        self._context = context
        self._loaders: dict[tuple[type, str], ContentLoader] = {}

    def __len__(self) -> int:
        return len(self._loaders)

    def get(self, loader_type: type[L], file: str) -> L:
        """Get or create the shared loader for ``file``."""
        key = (loader_type, normalize_path(file))
        loader = self._loaders.get(key)
        if loader is None:
            loader = loader_type(key[1], self._context)
            self._loaders[key] = loader
            logger.debug(f"Created {loader}")
        return loader  # type: ignore[return-value]

    def dependencies_of(self, parent: Loader) -> LoaderDependencies:
        return LoaderDependencies(parent, self)


class LoaderDependencies:
    """Sub-loaders reached from one parent loader.

    Progress of every sub-loader handed out here is relayed to the parent.
    """

    def __init__(self, parent: Loader, registry: LoaderRegistry):
        self._parent = parent
        self._registry = registry
        self._relayed: set[int] = set()

    def get(self, loader_type: type[L], file: str) -> L:
        loader = self._registry.get(loader_type, file)
        if id(loader) not in self._relayed:
            self._relayed.add(id(loader))
            self._parent.relay_progress_from(loader)
        return loader

    async def load_multiple(
        self,
        files: Iterable[str],
        session: LoaderSession,
        loader_type: type[L],
    ) -> list[LoadResult[Any]]:
        """Load several files concurrently.

        Results are returned in the order of ``files`` (duplicates removed),
        whatever order the loads complete in.
        """
        loaders = [self.get(loader_type, file) for file in merge_dependencies(files)]
        session.throw_if_cancelled()
        results = await asyncio.gather(*(loader.load(session) for loader in loaders))
        session.throw_if_cancelled()
        return list(results)

    async def load_multiple_optional(
        self,
        files: Iterable[str],
        session: LoaderSession,
        loader_type: type[L],
        fallback: Callable[[], Any],
        errors: tuple[type[Exception], ...] = (ResourceIOError,),
    ) -> list[LoadResult[Any]]:
        """Like load_multiple, but a failing file becomes a warning.

        Args:
            files: Files to load, in merge order
            session: Current loader session
            loader_type: ContentLoader subclass to load each file with
            fallback: Produces the value standing in for a failed file
            errors: Exception types degraded to warnings
        """
        loaders = [self.get(loader_type, file) for file in merge_dependencies(files)]
        session.throw_if_cancelled()
        results = await asyncio.gather(
            *(load_optional(loader, session, fallback(), errors) for loader in loaders)
        )
        session.throw_if_cancelled()
        return list(results)
