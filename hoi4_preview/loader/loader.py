"""Incremental, dependency-tracked loaders.

A Loader recomputes its value only when it has to: on first load, when a
session forces it, or when the expiry token of any dependency recorded by
its last load has changed. Loaders compose: a parent's dependencies are the
union of its sub-loaders' dependencies, so a change to a leaf file
invalidates every ancestor while unchanged siblings are reused.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC
from abc import abstractmethod
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from contextvars import ContextVar
from typing import TYPE_CHECKING
from typing import Generic
from typing import TypeVar

from ..errors import DependencyCycleError
from ..errors import LoadCancelledError
from ..errors import ResourceIOError
from ..filesystem import normalize_path
from .merge import merge_dependencies
from .progress import ProgressEvent
from .progress import ProgressPhase
from .progress import ProgressRelay
from .result import Dependency
from .result import LoadResult
from .session import LoaderSession

if TYPE_CHECKING:
    from ..context import PreviewContext
    from .registry import LoaderDependencies

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Loaders on the current call path; follows asyncio tasks through context copies
_loader_stack: ContextVar[tuple[Loader, ...]] = ContextVar("hoi4_preview_loader_stack", default=())

DEPENDENCY_COMMENT = re.compile(r"^\s*#!\s*([A-Za-z_][\w-]*)\s*:\s*(\S.*?)\s*$", re.MULTILINE)


def _retrieve_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


def _is_cancellation(future: asyncio.Future) -> bool:
    return future.cancelled() or isinstance(future.exception(), LoadCancelledError)


def get_dependencies_from_text(text: str) -> list[Dependency]:
    """Extract ``#! type: path`` dependency declarations from file text."""
    return [
        Dependency(type=match.group(1).lower(), path=normalize_path(match.group(2)))
        for match in DEPENDENCY_COMMENT.finditer(text)
    ]


class Loader(ABC, Generic[T]):
    """Unit of recomputation producing a value, its dependencies and warnings.

    At most one computation per instance is in flight: concurrent loads from
    other sessions await it instead of starting their own.

    Attributes:
        context: Process-wide context providing expiry tokens and shared loaders
        on_progress: Relay of this loader's (and its sub-loaders') progress
        file: Source file for file-backed loaders, None otherwise
    """

    file: str | None = None

    def __init__(self, context: PreviewContext):
        self.context = context
        self.on_progress = ProgressRelay()
        self._result: LoadResult[T] | None = None
        self._dependency_tokens: dict[str, str] = {}
        self._loading: asyncio.Future[LoadResult[T]] | None = None
        self._loading_session: LoaderSession | None = None
        self._committed_by: LoaderSession | None = None
        self._should_reload = False
        self.loader_dependencies: LoaderDependencies = context.loaders.dependencies_of(self)

    @property
    def identity(self) -> str:
        return f"[{type(self).__name__}]"

    def __str__(self) -> str:
        return self.identity

    def __repr__(self) -> str:
        return self.identity

    @property
    def last_result(self) -> LoadResult[T] | None:
        """Last committed result, possibly stale."""
        return self._result

    async def load(self, session: LoaderSession) -> LoadResult[T]:
        """Load, reusing the previous result when none of its dependencies changed.

        Raises:
            LoadCancelledError: If the session is cancelled at a check point
            DependencyCycleError: If this loader reaches itself before ever loading
        """
        session.throw_if_cancelled()

        if self in _loader_stack.get():
            if self._result is None:
                raise DependencyCycleError(f"{self} depends on itself")
            # Known incompleteness: a genuine cycle sees the previous result
            logger.debug(f"Cyclic dependency on {self}, reusing last result")
            return self._result

        visited = session.is_loaded(self)
        if visited and self._loading is None and self._result is not None:
            return self._result
        session.loaded_loaders.add(self)

        while self._loading is not None:
            in_flight, owner = self._loading, self._loading_session
            try:
                result = await asyncio.shield(in_flight)
            except (LoadCancelledError, asyncio.CancelledError):
                # Only retry when the other session's load was the one cancelled
                if not (in_flight.done() and _is_cancellation(in_flight)):
                    raise
                session.throw_if_cancelled()
                continue

            if owner is session or not session.force:
                return result

        if visited and self._committed_by is session:
            return self._result
        return await self._run(session)

    async def get_value(self, force: bool = False) -> T:
        """Load with a fresh session and return only the value."""
        session = LoaderSession(force=force)
        result = await self.load(session)
        return result.value

    def shallow_force_reload(self) -> None:
        """Recompute this loader on its next load without forcing sub-loaders."""
        self._should_reload = True

    async def should_reload_impl(self, session: LoaderSession) -> bool:
        """Extra staleness condition on top of dependency tokens."""
        return False

    @abstractmethod
    async def load_impl(self, session: LoaderSession) -> LoadResult[T]:
        """Compute the result. Must check ``session`` after every await."""

    def relay_progress_from(self, loader: Loader) -> None:
        """Forward a sub-loader's progress events to this loader's observers."""
        self.on_progress.relay_from(loader.on_progress)

    def emit_progress(self, phase: ProgressPhase, detail: str = "") -> None:
        self.on_progress.publish(ProgressEvent(loader=self.identity, phase=phase, detail=detail))

    def describe_result(self, result: LoadResult[T]) -> str:
        """Detail text of the "loaded" progress event."""
        return f"{len(result.dependencies)} dependencies, {len(result.warnings)} warnings"

    async def _run(self, session: LoaderSession) -> LoadResult[T]:
        future: asyncio.Future[LoadResult[T]] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_retrieve_exception)
        self._loading = future
        self._loading_session = session
        stack_token = _loader_stack.set(_loader_stack.get() + (self,))
        try:
            result = await self._load_or_reuse(session)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            self._committed_by = session
            future.set_result(result)
            return result
        finally:
            _loader_stack.reset(stack_token)
            if not future.done():
                future.cancel()
            self._loading = None
            self._loading_session = None

    async def _load_or_reuse(self, session: LoaderSession) -> LoadResult[T]:
        observed: dict[str, str] = {}
        reason = None
        if session.force:
            reason = "forced"
        elif self._result is None:
            reason = "first load"
        elif self._should_reload or await self.should_reload_impl(session):
            reason = "reload requested"
        else:
            observed = await self._capture_tokens(self._dependency_tokens)
            session.throw_if_cancelled()
            if observed != self._dependency_tokens:
                reason = "dependencies changed"

        if reason is None:
            self.emit_progress("reuse")
            return self._result

        logger.debug(f"Loading {self}: {reason}")
        self.emit_progress("start", reason)
        try:
            result = await self.load_impl(session)
            session.throw_if_cancelled()
            # Tokens observed before loading win: a change during the load forces a recompute next time
            fresh = await self._capture_tokens(d for d in result.dependencies if d not in observed)
            session.throw_if_cancelled()
        except LoadCancelledError:
            self.emit_progress("cancelled")
            raise
        except Exception as e:
            self.emit_progress("failed", str(e))
            raise

        self._dependency_tokens = {d: observed[d] if d in observed else fresh[d] for d in result.dependencies}
        self._result = result
        self._should_reload = False
        logger.debug(f"Loaded {self}, dependencies: {result.dependencies}")
        self.emit_progress("loaded", self.describe_result(result))
        return result

    async def _capture_tokens(self, dependencies: Iterable[str]) -> dict[str, str]:
        paths = list(dependencies)
        tokens = await asyncio.gather(*(self.context.file_system.expiry_token(p) for p in paths))
        return dict(zip(paths, tokens, strict=True))


AnalyzeFunc = Callable[
    [str | None, list[Dependency], Exception | None, LoaderSession],
    Awaitable[LoadResult[T]],
]


class ContentLoader(Loader[T]):
    """Loader backed by one source file.

    Reads the file and hands its text, the ``#! type: path`` dependencies it
    declares, and any read error to ``post_load``. Subclasses override
    ``post_load``; alternatively an ``analyze`` function can be injected.
    The file itself is always the first dependency of the result.
    """

    def __init__(self, file: str, context: PreviewContext, analyze: AnalyzeFunc | None = None):
        super().__init__(context)
        self.file = normalize_path(file)
        self._analyze = analyze

    @property
    def identity(self) -> str:
        return f"[{type(self).__name__} {self.file}]"

    async def load_impl(self, session: LoaderSession) -> LoadResult[T]:
        content: str | None = None
        error: ResourceIOError | None = None
        try:
            content, _ = await self.context.file_system.read_text(self.file)
        except ResourceIOError as e:
            error = e
        session.throw_if_cancelled()

        declared = get_dependencies_from_text(content) if content is not None else []
        result = await self.post_load(content, declared, error, session)
        session.throw_if_cancelled()

        return LoadResult(
            value=result.value,
            dependencies=merge_dependencies([self.file], result.dependencies),
            warnings=list(result.warnings),
        )

    async def post_load(
        self,
        content: str | None,
        dependencies: list[Dependency],
        error: Exception | None,
        session: LoaderSession,
    ) -> LoadResult[T]:
        """Interpret the file content.

        Args:
            content: File text, None if it could not be read
            dependencies: Dependencies declared in the file text
            error: Read error, None on success
            session: Current loader session

        Returns:
            Result whose dependencies list files other than this one
        """
        if self._analyze is None:
            if error is not None:
                raise error
            raise NotImplementedError(f"{type(self).__name__} needs an analyze function or a post_load override")
        return await self._analyze(content, dependencies, error, session)
