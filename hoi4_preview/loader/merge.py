"""Merge utilities for composing sub-loader results.

Policy: dependencies are UNIONED (deduplicated, first-seen order) so a
change to any leaf invalidates every ancestor; warnings are CONCATENATED in
the order sub-loaders were declared, regardless of completion order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from collections.abc import Sequence
from typing import TYPE_CHECKING
from typing import Any
from typing import Literal
from typing import TypeVar

from ..errors import ResourceIOError
from .result import LoadResult
from .result import LoadWarning

if TYPE_CHECKING:
    from .loader import Loader
    from .session import LoaderSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fields that are unioned rather than concatenated during merge.
UNION_RESULT_FIELDS = frozenset({"dependencies"})


def merge_dependencies(*groups: Iterable[str]) -> list[str]:
    """Union dependency lists, keeping first-seen order."""
    return list(dict.fromkeys(path for group in groups for path in group))


def merge_in_load_result(
    results: Sequence[LoadResult[Any]],
    key: Literal["dependencies", "warnings"],
) -> list[Any]:
    """Combine one field across sub-loader results.

    Args:
        results: Sub-loader results in declaration order
        key: "dependencies" (unioned) or "warnings" (concatenated)

    Returns:
        Merged list
    """
    if key in UNION_RESULT_FIELDS:
        return merge_dependencies(*(getattr(r, key) for r in results))
    return [item for r in results for item in getattr(r, key)]


def empty_load_result(value: T) -> LoadResult[T]:
    """Stand-in for a sub-loader skipped by configuration."""
    return LoadResult(value=value, dependencies=[], warnings=[])


async def load_optional(
    loader: Loader[T],
    session: LoaderSession,
    fallback: T,
    errors: tuple[type[Exception], ...] = (ResourceIOError,),
) -> LoadResult[T]:
    """Load a non-primary sub-loader, degrading a failure to a warning.

    The loader's file stays in the dependencies so the parent reloads once the
    file appears or is fixed.

    Args:
        loader: Sub-loader to load
        session: Current loader session
        fallback: Value used when the sub-loader fails
        errors: Exception types degraded to warnings; others propagate
    """
    try:
        return await loader.load(session)
    except errors as e:
        logger.debug(f"Optional {loader} unavailable: {e}")
        dependencies = [loader.file] if loader.file else []
        return LoadResult(
            value=fallback,
            dependencies=dependencies,
            warnings=[LoadWarning(message=str(e), source=loader.file)],
        )
