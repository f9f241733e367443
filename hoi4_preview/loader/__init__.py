"""Incremental loader framework: sessions, loaders, merge utilities and progress."""

from .loader import ContentLoader
from .loader import Loader
from .loader import get_dependencies_from_text
from .merge import empty_load_result
from .merge import load_optional
from .merge import merge_dependencies
from .merge import merge_in_load_result
from .progress import ProgressEvent
from .progress import ProgressRelay
from .registry import LoaderDependencies
from .registry import LoaderRegistry
from .result import Dependency
from .result import LoadResult
from .result import LoadWarning
from .result import Position
from .session import LoaderSession

__all__ = [
    "ContentLoader",
    "Dependency",
    "Loader",
    "LoaderDependencies",
    "LoaderRegistry",
    "LoaderSession",
    "LoadResult",
    "LoadWarning",
    "Position",
    "ProgressEvent",
    "ProgressRelay",
    "empty_load_result",
    "get_dependencies_from_text",
    "load_optional",
    "merge_dependencies",
    "merge_in_load_result",
]
