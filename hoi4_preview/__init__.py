"""Incremental previews of game-mod assets."""

from .cache import PromiseCache
from .context import PreviewContext
from .errors import DependencyCycleError
from .errors import LoadCancelledError
from .errors import ParseError
from .errors import PreviewError
from .errors import ResourceIOError
from .errors import UnsupportedFormatError
from .errors import UserError
from .filesystem import ModFileSystem

__all__ = [
    "DependencyCycleError",
    "LoadCancelledError",
    "ModFileSystem",
    "ParseError",
    "PreviewContext",
    "PreviewError",
    "PromiseCache",
    "ResourceIOError",
    "UnsupportedFormatError",
    "UserError",
]
