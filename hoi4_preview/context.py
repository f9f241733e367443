"""Process-wide preview context.

Owns everything that outlives a single load request: the layered file
system, the shared loader instances and the image caches. Constructed once
at startup and passed explicitly to every loader.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .filesystem import ModFileSystem
from .image import ImageCache
from .loader.registry import LoaderRegistry
from .settings import PreviewSettings

logger = logging.getLogger(__name__)


class PreviewContext:
    """Shared state for loaders and caches.

    Attributes:
        settings: Effective settings
        file_system: Layered mod/game file access and expiry tokens
        loaders: Shared loader instances keyed by class and file
        images: Image, gfx and sprite caches
    """

    def __init__(
        self,
        settings: PreviewSettings | None = None,
        file_system: ModFileSystem | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or PreviewSettings()
        self.file_system = file_system or ModFileSystem(
            mod_root=self.settings.paths.mod,
            game_root=self.settings.paths.game,
        )
        self.loaders = LoaderRegistry(self)
        self.images = ImageCache(self.file_system, life=self.settings.cache.life_seconds, clock=clock)
        logger.debug(f"Preview context created with roots {self.file_system.roots}")

    async def expiry_token(self, path: str) -> str:
        return await self.file_system.expiry_token(path)
