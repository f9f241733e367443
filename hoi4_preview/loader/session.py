"""Per-request loading context."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import LoadCancelledError

if TYPE_CHECKING:
    from .loader import Loader

logger = logging.getLogger(__name__)


class LoaderSession:
    """Context shared by every loader reached from one load request.

    A session is created per externally triggered load (document switch,
    explicit refresh) and passed by reference down the whole loader graph.

    Attributes:
        force: Every loader reached from this session recomputes unconditionally
        loaded_loaders: Loaders already visited by this session
    """

    def __init__(self, force: bool = False):
        self.force = force
        self.loaded_loaders: set[Loader] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the session. Cancellation is permanent."""
        if not self._cancelled:
            logger.debug(f"Loader session cancelled after visiting {len(self.loaded_loaders)} loaders")
        self._cancelled = True

    def throw_if_cancelled(self) -> None:
        """Raise LoadCancelledError if the session was cancelled."""
        if self._cancelled:
            raise LoadCancelledError("Loading was cancelled")

    def is_loaded(self, loader: Loader) -> bool:
        return loader in self.loaded_loaders

    def loaded_loader_names(self) -> list[str]:
        """Identities of visited loaders, sorted for stable diagnostics."""
        return sorted(str(loader) for loader in self.loaded_loaders)
