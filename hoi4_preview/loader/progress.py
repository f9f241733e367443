"""Progress events relayed from nested loaders to whoever observes a load."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

logger = logging.getLogger(__name__)

ProgressPhase = Literal["start", "reuse", "progress", "loaded", "failed", "cancelled"]


class ProgressEvent(BaseModel):
    """Progress notification emitted by a loader."""

    loader: str = Field(description="Identity of the emitting loader")
    phase: ProgressPhase = Field(description="Stage of the load")
    detail: str = Field(default="", description="Free-form detail for display")


ProgressHandler = Callable[[ProgressEvent], None]


class ProgressRelay:
    """Event relay for progress notifications.

    Handlers are called synchronously. Errors in handlers are isolated
    and logged; progress is observational and never affects a load.
    """

    def __init__(self) -> None:
        self._subscribers: list[ProgressHandler] = []
        # Events this relay is delivering right now; loader cycles relay them back
        self._publishing: set[int] = set()

    def subscribe(self, handler: ProgressHandler) -> Callable[[], None]:
        """Subscribe a handler to all progress events.

        Args:
            handler: Callable taking a ProgressEvent

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        """Publish an event to all subscribers.

        An event relayed back to a relay that is still delivering it is dropped.
        """
        if id(event) in self._publishing:
            return
        self._publishing.add(id(event))
        try:
            for handler in list(self._subscribers):
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Error in progress handler {getattr(handler, '__name__', handler)!r}")
        finally:
            self._publishing.discard(id(event))

    def relay_from(self, other: ProgressRelay) -> Callable[[], None]:
        """Forward every event published on ``other`` to this relay's subscribers."""
        return other.subscribe(self.publish)
