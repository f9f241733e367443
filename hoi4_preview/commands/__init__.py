"""CLI commands."""

import asyncio
import logging
import sys
from collections.abc import Coroutine
from typing import Any
from typing import TypeVar

from rich.markup import escape

from ..console import console
from ..errors import PreviewError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_async(coroutine: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion, reporting preview errors to the user."""
    try:
        return asyncio.run(coroutine)
    except PreviewError as e:
        logger.debug(f"Command failed: {e!r}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
