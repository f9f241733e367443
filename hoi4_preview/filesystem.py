"""Layered file access and expiry tokens for mod and game files.

Resources are addressed by game-relative paths such as
``common/technologies/infantry.txt``. Lookup order is policy:
the mod directory shadows the base game directory.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from .errors import ResourceIOError

logger = logging.getLogger(__name__)

MISSING_TOKEN = "missing"


def normalize_path(path: str) -> str:
    """Normalize a game-relative path to forward slashes without leading slash."""
    return path.strip().replace("\\", "/").lstrip("/")


class ModFileSystem:
    """Resolves game-relative paths across the mod and base game layers.

    Attributes:
        roots: Search layers, highest priority first
    """

    def __init__(self, mod_root: Path | None = None, game_root: Path | None = None):
        self.roots: list[Path] = [root for root in (mod_root, game_root) if root is not None]

    def _candidates(self, path: str) -> list[Path]:
        relative = normalize_path(path)
        # Security: Prevent path traversal out of the layer roots
        if ".." in relative.split("/"):
            logger.warning(f"Path traversal attempt blocked: {path}")
            return []
        return [root / relative for root in self.roots]

    def resolve(self, path: str) -> Path | None:
        """Return the highest-priority existing file for ``path``, or None."""
        for candidate in self._candidates(path):
            if candidate.is_file():
                return candidate
        return None

    async def read(self, path: str) -> tuple[bytes, Path]:
        """Read raw bytes of a resource.

        Returns:
            Tuple of (content, real path the content was read from)

        Raises:
            ResourceIOError: If no layer contains a readable file
        """
        real_path = await asyncio.to_thread(self.resolve, path)
        if real_path is None:
            raise ResourceIOError(path)

        try:
            content = await asyncio.to_thread(real_path.read_bytes)
        except OSError as e:
            raise ResourceIOError(path, f"Failed to read {real_path}: {e}") from e

        return content, real_path

    async def read_text(self, path: str) -> tuple[str, Path]:
        """Read a resource as UTF-8 text (a BOM is stripped)."""
        content, real_path = await self.read(path)
        try:
            return content.decode("utf-8-sig"), real_path
        except UnicodeDecodeError:
            # Older game files are latin-1
            return content.decode("latin-1"), real_path

    async def expiry_token(self, path: str) -> str:
        """Fingerprint of a resource across all layers.

        Composed from the modification time and size of the path in every
        layer, so a mod override appearing or vanishing changes the token.
        Works for directories too: adding or removing entries bumps mtime.
        """
        return await asyncio.to_thread(self._expiry_token_sync, path)

    def _expiry_token_sync(self, path: str) -> str:
        parts = []
        for index, candidate in enumerate(self._candidates(path)):
            try:
                stat = candidate.stat()
            except OSError:
                continue
            parts.append(f"{index}:{stat.st_mtime_ns}:{stat.st_size}")

        return "|".join(parts) if parts else MISSING_TOKEN

    async def list_files(self, directory: str, suffix: str = "") -> list[str]:
        """List game-relative file paths in ``directory`` across all layers.

        A file present in several layers is listed once. Result is sorted.
        """
        return await asyncio.to_thread(self._list_files_sync, directory, suffix)

    def _list_files_sync(self, directory: str, suffix: str) -> list[str]:
        relative_dir = normalize_path(directory).rstrip("/")
        names: set[str] = set()
        for candidate in self._candidates(relative_dir):
            if not candidate.is_dir():
                continue
            for entry in os.scandir(candidate):
                if entry.is_file() and entry.name.lower().endswith(suffix.lower()):
                    names.add(entry.name)

        return [f"{relative_dir}/{name}" for name in sorted(names)]
