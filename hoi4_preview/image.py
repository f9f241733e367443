"""Image, gfx and sprite caches.

Images are read once per file version. Only header dimensions are decoded:
pixel conversion happens in the renderer, not here.
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from pathlib import PurePosixPath

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from .cache import PromiseCache
from .errors import ParseError
from .errors import PreviewError
from .errors import UnsupportedFormatError
from .filesystem import ModFileSystem
from .filesystem import normalize_path
from .hoiformat.parser import parse_hoi4_file
from .hoiformat.spritetype import CorneredTileSpriteType
from .hoiformat.spritetype import SpriteType
from .hoiformat.spritetype import get_sprite_types

logger = logging.getLogger(__name__)

# Image formats the game ships, by file extension, as Pillow names them
IMAGE_FORMATS = {".png": "PNG", ".dds": "DDS", ".tga": "TGA"}


@dataclass
class Image:
    path: str
    real_path: Path
    width: int
    height: int
    format: str
    data: bytes = field(repr=False)


@dataclass
class Sprite:
    name: str
    image: Image
    frames: int = 1

    @property
    def frame_width(self) -> int:
        return self.image.width // max(self.frames, 1)


@dataclass
class CorneredTileSprite(Sprite):
    size: tuple[int, int] = (0, 0)
    bordersize: tuple[int, int] = (0, 0)


def read_image_size(data: bytes, path: str) -> tuple[int, int, str]:
    """Width, height and format from an image header.

    Only the header is decoded; pixel data is never read here.

    Raises:
        UnsupportedFormatError: For extensions other than png, dds and tga
        ParseError: If Pillow cannot identify the data as that format
    """
    image_format = IMAGE_FORMATS.get(PurePosixPath(path).suffix.lower())
    if image_format is None:
        raise UnsupportedFormatError(f"Unsupported image type: {path}")

    try:
        with PILImage.open(io.BytesIO(data), formats=[image_format]) as image:
            width, height = image.size
    except (UnidentifiedImageError, ValueError, NotImplementedError) as e:
        raise ParseError(f"Invalid {image_format} image: {e}", path) from e
    except OSError as e:
        raise ParseError(f"Truncated {image_format} image: {e}", path) from e

    return width, height, image_format.lower()


class ImageCache:
    """Caches owned by the preview context for images, gfx files and sprites."""

    def __init__(self, file_system: ModFileSystem, life: float | None = 10 * 60, clock: Callable[[], float] = time.monotonic):
        self._file_system = file_system
        self.images: PromiseCache[str, Image | None] = PromiseCache(
            factory=self._load_image, expire_when_change=self._file_token, life=life, clock=clock, name="image"
        )
        self.gfx_maps: PromiseCache[str, dict[str, SpriteType]] = PromiseCache(
            factory=self._load_gfx_map, expire_when_change=self._file_token, life=life, clock=clock, name="gfx"
        )
        self.sprites: PromiseCache[str, Sprite | None] = PromiseCache(
            factory=self._load_sprite, expire_when_change=self._sprite_token, life=life, clock=clock, name="sprite"
        )

    async def get_image(self, path: str) -> Image | None:
        return await self.images.get(normalize_path(path))

    async def get_sprite(self, name: str, gfx_files: str | list[str]) -> Sprite | None:
        """Find sprite ``name`` in the first gfx file that defines it."""
        files = [gfx_files] if isinstance(gfx_files, str) else gfx_files
        for gfx_file in files:
            sprite = await self.sprites.get(f"{normalize_path(gfx_file)}?{name}")
            if sprite is not None:
                return sprite
        return None

    async def _file_token(self, path: str, _value: Awaitable) -> str:
        return await self._file_system.expiry_token(path)

    async def _sprite_token(self, key: str, value: Awaitable) -> str:
        gfx_file, _ = key.split("?", 1)
        gfx_token = await self._file_system.expiry_token(gfx_file)
        sprite = await value
        if sprite is not None:
            image_token = await self._file_system.expiry_token(sprite.image.path)
            return f"{gfx_token}:{image_token}"
        return gfx_token

    async def _load_image(self, path: str) -> Image | None:
        try:
            data, real_path = await self._file_system.read(path)
        except PreviewError as e:
            logger.error(f"Failed to get image {path}: {e}")
            if len(path) <= 4 or path.lower().endswith(".dds"):
                return None
            # .png or .tga may only exist as .dds
            path = path[:-4] + ".dds"
            try:
                data, real_path = await self._file_system.read(path)
            except PreviewError as e:
                logger.error(f"Failed to get image {path}: {e}")
                return None

        try:
            width, height, image_format = read_image_size(data, path)
        except PreviewError as e:
            logger.error(f"Failed to get image {path}: {e}")
            return None

        return Image(path=path, real_path=real_path, width=width, height=height, format=image_format, data=data)

    async def _load_gfx_map(self, path: str) -> dict[str, SpriteType]:
        try:
            text, real_path = await self._file_system.read_text(path)
            sprite_types = get_sprite_types(parse_hoi4_file(text, str(real_path)))
        except PreviewError as e:
            logger.error(f"Failed to load gfx file {path}: {e}")
            return {}

        return {sprite_type.name: sprite_type for sprite_type in sprite_types}

    async def _load_sprite(self, key: str) -> Sprite | None:
        gfx_file, name = key.split("?", 1)
        gfx_map = await self.gfx_maps.get(gfx_file)
        sprite_type = gfx_map.get(name)
        if sprite_type is None:
            return None

        image = await self.get_image(sprite_type.texturefile)
        if image is None:
            return None

        if isinstance(sprite_type, CorneredTileSpriteType):
            return CorneredTileSprite(
                name=name,
                image=image,
                frames=sprite_type.noofframes,
                size=sprite_type.size,
                bordersize=sprite_type.bordersize,
            )
        return Sprite(name=name, image=image, frames=sprite_type.noofframes)
