"""Sprite definitions from ``.gfx`` files."""

from __future__ import annotations

from dataclasses import dataclass

from .parser import Node

SPRITE_TYPE_KEYS = ("spritetype", "frameanimatedspritetype", "textspritetype")


@dataclass
class SpriteType:
    name: str
    texturefile: str
    noofframes: int = 1


@dataclass
class CorneredTileSpriteType(SpriteType):
    size: tuple[int, int] = (0, 0)
    bordersize: tuple[int, int] = (0, 0)


def _xy(node: Node | None) -> tuple[int, int]:
    if node is None:
        return (0, 0)
    return (int(node.number("x", 0) or 0), int(node.number("y", 0) or 0))


def get_sprite_types(root: Node) -> list[SpriteType]:
    """All sprite types declared in ``spriteTypes = { ... }`` blocks."""
    sprites: list[SpriteType] = []
    for block in root.find_all("spriteTypes"):
        for child in block.children:
            if child.name is None or not child.is_block:
                continue
            kind = child.name.lower()
            name = child.string("name")
            texturefile = child.string("texturefile") or child.string("textureFile1")
            if not name or not texturefile:
                continue

            frames = int(child.number("noofframes", 1) or 1)
            if kind == "corneredtilespritetype":
                sprites.append(
                    CorneredTileSpriteType(
                        name=name,
                        texturefile=texturefile,
                        noofframes=frames,
                        size=_xy(child.find("size")),
                        bordersize=_xy(child.find("bordersize")),
                    )
                )
            elif kind in SPRITE_TYPE_KEYS:
                sprites.append(SpriteType(name=name, texturefile=texturefile, noofframes=frames))
    return sprites
