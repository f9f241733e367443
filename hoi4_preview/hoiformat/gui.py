"""Window and sprite references from ``.gui`` files."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

from .parser import Node

SPRITE_REFERENCE_KEYS = frozenset({"spritetype", "quadtexturesprite", "background"})


@dataclass
class GuiFile:
    """Summary of one gui file.

    Attributes:
        containers: Names of ``containerWindowType`` blocks, outermost first
        sprites: Sprite names referenced anywhere in the file, deduplicated
    """

    containers: list[str] = field(default_factory=list)
    sprites: list[str] = field(default_factory=list)


def get_gui_file(root: Node) -> GuiFile:
    gui = GuiFile()
    for types in root.find_all("guiTypes"):
        _walk(types, gui)
    gui.sprites = list(dict.fromkeys(gui.sprites))
    return gui


def _walk(node: Node, gui: GuiFile) -> None:
    for child in node.children:
        if child.name is None:
            continue
        key = child.name.lower()
        if key == "containerwindowtype" and child.is_block:
            name = child.string("name")
            if name:
                gui.containers.append(name)
        elif key in SPRITE_REFERENCE_KEYS and isinstance(child.value, str):
            gui.sprites.append(child.value)
        if child.is_block:
            _walk(child, gui)
