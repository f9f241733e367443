"""Pytest configuration for hoi4_preview tests."""

import io
import os
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image as PILImage

from hoi4_preview.context import PreviewContext
from hoi4_preview.filesystem import ModFileSystem
from hoi4_preview.settings import PreviewSettings

TECHNOLOGY_FILE = """\
#! gui: interface/custom_techtree.gui
technologies = {
\t@1918 = 0
\t@1936 = 2

\tinfantry_weapons = {
\t\tenable_equipments = { infantry_equipment_0 }
\t\tpath = { leads_to_tech = infantry_weapons1 research_cost_coeff = 1 }
\t\tpath = { leads_to_tech = infantry_at }
\t\tfolder = { name = infantry_folder position = { x = 0 y = @1918 } }
\t\tstart_year = 1918
\t}

\tinfantry_weapons1 = {
\t\tpath = { leads_to_tech = infantry_weapons2 }
\t\tfolder = { name = infantry_folder position = { x = 0 y = @1936 } }
\t\tstart_year = 1936
\t}

\tinfantry_weapons2 = {
\t\tfolder = { name = infantry_folder position = { x = 0 y = 4 } }
\t\txor = { infantry_at }
\t}

\tinfantry_at = {
\t\tfolder = { name = infantry_folder position = { x = 2 y = 2 } }
\t}

\tsupport_weapons = {
\t\tfolder = { name = support_folder position = { x = 1 y = 0 } }
\t}
}
"""

GUI_FILE = """\
#! gfx: interface/techtree_extra.gfx
guiTypes = {
\tcontainerWindowType = {
\t\tname = "techtree"
\t\ticonType = { name = "bg" spriteType = "GFX_tiled_window" }
\t}
}
"""

GFX_FILE = """\
spriteTypes = {
\tspriteType = {
\t\tname = "GFX_infantry_weapons_medium"
\t\ttexturefile = "gfx/interface/technologies/infantry_weapons.png"
\t\tnoOfFrames = 2
\t}
\tcorneredTileSpriteType = {
\t\tname = "GFX_tiled_window"
\t\ttexturefile = "gfx/interface/tiled_window.dds"
\t\tsize = { x = 64 y = 64 }
\t\tbordersize = { x = 8 y = 8 }
\t}
}
"""


def image_bytes(width: int, height: int, image_format: str) -> bytes:
    buffer = io.BytesIO()
    PILImage.new("RGBA", (width, height)).save(buffer, format=image_format)
    return buffer.getvalue()


def png_bytes(width: int, height: int) -> bytes:
    return image_bytes(width, height, "PNG")


def dds_bytes(width: int, height: int) -> bytes:
    return image_bytes(width, height, "DDS")


@pytest.fixture
def game_dir(tmp_path: Path) -> Path:
    path = tmp_path / "game"
    path.mkdir()
    return path


@pytest.fixture
def mod_dir(tmp_path: Path) -> Path:
    path = tmp_path / "mod"
    path.mkdir()
    return path


@pytest.fixture
def write_file() -> Callable[[Path, str, str | bytes], Path]:
    """Write a file and guarantee its mtime moves forward on every rewrite."""

    def write(root: Path, relative: str, content: str | bytes) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        previous = path.stat().st_mtime_ns if path.exists() else 0
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        mtime = max(path.stat().st_mtime_ns, previous + 1_000_000_000)
        os.utime(path, ns=(mtime, mtime))
        return path

    return write


@pytest.fixture
def settings() -> PreviewSettings:
    return PreviewSettings()


@pytest.fixture
def context(game_dir: Path, mod_dir: Path, settings: PreviewSettings) -> PreviewContext:
    return PreviewContext(settings, file_system=ModFileSystem(mod_root=mod_dir, game_root=game_dir))


@pytest.fixture
def game_files(game_dir: Path, write_file) -> Path:
    """A base game tree with one technology file and its interface files."""
    write_file(game_dir, "common/technologies/infantry.txt", TECHNOLOGY_FILE)
    write_file(game_dir, "interface/countrytechtreeview.gui", GUI_FILE)
    write_file(game_dir, "interface/countrydoctrinetreeview.gui", "guiTypes = { }\n")
    write_file(game_dir, "interface/custom_techtree.gui", "guiTypes = { }\n")
    write_file(game_dir, "interface/technologies.gfx", GFX_FILE)
    write_file(game_dir, "gfx/interface/technologies/infantry_weapons.png", png_bytes(128, 64))
    write_file(game_dir, "gfx/interface/tiled_window.dds", dds_bytes(64, 64))
    return game_dir


@pytest.fixture
def make_png() -> Callable[[int, int], bytes]:
    return png_bytes


@pytest.fixture
def make_dds() -> Callable[[int, int], bytes]:
    return dds_bytes
