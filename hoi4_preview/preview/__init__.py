"""Preview loaders and the controller keeping previews in sync."""

from .base import PreviewController
from .gui import GfxFileLoader
from .gui import GuiFileLoader

__all__ = ["GfxFileLoader", "GuiFileLoader", "PreviewController"]
