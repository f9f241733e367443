"""Game script format: parser and schema extraction."""

from .parser import Node
from .parser import parse_hoi4_file

__all__ = ["Node", "parse_hoi4_file"]
