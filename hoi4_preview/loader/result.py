"""Result bundle returned by every loader."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Generic
from typing import TypeVar

from pydantic import BaseModel
from pydantic import Field

T = TypeVar("T")


class Position(BaseModel):
    """Character offsets of a span in a source file."""

    start: int
    end: int


class LoadWarning(BaseModel):
    """Informational problem found while loading. Never aborts a load."""

    message: str = Field(description="Display text")
    source: str | None = Field(default=None, description="File the warning refers to")
    position: Position | None = Field(default=None, description="Span inside the source file")
    related_files: list[str] = Field(default_factory=list, description="Other files involved")


@dataclass
class LoadResult(Generic[T]):
    """Value produced by a loader plus everything needed to invalidate it.

    Attributes:
        value: The loaded domain value
        dependencies: Every resource read to produce ``value``
        warnings: Problems found while loading, in discovery order
    """

    value: T
    dependencies: list[str] = field(default_factory=list)
    warnings: list[LoadWarning] = field(default_factory=list)


@dataclass(frozen=True)
class Dependency:
    """A dependency declared inside a file with a ``#! type: path`` comment."""

    type: str
    path: str
