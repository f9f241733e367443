"""Technology tree preview."""

from .loader import TechnologyTreeLoader
from .loader import TechnologyTreeLoaderResult
from .overview import TechnologyOverview
from .overview import TechnologyOverviewLoader
from .schema import Technology
from .schema import TechnologyTree

__all__ = [
    "Technology",
    "TechnologyOverview",
    "TechnologyOverviewLoader",
    "TechnologyTree",
    "TechnologyTreeLoader",
    "TechnologyTreeLoaderResult",
]
