"""smol-analytics - tiny visit counter with periodic webhook reports."""

from smol_analytics._version import __version__
from smol_analytics.keys import Granularity

__all__ = [
    "__version__",
    "Granularity",
]
