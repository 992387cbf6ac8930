"""source2prompt - Turn a project tree into a single bounded prompt document."""

__version__ = "0.1.0"

from source2prompt.scanner import Scanner, ScanSnapshot
from source2prompt.stats import StatsEngine, StatsResult

__all__ = ["Scanner", "ScanSnapshot", "StatsEngine", "StatsResult"]
