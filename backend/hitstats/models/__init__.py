"""Models package."""
from hitstats.models.stat import Stat

__all__ = ["Stat"]
