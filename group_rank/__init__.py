"""Group Rank core package.

Exports commonly used modules for convenience.
"""

from . import db as db
from . import rankings as rankings
from . import rules as rules
from . import logging_config as logging_config
from .db import SheetStore
from .groups import GroupRegistry
from .matches import MatchRecorder
from .leaderboard import get_rankings
from .models import Group, PlayerScore, MatchRecord

__all__ = [
    "db",
    "rankings",
    "rules",
    "logging_config",
    "SheetStore",
    "GroupRegistry",
    "MatchRecorder",
    "get_rankings",
    "Group",
    "PlayerScore",
    "MatchRecord",
]
