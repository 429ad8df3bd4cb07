from typing import Any

from .groups import GroupRegistry
from .logging_config import get_logger
from .models import PlayerScore
from .rankings import sort_table

log = get_logger(__name__)


async def get_rankings(registry: GroupRegistry, group_code: Any) -> list[PlayerScore]:
    """Leaderboard for a group, best first. An empty group gives an empty list."""
    table, _ = await registry.load_table(group_code)
    out = [PlayerScore(name=name, score=score) for name, score in sort_table(table)]
    log.debug("Rankings group=%s -> %s players", group_code, len(out))
    return out
