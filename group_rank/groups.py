from typing import Any

from .db import SheetStore
from .errors import ConflictError, NotFoundError
from .logging_config import get_logger
from .models import Group
from .rules import group_players, normalize_group_code, sheet_for

log = get_logger(__name__)

TABLE_HEADER = ["Player", "Score"]


def _score(cell: Any, sheet: str, name: str) -> int:
    try:
        return max(int(cell), 0)
    except (TypeError, ValueError):
        log.warning("Unreadable score %r for %s in %s, counting as 0", cell, name, sheet)
        return 0


def rows_to_table(sheet: str, rows: list[list]) -> dict[str, int]:
    """Player Table from sheet rows (header skipped), in row order."""
    table: dict[str, int] = {}
    for row in rows[1:]:
        if not row or not isinstance(row[0], str) or not row[0].strip():
            continue
        name = row[0]
        table[name] = _score(row[1] if len(row) > 1 else 0, sheet, name)
    return table


def table_to_rows(table: dict[str, int]) -> list[list]:
    return [[name, score] for name, score in table.items()]


class GroupRegistry:
    """Group codes and the Player Table behind each of them."""

    def __init__(self, store: SheetStore):
        self.store = store

    async def register(self, code: Any, initial_players: Any) -> Group:
        """
        Create a group with every initial player at 0 points.

        Raises:
            ValidationError: code is not 5 letters/digits, or the roster is invalid
            ConflictError: the code is already taken
        """
        code = normalize_group_code(code)
        players = group_players(initial_players)
        sheet = sheet_for(code)
        if await self.store.sheet_exists(sheet):
            log.info("Group code %s already exists", code)
            raise ConflictError("Group code already exists")

        # create_table also refuses a duplicate title if another request won the race
        try:
            await self.store.create_table(sheet, TABLE_HEADER, [[name, 0] for name in players])
        except ConflictError as e:
            log.info("Group code %s was taken concurrently", code)
            raise ConflictError("Group code already exists") from e
        log.info("Created group %s with %s players", code, len(players))
        return Group(code=code, players=players)

    async def exists(self, code: Any) -> bool:
        return await self.store.sheet_exists(sheet_for(code))

    async def load_table(self, code: Any) -> tuple[dict[str, int], int]:
        """The group's Player Table in stored order, plus the sheet version it was read at."""
        sheet = sheet_for(code)
        try:
            rows, version = await self.store.get_table_versioned(sheet)
        except NotFoundError:
            raise NotFoundError("Invalid group code") from None
        return rows_to_table(sheet, rows), version

    async def lookup_players(self, code: Any) -> list[str]:
        table, _ = await self.load_table(code)
        return list(table)
