import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from .errors import NotFoundError, PersistenceError, StaleWriteError
from .groups import GroupRegistry, table_to_rows
from .logging_config import get_logger
from .models import MatchRecord
from .rankings import apply_result
from .rules import match_players, normalize_group_code, sheet_for

log = get_logger(__name__)

RESULTS_SHEET = "MatchResults"
RESULTS_HEADER = ["Timestamp", "Group", "Winner", "Losers...", "Players"]


class MatchRecorder:
    """
    Records match results into a group's Player Table.

    Writes to the same group are serialized by a per-group lock; across
    processes the table write is a compare-and-swap on the sheet version and
    is re-applied on a fresh read when it loses.
    """

    def __init__(self, registry: GroupRegistry, audit_log: bool = True, write_attempts: int = 3):
        self.registry = registry
        self.store = registry.store
        self.audit_log = audit_log
        self.write_attempts = max(1, write_attempts)
        self._group_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def group_lock(self, code: str) -> asyncio.Lock:
        return self._group_locks[code]

    async def record_match(self, group_code: Any, players: Any) -> MatchRecord:
        """
        Validate a line-up (winner first), bump the winner and persist the table.

        Raises:
            ValidationError: bad group code, player count or names
            NotFoundError: unknown group
            PersistenceError: the store failed or kept losing the versioned write
        """
        code = normalize_group_code(group_code)
        names = match_players(players)
        winner, losers = names[0], names[1:]
        # Locks are only ever made for registered groups
        if not await self.registry.exists(code):
            raise NotFoundError("Invalid group code")

        async with self.group_lock(code):
            await self._update_table(code, winner, losers)

        record = MatchRecord(
            played_at=datetime.now(timezone.utc).isoformat(),
            group_code=code,
            winner=winner,
            losers=losers,
        )
        if self.audit_log:
            # No rollback of the table if this fails; the two can drift apart
            await self.store.append_row(RESULTS_SHEET, record.to_row(), header_row=RESULTS_HEADER)
        log.info("Recorded match group=%s winner=%s losers=%s", code, winner, ",".join(losers))
        return record

    async def _update_table(self, code: str, winner: str, losers: list[str]) -> None:
        sheet = sheet_for(code)
        for attempt in range(1, self.write_attempts + 1):
            table, version = await self.registry.load_table(code)
            updated = apply_result(table, winner, losers)
            try:
                await self.store.replace_body(sheet, table_to_rows(updated), expected_version=version)
                return
            except StaleWriteError:
                log.warning("Concurrent update on group=%s (attempt %s/%s)", code, attempt, self.write_attempts)
        raise PersistenceError("Failed to update match results")

    async def recent_matches(self, group_code: Any, limit: int = 10) -> list[MatchRecord]:
        """Newest-first audit records for one group."""
        code = normalize_group_code(group_code)
        if not await self.registry.exists(code):
            raise NotFoundError("Invalid group code")
        rows = await self.store.rows_matching(RESULTS_SHEET, 1, code, limit=max(limit, 0))
        out = []
        for row in rows:
            if len(row) < 5:
                log.warning("Skipping short audit row %r", row)
                continue
            out.append(MatchRecord(played_at=str(row[0]), group_code=code, winner=row[2], losers=list(row[3:-1])))
        log.debug("Recent matches group=%s limit=%s -> %s", code, limit, len(out))
        return out
