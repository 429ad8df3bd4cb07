"""
Leaderboard arithmetic.
Pure functions over a group's Player Table (an ordered ``name -> score`` mapping).
"""

from typing import Iterable, Mapping

from .errors import ValidationError
from .rules import MAX_MATCH_PLAYERS, MIN_MATCH_PLAYERS


def rank_key(item: tuple[str, int]) -> tuple[int, str, str]:
    """Sort key: highest score first, then name alphabetically (case-insensitive)."""
    name, score = item
    return (-score, name.casefold(), name)


def sort_table(table: Mapping[str, int]) -> list[tuple[str, int]]:
    """
    Order a Player Table for display.

    Args:
        table: Mapping of player name to score

    Returns:
        List of (name, score) pairs, score descending, ties alphabetical
    """
    return sorted(table.items(), key=rank_key)


def apply_result(table: Mapping[str, int], winner: str, others: Iterable[str]) -> dict[str, int]:
    """
    Fold one match result into a Player Table.

    The winner gains one point (a missing winner starts from 0). Every other
    participant that is not in the table yet is added with 0 points. Nobody
    else changes. Applying the same result twice counts it twice.

    Args:
        table: Current mapping of player name to score (left untouched)
        winner: Name of the winning player
        others: Names of the remaining participants

    Returns:
        New table ordered as the leaderboard displays it

    Raises:
        ValidationError: fewer than 2 or more than 4 participants, or repeated names
    """
    others = list(others)
    names = [winner, *others]
    if not MIN_MATCH_PLAYERS <= len(names) <= MAX_MATCH_PLAYERS:
        raise ValidationError(
            f"A match needs between {MIN_MATCH_PLAYERS} and {MAX_MATCH_PLAYERS} players"
        )
    if len(set(names)) != len(names):
        raise ValidationError("Each player can only appear once in a match")

    updated = dict(table)
    updated[winner] = updated.get(winner, 0) + 1
    for name in others:
        updated.setdefault(name, 0)
    return dict(sort_table(updated))
