import re
from typing import Any

from .errors import ValidationError

GROUP_CODE_RE = re.compile(r"[A-Za-z0-9]{5}")
GROUP_SHEET_PREFIX = "Group_"

MIN_MATCH_PLAYERS = 2
MAX_MATCH_PLAYERS = 4
MIN_GROUP_PLAYERS = 2


def valid_group_code(code: Any) -> bool:
    """True if code is exactly 5 ASCII letters or digits."""
    return isinstance(code, str) and GROUP_CODE_RE.fullmatch(code) is not None


def normalize_group_code(code: Any) -> str:
    """
    Validate a group code and return its canonical uppercase form.
    Raises ValidationError for anything that is not 5 letters or digits.
    """
    if code is None or (isinstance(code, str) and not code.strip()):
        raise ValidationError("Group code is required")
    if not valid_group_code(code):
        raise ValidationError("Group code must be exactly 5 characters (letters or numbers)")
    return code.upper()


def sheet_for(code: str) -> str:
    return f"{GROUP_SHEET_PREFIX}{normalize_group_code(code)}"


def clean_names(names: Any) -> list[str]:
    """
    Trim every name and check they are non-empty strings, unique after trimming.
    Order is preserved. Raises ValidationError on the first problem found.
    """
    if not isinstance(names, (list, tuple)):
        raise ValidationError("Players must be a list of names")
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in names:
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("Player names cannot be empty")
        name = raw.strip()
        if name in seen:
            raise ValidationError(f"Duplicate player name: {name}")
        seen.add(name)
        cleaned.append(name)
    return cleaned


def match_players(players: Any) -> list[str]:
    """
    Validate a submitted match line-up (winner first).

    Examples:
        match_players([" Alice", "Bob "]) -> ["Alice", "Bob"]
        match_players(["Alice"])          -> ValidationError (too few)
        match_players(["Alice", "Alice"]) -> ValidationError (duplicate)
    """
    if not isinstance(players, (list, tuple)):
        raise ValidationError("Players must be a list of names")
    if not MIN_MATCH_PLAYERS <= len(players) <= MAX_MATCH_PLAYERS:
        raise ValidationError(
            f"A match needs between {MIN_MATCH_PLAYERS} and {MAX_MATCH_PLAYERS} players"
        )
    return clean_names(players)


def group_players(players: Any) -> list[str]:
    """Validate the initial roster of a new group."""
    if not isinstance(players, (list, tuple)) or len(players) < MIN_GROUP_PLAYERS:
        raise ValidationError(f"A group needs at least {MIN_GROUP_PLAYERS} players")
    return clean_names(players)
