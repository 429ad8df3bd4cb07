"""
Data models for the group leaderboard.
"""

from dataclasses import dataclass, field


@dataclass
class PlayerScore:
    name: str
    score: int

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score}


@dataclass
class Group:
    code: str
    players: list[str] = field(default_factory=list)


@dataclass
class MatchRecord:
    played_at: str
    group_code: str
    winner: str
    losers: list[str]

    @property
    def player_count(self) -> int:
        return len(self.losers) + 1

    def to_row(self) -> list:
        """Audit row: timestamp, group, winner, losers..., total players."""
        return [self.played_at, self.group_code, self.winner, *self.losers, self.player_count]

    def to_dict(self) -> dict:
        return {
            "playedAt": self.played_at,
            "groupCode": self.group_code,
            "winner": self.winner,
            "losers": list(self.losers),
            "playerCount": self.player_count,
        }
