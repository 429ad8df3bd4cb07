"""
Request and response bodies for the HTTP API.

Field names follow the JSON the web client sends (camelCase). Request fields are
typed loosely; the registry and match workflow validate them.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field


# Request models
class CreateGroupRequest(BaseModel):
    groupCode: Optional[Any] = None
    players: Optional[Any] = None


class RecordMatchRequest(BaseModel):
    players: Optional[Any] = None
    groupCode: Optional[Any] = None


class VerifyCodeRequest(BaseModel):
    code: Optional[Any] = None


# Response models
class Ranking(BaseModel):
    name: str = Field(..., description="Player name")
    score: int = Field(..., ge=0, description="Matches won")


class RankingsResponse(BaseModel):
    rankings: List[Ranking]


class PlayersResponse(BaseModel):
    players: List[str]


class MatchOut(BaseModel):
    playedAt: str
    groupCode: str
    winner: str
    losers: List[str]
    playerCount: int


class MatchesResponse(BaseModel):
    matches: List[MatchOut]


class CreateGroupResponse(BaseModel):
    success: bool = True
    groupCode: str
    message: str = "Group created successfully"


class SuccessResponse(BaseModel):
    success: bool = True
