from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, validator


class CreateSessionIn(BaseModel):
    name: str
    players: List[str]
    courts: int = 1


    @validator('players')
    def distinct_players(cls, v: List[str]) -> List[str]:
        names = [p.strip() for p in v]
        if any(not p for p in names):
            raise ValueError('player names cannot be blank')
        if len(set(names)) != len(names):
            raise ValueError('player names must be unique')
        return names


    @validator('courts')
    def ge_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError('courts must be >= 1')
        return v


class SessionOut(BaseModel):
    id: str
    name: str
    players: List[str]
    inactive: List[str]
    courts: int
    games: int
    ended: bool


class CourtOut(BaseModel):
    court: int
    teamA: List[Optional[str]]
    teamB: List[Optional[str]]
    locked: bool
    full: bool
    penalty: Optional[int] = None
    matchups: Optional[int] = None
    severity: Optional[str] = None


class CourtsOut(BaseModel):
    courts: List[CourtOut]
    waiting: List[str]
    changed: bool = False
    skipped: List[int] = []
    needs_confirmation: bool = False


class CourtCountIn(BaseModel):
    court_count: int


    @validator('court_count')
    def ge_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError('court_count must be >= 1')
        return v


class ApplyIn(BaseModel):
    confirm: bool = False


class SlotIn(BaseModel):
    player: str


class ScoreIn(BaseModel):
    score_a: int
    score_b: int
    force: bool = False


class GameIn(ScoreIn):
    teamA: List[str]
    teamB: List[str]


class GameOut(BaseModel):
    id: str
    teamA: List[str]
    teamB: List[str]
    scoreA: int
    scoreB: int
    playedAt: str
    voided: bool


class PairOut(BaseModel):
    player_a: str
    player_b: str
    games_together: int


class StandingRow(BaseModel):
    player: str
    games: int
    wins: int
    win_pct: float
    points_for: int
    points_against: int
    point_diff: int
