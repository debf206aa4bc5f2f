from __future__ import annotations
import os, json
import logging
from os import PathLike
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from .engine import GameRecord, Player
from .overrides import Courts, CourtState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayedGame(GameRecord):
    score_a: int = 0
    score_b: int = 0
    voided_at: Optional[datetime] = None

    @property
    def voided(self) -> bool:
        return self.voided_at is not None


@dataclass
class Session:
    id: str
    name: str
    players: List[Player]
    started_at: datetime
    inactive: List[Player] = field(default_factory=list)
    courts: Courts = field(default_factory=tuple)
    games: List[PlayedGame] = field(default_factory=list)
    ended_at: Optional[datetime] = None

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if p not in self.inactive]

    @property
    def live_games(self) -> List[PlayedGame]:
        """Non-voided games, oldest first."""
        return sorted((g for g in self.games if not g.voided), key=lambda g: g.played_at)

    @property
    def ended(self) -> bool:
        return self.ended_at is not None

    def to_dict(self) -> dict:
        def game_to_dict(g: PlayedGame) -> dict:
            return {
                "id": g.id,
                "teamA": list(g.team_a),
                "teamB": list(g.team_b),
                "scoreA": g.score_a,
                "scoreB": g.score_b,
                "playedAt": g.played_at.isoformat(),
                "voidedAt": g.voided_at.isoformat() if g.voided_at else None,
            }

        def court_to_dict(c: CourtState) -> dict:
            return {"teamA": list(c.team_a), "teamB": list(c.team_b), "locked": c.locked}

        return {
            "id": self.id,
            "name": self.name,
            "players": self.players,
            "inactive": self.inactive,
            "startedAt": self.started_at.isoformat(),
            "endedAt": self.ended_at.isoformat() if self.ended_at else None,
            "courts": [court_to_dict(c) for c in self.courts],
            "games": [game_to_dict(g) for g in self.games],
        }

    @staticmethod
    def from_dict(d: dict) -> "Session":
        def pair(xs: list) -> Tuple:
            return (xs[0], xs[1])

        games = [
            PlayedGame(
                id=g["id"],
                team_a=pair(g["teamA"]),
                team_b=pair(g["teamB"]),
                played_at=datetime.fromisoformat(g["playedAt"]),
                score_a=int(g["scoreA"]),
                score_b=int(g["scoreB"]),
                voided_at=datetime.fromisoformat(g["voidedAt"]) if g.get("voidedAt") else None,
            )
            for g in d.get("games", [])
        ]
        courts = tuple(
            CourtState(team_a=pair(c["teamA"]), team_b=pair(c["teamB"]), locked=bool(c["locked"]))
            for c in d.get("courts", [])
        )
        return Session(
            id=d["id"],
            name=d["name"],
            players=list(d["players"]),
            inactive=list(d.get("inactive", [])),
            started_at=datetime.fromisoformat(d["startedAt"]),
            ended_at=datetime.fromisoformat(d["endedAt"]) if d.get("endedAt") else None,
            courts=courts,
            games=games,
        )


class Store:
    def __init__(self, root: str | PathLike[str] = "data"):
        self.root = os.fspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _file(self, sid: str) -> str:
        return os.path.join(self.root, f"{sid}.json")

    def save(self, s: Session) -> None:
        with open(self._file(s.id), "w", encoding="utf-8") as f:
            json.dump(s.to_dict(), f, indent=2, ensure_ascii=False)
        logger.debug("saved session %s", s.id)

    def load(self, sid: str) -> Session:
        path = self._file(sid)
        if not os.path.exists(path):
            raise FileNotFoundError("Session not found")
        with open(path, "r", encoding="utf-8") as f:
            return Session.from_dict(json.load(f))

    def list(self) -> List[dict]:
        out = []
        for fn in os.listdir(self.root):
            if not fn.endswith('.json'): continue
            with open(os.path.join(self.root, fn), "r", encoding="utf-8") as f:
                d = json.load(f)
                out.append({"id": d["id"], "name": d["name"], "startedAt": d["startedAt"], "ended": bool(d.get("endedAt"))})
        return sorted(out, key=lambda x: x["startedAt"], reverse=True)
