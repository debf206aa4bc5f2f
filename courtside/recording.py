"""Game recording, voiding and standings for a session.

This is the host side of the courts workflow: it validates and stores games
and keeps the court board consistent with who is playing. Court selection
itself lives in ``courtside.rotation``.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .rotation import Clear, PlayedGame, Player, Reset, Session, pair_key, reduce
from .rotation.overrides import CourtState, find_seat

logger = logging.getLogger(__name__)

OK = "ok"
INVALID = "invalid"
DUPLICATE = "duplicate"


@dataclass(frozen=True)
class RecordOutcome:
    status: str
    message: str = ""
    game: Optional[PlayedGame] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_game(
    team_a: Sequence[Player],
    team_b: Sequence[Player],
    score_a: int,
    score_b: int,
    attendees: Optional[Sequence[Player]] = None,
) -> Optional[str]:
    """Return an error message, or None when the game is legal."""
    if len(team_a) != 2 or len(team_b) != 2:
        return "Each team must have exactly 2 players."
    if len(set(team_a)) != 2 or len(set(team_b)) != 2:
        return "A team cannot list the same player twice."
    if set(team_a) & set(team_b):
        return "A player cannot be on both teams."
    if attendees is not None:
        missing = [p for p in list(team_a) + list(team_b) if p not in attendees]
        if missing:
            return f"Not in this session: {', '.join(missing)}."
    if score_a < 0 or score_b < 0:
        return "Scores cannot be negative."
    if score_a == score_b:
        return "Scores cannot be equal."
    winner, loser = max(score_a, score_b), min(score_a, score_b)
    if winner < config.MIN_WINNING_SCORE:
        return f"Winning score must be at least {config.MIN_WINNING_SCORE} (got {winner})."
    if winner - loser < config.MIN_WINNING_MARGIN:
        return f"Winning margin must be at least {config.MIN_WINNING_MARGIN} (got {winner - loser})."
    return None


def dedupe_key(team_a: Sequence[Player], team_b: Sequence[Player], score_a: int, score_b: int) -> Tuple:
    """Same teams and score, regardless of player or side order."""
    sides = sorted([(pair_key(*team_a), score_a), (pair_key(*team_b), score_b)])
    return tuple(sides)


def find_duplicate(session: Session, key: Tuple, now: datetime) -> Optional[PlayedGame]:
    window = timedelta(minutes=config.DUPLICATE_WINDOW_MINUTES)
    for g in session.live_games:
        if abs(now - g.played_at) > window:
            continue
        if dedupe_key(g.team_a, g.team_b, g.score_a, g.score_b) == key:
            return g
    return None


def record_game(
    session: Session,
    team_a: Sequence[Player],
    team_b: Sequence[Player],
    score_a: int,
    score_b: int,
    force: bool = False,
    now: Optional[datetime] = None,
) -> RecordOutcome:
    if session.ended:
        return RecordOutcome(INVALID, "Session has ended.")
    err = validate_game(team_a, team_b, score_a, score_b, attendees=session.players)
    if err:
        return RecordOutcome(INVALID, err)
    now = now or utcnow()
    dup = find_duplicate(session, dedupe_key(team_a, team_b, score_a, score_b), now)
    if dup is not None and not force:
        logger.warning("possible duplicate of game %s in session %s", dup.id, session.id)
        return RecordOutcome(
            DUPLICATE,
            "This game looks like a duplicate (same teams and score played recently).",
            dup,
        )
    game = PlayedGame(
        id=uuid.uuid4().hex[:12],
        team_a=(team_a[0], team_a[1]),
        team_b=(team_b[0], team_b[1]),
        played_at=now,
        score_a=int(score_a),
        score_b=int(score_b),
    )
    session.games.append(game)
    logger.info("recorded game %s in session %s: %d-%d", game.id, session.id, score_a, score_b)
    return RecordOutcome(OK, game=game)


def record_court_game(
    session: Session,
    court: int,
    score_a: int,
    score_b: int,
    force: bool = False,
    now: Optional[datetime] = None,
) -> RecordOutcome:
    """Record the game on one court, then free the court for the next group."""
    if not 0 <= court < len(session.courts):
        return RecordOutcome(INVALID, f"No court {court}.")
    c = session.courts[court]
    if not c.is_full:
        return RecordOutcome(INVALID, "Court needs four players before a game can be recorded.")
    outcome = record_game(session, c.team_a, c.team_b, score_a, score_b, force=force, now=now)
    if outcome.ok:
        courts = list(session.courts)
        courts[court] = CourtState()
        session.courts = tuple(courts)
    return outcome


def void_last_game(session: Session, now: Optional[datetime] = None) -> Optional[PlayedGame]:
    live = session.live_games
    if not live:
        return None
    last = live[-1]
    voided = replace(last, voided_at=now or utcnow())
    session.games = [voided if g.id == last.id else g for g in session.games]
    logger.info("voided game %s in session %s", last.id, session.id)
    return voided


def set_court_count(session: Session, court_count: int) -> None:
    if not 1 <= court_count <= config.MAX_COURTS:
        raise ValueError(f"court count must be between 1 and {config.MAX_COURTS}")
    session.courts = reduce(session.courts, Reset(court_count)).courts


def mark_out(session: Session, player: Player) -> bool:
    """Take a player out of rotation.

    They are pulled from any open court straight away. A player on a locked
    court finishes that game first. Returns True if the player was seated on
    a locked court.
    """
    if player not in session.players:
        raise ValueError(f"{player} is not in this session")
    if player not in session.inactive:
        session.inactive.append(player)
    seat = find_seat(session.courts, player)
    if seat is None:
        return False
    court, team, slot = seat
    if session.courts[court].locked:
        return True
    session.courts = reduce(session.courts, Clear(court, team, slot)).courts
    return False


def make_active(session: Session, player: Player) -> None:
    if player not in session.players:
        raise ValueError(f"{player} is not in this session")
    if player in session.inactive:
        session.inactive.remove(player)


# ---------- standings ----------
def standings(players: Sequence[Player], games: Sequence[PlayedGame]) -> List[dict]:
    rows: Dict[Player, dict] = {
        p: {"player": p, "games": 0, "wins": 0, "points_for": 0, "points_against": 0}
        for p in players
    }
    for g in games:
        if g.voided:
            continue
        for team, pf, pa in ((g.team_a, g.score_a, g.score_b), (g.team_b, g.score_b, g.score_a)):
            for p in team:
                r = rows.get(p)
                if r is None:
                    continue
                r["games"] += 1
                r["wins"] += 1 if pf > pa else 0
                r["points_for"] += pf
                r["points_against"] += pa
    out = []
    for r in rows.values():
        r["point_diff"] = r["points_for"] - r["points_against"]
        r["win_pct"] = round(100.0 * r["wins"] / r["games"], 1) if r["games"] else 0.0
        out.append(r)
    return sorted(out, key=lambda r: (-r["wins"], -r["point_diff"], r["player"].lower()))
