from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Player = str
Team = Tuple[Player, ...]

# sorts before any real timestamp
NEVER = float("-inf")


@dataclass(frozen=True)
class GameRecord:
    id: str
    team_a: Team
    team_b: Team
    played_at: datetime

    @property
    def players(self) -> Team:
        return tuple(self.team_a) + tuple(self.team_b)


@dataclass(frozen=True)
class PairCount:
    player_a: Player
    player_b: Player
    games_together: int


@dataclass(frozen=True)
class CourtAssignment:
    court_index: int
    team_a: Team
    team_b: Team

    @property
    def players(self) -> Team:
        return tuple(self.team_a) + tuple(self.team_b)


@dataclass(frozen=True)
class PlayerStats:
    player: Player
    games_played: int
    last_played_at: float


PairKey = Tuple[Player, Player]


def pair_key(p: Player, q: Player) -> PairKey:
    a, b = sorted([p, q])
    return (a, b)


# ---------- pair ledger ----------
class PairLedger:
    """How many times each unordered pair of players has been teammates."""

    def __init__(self, counts: Optional[Dict[PairKey, int]] = None):
        self._counts: Dict[PairKey, int] = dict(counts or {})

    @classmethod
    def from_games(cls, games: Iterable[GameRecord]) -> "PairLedger":
        ledger = cls()
        for g in games:
            for team in (g.team_a, g.team_b):
                if len(team) == 2:
                    ledger._bump(team[0], team[1])
        return ledger

    @classmethod
    def from_entries(cls, entries: Iterable[PairCount]) -> "PairLedger":
        ledger = cls()
        for e in entries:
            ledger._counts[pair_key(e.player_a, e.player_b)] = int(e.games_together)
        return ledger

    def _bump(self, p: Player, q: Player) -> None:
        k = pair_key(p, q)
        self._counts[k] = self._counts.get(k, 0) + 1

    def count_for(self, p: Player, q: Player) -> int:
        return self._counts.get(pair_key(p, q), 0)

    def entries(self) -> List[PairCount]:
        """Known pairs, fewest games together first."""
        out = []
        for (a, b), n in self._counts.items():
            out.append(PairCount(player_a=a, player_b=b, games_together=n))
        return sorted(out, key=lambda e: (e.games_together, e.player_a.lower(), e.player_b.lower()))

    def to_dict(self) -> Dict[PairKey, int]:
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)


def build_pair_counts(games: Iterable[GameRecord]) -> PairLedger:
    return PairLedger.from_games(games)


# ---------- fairness ----------
def player_stats(player_ids: Sequence[Player], games: Iterable[GameRecord]) -> List[PlayerStats]:
    # a repeated id counts once, at its first position
    player_ids = list(dict.fromkeys(player_ids))
    played: Dict[Player, int] = {p: 0 for p in player_ids}
    last: Dict[Player, float] = {p: NEVER for p in player_ids}
    for g in games:
        ts = g.played_at.timestamp()
        for p in g.players:
            if p not in played:
                continue
            played[p] += 1
            if ts > last[p]:
                last[p] = ts
    return [PlayerStats(player=p, games_played=played[p], last_played_at=last[p]) for p in player_ids]


def rank_players(player_ids: Sequence[Player], games: Iterable[GameRecord]) -> List[Player]:
    """Most owed first: fewest games, then least recently played.

    Python's sort is stable, so remaining ties keep the input order.
    """
    stats = player_stats(player_ids, games)
    stats.sort(key=lambda s: (s.games_played, s.last_played_at))
    return [s.player for s in stats]


# ---------- team formation ----------
def candidate_splits(four: Sequence[Player]) -> List[Tuple[Team, Team]]:
    a, b, c, d = four
    return [((a, b), (c, d)), ((a, c), (b, d)), ((a, d), (b, c))]


def split_penalty(team_a: Team, team_b: Team, pair_counts: PairLedger) -> int:
    pen = 0
    for team in (team_a, team_b):
        if len(team) == 2:
            pen += pair_counts.count_for(team[0], team[1])
    return pen


def best_split(four: Sequence[Player], pair_counts: PairLedger) -> Tuple[Team, Team]:
    if len(four) != 4:
        raise ValueError("best_split needs exactly 4 players")
    best = None
    best_pen = None
    for t1, t2 in candidate_splits(four):
        pen = split_penalty(t1, t2, pair_counts)
        # strict less-than: the first enumerated split wins ties
        if best_pen is None or pen < best_pen:
            best_pen = pen
            best = (t1, t2)
    return best  # type: ignore


# ---------- orchestration ----------
def suggest(
    games: Sequence[GameRecord],
    active_player_ids: Sequence[Player],
    court_count: int,
    pair_counts: Optional[PairLedger] = None,
) -> List[CourtAssignment]:
    if court_count < 1:
        raise ValueError("court_count must be >= 1")
    if pair_counts is None:
        pair_counts = build_pair_counts(games)
    ranked = rank_players(active_player_ids, games)
    selected = ranked[: court_count * 4]
    full_courts = len(selected) // 4
    out: List[CourtAssignment] = []
    for i in range(full_courts):
        four = selected[i * 4 : i * 4 + 4]
        team_a, team_b = best_split(four, pair_counts)
        out.append(CourtAssignment(court_index=i, team_a=team_a, team_b=team_b))
    logger.debug(
        "suggest: %d active, %d courts requested, %d filled",
        len(active_player_ids), court_count, len(out),
    )
    return out


def reselect(
    games: Sequence[GameRecord],
    active_player_ids: Sequence[Player],
    court_count: int,
    pair_counts: Optional[PairLedger] = None,
) -> List[CourtAssignment]:
    return suggest(games, active_player_ids, court_count, pair_counts)


def reshuffle(current: Sequence[CourtAssignment], pair_counts: PairLedger) -> List[CourtAssignment]:
    out: List[CourtAssignment] = []
    for court in current:
        four = court.players
        if len(four) != 4:
            out.append(court)
            continue
        team_a, team_b = best_split(four, pair_counts)
        out.append(CourtAssignment(court_index=court.court_index, team_a=team_a, team_b=team_b))
    return out


def suggest_for_courts(
    games: Sequence[GameRecord],
    active_player_ids: Sequence[Player],
    court_indices: Sequence[int],
    pair_counts: Optional[PairLedger] = None,
) -> List[CourtAssignment]:
    """Suggest for a specific set of courts, relabelled in the order given."""
    if not court_indices:
        return []
    suggested = suggest(games, active_player_ids, len(court_indices), pair_counts)
    return [
        CourtAssignment(court_index=court_indices[i], team_a=a.team_a, team_b=a.team_b)
        for i, a in enumerate(suggested)
    ]


# ---------- pairing feedback ----------
def matchup_key(team_a: Team, team_b: Team) -> Tuple[PairKey, PairKey]:
    ka = pair_key(*team_a)
    kb = pair_key(*team_b)
    return (ka, kb) if ka < kb else (kb, ka)


def matchup_count(team_a: Team, team_b: Team, games: Iterable[GameRecord]) -> int:
    """Times this exact team-vs-team matchup has been played."""
    if len(team_a) != 2 or len(team_b) != 2:
        return 0
    target = matchup_key(team_a, team_b)
    n = 0
    for g in games:
        if len(g.team_a) != 2 or len(g.team_b) != 2:
            continue
        if matchup_key(g.team_a, g.team_b) == target:
            n += 1
    return n


def severity(count: int) -> str:
    if count == 0:
        return "fresh"
    if count == 1:
        return "normal"
    return "repeat"
