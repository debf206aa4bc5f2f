"""Operator-facing court state.

Courts are held as an immutable tuple of ``CourtState``; every edit goes
through ``reduce(courts, action)`` which returns a ``Reduction`` describing
the new state and whether anything actually changed. Nothing here raises:
edits that cannot apply (locked court, bad index) come back with
``changed=False`` so the caller can tell the operator.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from .engine import (
    CourtAssignment,
    GameRecord,
    PairLedger,
    Player,
    reshuffle,
    suggest_for_courts,
)

logger = logging.getLogger(__name__)

Slot = Optional[Player]
TEAMS = ("A", "B")


@dataclass(frozen=True)
class CourtState:
    team_a: Tuple[Slot, Slot] = (None, None)
    team_b: Tuple[Slot, Slot] = (None, None)
    locked: bool = False

    @property
    def players(self) -> List[Player]:
        return [p for p in self.team_a + self.team_b if p]

    @property
    def is_full(self) -> bool:
        return len(self.players) == 4

    @property
    def is_empty(self) -> bool:
        return not self.players

    def team(self, team: str) -> Tuple[Slot, Slot]:
        return self.team_a if team == "A" else self.team_b

    def with_slot(self, team: str, slot: int, player: Slot) -> "CourtState":
        members = list(self.team(team))
        members[slot] = player
        if team == "A":
            return replace(self, team_a=(members[0], members[1]))
        return replace(self, team_b=(members[0], members[1]))


Courts = Tuple[CourtState, ...]


# ---------- actions ----------
@dataclass(frozen=True)
class Assign:
    court: int
    team: str
    slot: int
    player: Player


@dataclass(frozen=True)
class Clear:
    court: int
    team: str
    slot: int


@dataclass(frozen=True)
class ToggleLock:
    court: int


@dataclass(frozen=True)
class ApplyAssignments:
    assignments: Tuple[CourtAssignment, ...]
    confirmed: bool = False
    # False writes only the proposed courts, e.g. a reshuffle of seated players
    replace_open: bool = True


@dataclass(frozen=True)
class Reset:
    court_count: int


Action = Union[Assign, Clear, ToggleLock, ApplyAssignments, Reset]


@dataclass(frozen=True)
class Reduction:
    courts: Courts
    changed: bool
    # courts an action wanted to write but left alone because of a lock
    skipped: Tuple[int, ...] = field(default_factory=tuple)
    needs_confirmation: bool = False


# ---------- helpers ----------
def empty_courts(n: int) -> Courts:
    return tuple(CourtState() for _ in range(max(0, n)))


def seated_players(courts: Iterable[CourtState]) -> Set[Player]:
    return {p for c in courts for p in c.players}


def locked_players(courts: Iterable[CourtState]) -> Set[Player]:
    return {p for c in courts if c.locked for p in c.players}


def open_court_indices(courts: Sequence[CourtState]) -> List[int]:
    return [i for i, c in enumerate(courts) if not c.locked]


def find_seat(courts: Sequence[CourtState], player: Player) -> Optional[Tuple[int, str, int]]:
    for i, c in enumerate(courts):
        for team in TEAMS:
            for s, p in enumerate(c.team(team)):
                if p == player:
                    return i, team, s
    return None


def to_assignments(courts: Sequence[CourtState]) -> List[CourtAssignment]:
    """Full open courts as assignments, e.g. to feed ``reshuffle``."""
    out = []
    for i, c in enumerate(courts):
        if c.locked or not c.is_full:
            continue
        out.append(CourtAssignment(court_index=i, team_a=tuple(c.team_a), team_b=tuple(c.team_b)))
    return out


def suggest_open_courts(
    courts: Sequence[CourtState],
    games: Sequence[GameRecord],
    active_player_ids: Sequence[Player],
    pair_counts: Optional[PairLedger] = None,
) -> List[CourtAssignment]:
    """Fill every open court from the active pool, leaving locked courts and their players alone."""
    held = locked_players(courts)
    pool = [p for p in active_player_ids if p not in held]
    return suggest_for_courts(games, pool, open_court_indices(courts), pair_counts)


def reshuffle_open_courts(courts: Sequence[CourtState], pair_counts: PairLedger) -> List[CourtAssignment]:
    return reshuffle(to_assignments(courts), pair_counts)


def _in_range(courts: Sequence[CourtState], i: int) -> bool:
    return 0 <= i < len(courts)


def _valid_slot(team: str, slot: int) -> bool:
    return team in TEAMS and slot in (0, 1)


def _seat(courts: List[CourtState], court: int, team: str, slot: int, player: Player) -> None:
    """Put ``player`` in one slot, clearing wherever they sat before."""
    prior = find_seat(courts, player)
    if prior is not None:
        pi, pt, ps = prior
        courts[pi] = courts[pi].with_slot(pt, ps, None)
    courts[court] = courts[court].with_slot(team, slot, player)


# ---------- reducer ----------
def reduce(courts: Sequence[CourtState], action: Action) -> Reduction:
    before: Courts = tuple(courts)
    if isinstance(action, Reset):
        after = empty_courts(action.court_count)
        return Reduction(courts=after, changed=after != before)
    if isinstance(action, ApplyAssignments):
        return _apply(before, action)
    if not _in_range(before, action.court):
        logger.warning("ignoring %s: no court %d", type(action).__name__, action.court)
        return Reduction(courts=before, changed=False)
    if isinstance(action, ToggleLock):
        work = list(before)
        work[action.court] = replace(work[action.court], locked=not work[action.court].locked)
        return Reduction(courts=tuple(work), changed=True)
    if not _valid_slot(action.team, action.slot):
        return Reduction(courts=before, changed=False)
    if before[action.court].locked:
        return Reduction(courts=before, changed=False, skipped=(action.court,))

    work = list(before)
    if isinstance(action, Clear):
        work[action.court] = work[action.court].with_slot(action.team, action.slot, None)
    else:
        prior = find_seat(before, action.player)
        if prior is not None and before[prior[0]].locked:
            # eviction would break a locked court
            return Reduction(courts=before, changed=False, skipped=(prior[0],))
        _seat(work, action.court, action.team, action.slot, action.player)
    after = tuple(work)
    return Reduction(courts=after, changed=after != before)


def _apply(before: Courts, action: ApplyAssignments) -> Reduction:
    held = locked_players(before)
    skipped: List[int] = []
    targets: List[CourtAssignment] = []
    for a in action.assignments:
        if not _in_range(before, a.court_index) or len(a.team_a) != 2 or len(a.team_b) != 2:
            logger.warning("ignoring malformed assignment for court %d", a.court_index)
            continue
        if before[a.court_index].locked or held.intersection(a.players):
            skipped.append(a.court_index)
            continue
        targets.append(a)

    if not action.confirmed and _would_displace(before, targets, action.replace_open):
        return Reduction(courts=before, changed=False, skipped=tuple(skipped), needs_confirmation=True)

    work = list(before)
    if action.replace_open:
        for i in open_court_indices(before):
            work[i] = CourtState()
    for a in targets:
        work[a.court_index] = CourtState()
    for a in targets:
        for team, members in (("A", a.team_a), ("B", a.team_b)):
            for slot, p in enumerate(members):
                _seat(work, a.court_index, team, slot, p)
    after = tuple(work)
    if skipped:
        logger.info("locked courts left untouched: %s", skipped)
    return Reduction(courts=after, changed=after != before, skipped=tuple(skipped))


def _would_displace(before: Courts, targets: Sequence[CourtAssignment], replace_open: bool) -> bool:
    """Whether applying would move or remove anyone already on an open court."""
    if replace_open:
        return any(not c.is_empty for c in before if not c.locked)
    target_idx = {a.court_index for a in targets}
    if any(not before[i].is_empty for i in target_idx):
        return True
    proposed = {p for a in targets for p in a.players}
    return any(
        proposed.intersection(c.players)
        for i, c in enumerate(before)
        if not c.locked and i not in target_idx
    )
