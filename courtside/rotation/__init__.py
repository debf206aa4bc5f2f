# re-exports for convenience
from .engine import (
    CourtAssignment,
    GameRecord,
    PairCount,
    PairLedger,
    Player,
    best_split,
    build_pair_counts,
    matchup_count,
    pair_key,
    rank_players,
    reselect,
    reshuffle,
    severity,
    split_penalty,
    suggest,
    suggest_for_courts,
)
from .overrides import (
    ApplyAssignments,
    Assign,
    Clear,
    CourtState,
    Reduction,
    Reset,
    ToggleLock,
    empty_courts,
    reduce,
)
from .store import PlayedGame, Session, Store

__all__ = [
    "CourtAssignment", "GameRecord", "PairCount", "PairLedger", "Player",
    "best_split", "build_pair_counts", "matchup_count", "pair_key", "rank_players",
    "reselect", "reshuffle", "severity", "split_penalty", "suggest", "suggest_for_courts",
    "ApplyAssignments", "Assign", "Clear", "CourtState", "Reduction", "Reset", "ToggleLock",
    "empty_courts", "reduce",
    "PlayedGame", "Session", "Store",
]
