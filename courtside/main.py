from __future__ import annotations
import logging
import uuid
from itertools import combinations
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import config, recording
from .rotation import (
    ApplyAssignments,
    Assign,
    Clear,
    PairLedger,
    Reduction,
    Session,
    Store,
    ToggleLock,
    build_pair_counts,
    empty_courts,
    matchup_count,
    reduce,
    severity,
    split_penalty,
)
from .rotation.overrides import reshuffle_open_courts, seated_players, suggest_open_courts
from .schemas import (
    ApplyIn,
    CourtCountIn,
    CourtsOut,
    CreateSessionIn,
    GameIn,
    GameOut,
    PairOut,
    ScoreIn,
    SessionOut,
    SlotIn,
    StandingRow,
)

config.configure_logging()
logger = logging.getLogger(__name__)

store = Store(config.DATA_DIR)

app = FastAPI(title="Courtside API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def root():
    return {"ok": True, "service": "courtside", "endpoints": [
        "/sessions (GET, POST)",
        "/sessions/{sid} (GET)",
        "/sessions/{sid}/end (POST)",
        "/sessions/{sid}/players/{player}/out (POST)",
        "/sessions/{sid}/players/{player}/active (POST)",
        "/sessions/{sid}/courts (GET)",
        "/sessions/{sid}/courts/count (POST)",
        "/sessions/{sid}/courts/suggest (POST)",
        "/sessions/{sid}/courts/reselect (POST)",
        "/sessions/{sid}/courts/reshuffle (POST)",
        "/sessions/{sid}/courts/{court}/slots/{team}/{slot} (PUT, DELETE)",
        "/sessions/{sid}/courts/{court}/lock (POST)",
        "/sessions/{sid}/courts/{court}/record (POST)",
        "/sessions/{sid}/games (GET, POST)",
        "/sessions/{sid}/games/void-last (POST)",
        "/sessions/{sid}/pairs (GET)",
        "/sessions/{sid}/standings (GET)",
    ]}

# ---- sessions ----
@app.get("/sessions")
def list_sessions():
    return store.list()

@app.post("/sessions", response_model=SessionOut)
def create_session(inp: CreateSessionIn):
    if inp.courts > config.MAX_COURTS:
        raise HTTPException(status_code=400, detail=f"At most {config.MAX_COURTS} courts.")
    s = Session(
        id=uuid.uuid4().hex[:10],
        name=inp.name,
        players=inp.players,
        started_at=recording.utcnow(),
        courts=empty_courts(inp.courts),
    )
    store.save(s)
    logger.info("created session %s (%d players, %d courts)", s.id, len(s.players), inp.courts)
    return _session_payload(s)

@app.get("/sessions/{sid}", response_model=SessionOut)
def get_session(sid: str):
    return _session_payload(_load(sid))

@app.post("/sessions/{sid}/end", response_model=SessionOut)
def end_session(sid: str):
    s = _load_live(sid)
    s.ended_at = recording.utcnow()
    store.save(s)
    return _session_payload(s)

@app.post("/sessions/{sid}/players/{player}/out")
def mark_player_out(sid: str, player: str):
    s = _load_live(sid)
    try:
        on_locked = recording.mark_out(s, player)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    store.save(s)
    return {"ok": True, "player": player, "after_game": on_locked}

@app.post("/sessions/{sid}/players/{player}/active")
def make_player_active(sid: str, player: str):
    s = _load_live(sid)
    try:
        recording.make_active(s, player)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    store.save(s)
    return {"ok": True, "player": player}

# ---- courts ----
@app.get("/sessions/{sid}/courts", response_model=CourtsOut)
def get_courts(sid: str):
    return _courts_payload(_load(sid))

@app.post("/sessions/{sid}/courts/count", response_model=CourtsOut)
def set_court_count(sid: str, body: CourtCountIn):
    s = _load_live(sid)
    try:
        recording.set_court_count(s, body.court_count)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    store.save(s)
    return _courts_payload(s)

@app.post("/sessions/{sid}/courts/suggest", response_model=CourtsOut)
@app.post("/sessions/{sid}/courts/reselect", response_model=CourtsOut)
def suggest_courts(sid: str, body: Optional[ApplyIn] = None):
    s = _load_live(sid)
    games = s.live_games
    ledger = build_pair_counts(games)
    if all(c.locked for c in s.courts):
        raise HTTPException(status_code=409, detail="No open courts to fill.")
    proposals = suggest_open_courts(s.courts, games, s.active_players, ledger)
    if not proposals:
        raise HTTPException(status_code=409, detail="Not enough available players to fill a court.")
    red = reduce(s.courts, ApplyAssignments(tuple(proposals), confirmed=bool(body and body.confirm)))
    return _commit(s, red)

@app.post("/sessions/{sid}/courts/reshuffle", response_model=CourtsOut)
def reshuffle_courts(sid: str):
    s = _load_live(sid)
    ledger = build_pair_counts(s.live_games)
    proposals = reshuffle_open_courts(s.courts, ledger)
    # same four players per court, so nothing is lost
    red = reduce(s.courts, ApplyAssignments(tuple(proposals), confirmed=True, replace_open=False))
    return _commit(s, red)

@app.put("/sessions/{sid}/courts/{court}/slots/{team}/{slot}", response_model=CourtsOut)
def assign_slot(sid: str, court: int, team: str, slot: int, body: SlotIn):
    s = _load_live(sid)
    _check_slot(s, court, team, slot)
    if body.player not in s.players:
        raise HTTPException(status_code=400, detail=f"{body.player} is not in this session.")
    return _commit(s, reduce(s.courts, Assign(court, team.upper(), slot, body.player)))

@app.delete("/sessions/{sid}/courts/{court}/slots/{team}/{slot}", response_model=CourtsOut)
def clear_slot(sid: str, court: int, team: str, slot: int):
    s = _load_live(sid)
    _check_slot(s, court, team, slot)
    return _commit(s, reduce(s.courts, Clear(court, team.upper(), slot)))

@app.post("/sessions/{sid}/courts/{court}/lock", response_model=CourtsOut)
def toggle_lock(sid: str, court: int):
    s = _load_live(sid)
    _check_court(s, court)
    red = reduce(s.courts, ToggleLock(court))
    logger.info("session %s court %d %s", sid, court, "locked" if red.courts[court].locked else "unlocked")
    return _commit(s, red)

@app.post("/sessions/{sid}/courts/{court}/record")
def record_court(sid: str, court: int, body: ScoreIn):
    s = _load_live(sid)
    _check_court(s, court)
    outcome = recording.record_court_game(s, court, body.score_a, body.score_b, force=body.force)
    return _record_response(s, outcome)

# ---- games ----
@app.get("/sessions/{sid}/games", response_model=List[GameOut])
def list_games(sid: str):
    s = _load(sid)
    return [_game_payload(g) for g in sorted(s.games, key=lambda g: g.played_at)]

@app.post("/sessions/{sid}/games")
def post_game(sid: str, body: GameIn):
    s = _load_live(sid)
    outcome = recording.record_game(s, body.teamA, body.teamB, body.score_a, body.score_b, force=body.force)
    return _record_response(s, outcome)

@app.post("/sessions/{sid}/games/void-last", response_model=GameOut)
def void_last(sid: str):
    s = _load_live(sid)
    voided = recording.void_last_game(s)
    if voided is None:
        raise HTTPException(status_code=404, detail="No game to void.")
    store.save(s)
    return _game_payload(voided)

@app.get("/sessions/{sid}/pairs", response_model=List[PairOut])
def get_pairs(sid: str):
    s = _load(sid)
    return _pairs_payload(s.players, build_pair_counts(s.live_games))

@app.get("/sessions/{sid}/standings", response_model=List[StandingRow])
def get_standings(sid: str):
    s = _load(sid)
    return recording.standings(s.players, s.live_games)

# ---- helpers ----
def _load(sid: str) -> Session:
    try:
        return store.load(sid)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

def _load_live(sid: str) -> Session:
    s = _load(sid)
    if s.ended:
        raise HTTPException(status_code=409, detail="Session has ended.")
    return s

def _check_court(s: Session, court: int) -> None:
    if not 0 <= court < len(s.courts):
        raise HTTPException(status_code=404, detail=f"Court {court} not found")

def _check_slot(s: Session, court: int, team: str, slot: int) -> None:
    _check_court(s, court)
    if team.upper() not in ("A", "B") or slot not in (0, 1):
        raise HTTPException(status_code=404, detail="Slot not found")

def _commit(s: Session, red: Reduction) -> dict:
    if red.changed:
        s.courts = red.courts
        store.save(s)
    if red.skipped:
        logger.warning("session %s: locked courts %s were not changed", s.id, list(red.skipped))
    return _courts_payload(s, red)

def _record_response(s: Session, outcome: recording.RecordOutcome) -> dict:
    if outcome.status == recording.INVALID:
        raise HTTPException(status_code=400, detail=outcome.message)
    if outcome.status == recording.DUPLICATE:
        raise HTTPException(status_code=409, detail=outcome.message)
    store.save(s)
    return {"ok": True, "game": _game_payload(outcome.game)}

def _session_payload(s: Session) -> dict:
    return {
        "id": s.id, "name": s.name, "players": s.players, "inactive": s.inactive,
        "courts": len(s.courts), "games": len(s.live_games), "ended": s.ended,
    }

def _courts_payload(s: Session, red: Optional[Reduction] = None) -> dict:
    games = s.live_games
    ledger = build_pair_counts(games)
    rows = []
    for i, c in enumerate(s.courts):
        row = {"court": i, "teamA": list(c.team_a), "teamB": list(c.team_b), "locked": c.locked, "full": c.is_full}
        if c.is_full:
            n = matchup_count(c.team_a, c.team_b, games)
            row.update(penalty=split_penalty(c.team_a, c.team_b, ledger), matchups=n, severity=severity(n))
        rows.append(row)
    seated = seated_players(s.courts)
    out = {"courts": rows, "waiting": [p for p in s.active_players if p not in seated]}
    if red is not None:
        out.update(changed=red.changed, skipped=list(red.skipped), needs_confirmation=red.needs_confirmation)
    return out

def _game_payload(g) -> dict:
    return {
        "id": g.id, "teamA": list(g.team_a), "teamB": list(g.team_b),
        "scoreA": g.score_a, "scoreB": g.score_b,
        "playedAt": g.played_at.isoformat(), "voided": g.voided,
    }

def _pairs_payload(players: List[str], ledger: PairLedger) -> List[dict]:
    rows = [
        {"player_a": a, "player_b": b, "games_together": ledger.count_for(a, b)}
        for a, b in combinations(players, 2)
    ]
    return sorted(rows, key=lambda r: r["games_together"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("courtside.main:app", host="0.0.0.0", port=8000, reload=True)
