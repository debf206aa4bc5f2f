"""
Tests for host-side game recording: validation, duplicate window, voiding,
court completion, player availability and standings.
"""

from datetime import datetime, timedelta, timezone

import pytest

from courtside import recording
from courtside.rotation import ToggleLock, reduce
from courtside.rotation.overrides import CourtState, empty_courts
from courtside.rotation.store import Session

T0 = datetime(2026, 3, 3, 18, 0, tzinfo=timezone.utc)
ROSTER = ["Ann", "Bob", "Cat", "Dan", "Eve", "Fay"]


def _session(courts: int = 2) -> Session:
    return Session(id="s1", name="Tuesday", players=list(ROSTER), started_at=T0, courts=empty_courts(courts))


def _seat_court(s: Session, court: int, a, b) -> None:
    courts = list(s.courts)
    courts[court] = CourtState(team_a=tuple(a), team_b=tuple(b))
    s.courts = tuple(courts)


class TestValidateGame:
    def test_legal_game(self):
        assert recording.validate_game(["Ann", "Bob"], ["Cat", "Dan"], 11, 7) is None
        assert recording.validate_game(["Ann", "Bob"], ["Cat", "Dan"], 13, 15) is None

    @pytest.mark.parametrize("team_a,team_b,score_a,score_b", [
        (["Ann"], ["Cat", "Dan"], 11, 5),
        (["Ann", "Ann"], ["Cat", "Dan"], 11, 5),
        (["Ann", "Bob"], ["Bob", "Dan"], 11, 5),
        (["Ann", "Bob"], ["Cat", "Dan"], 11, 11),
        (["Ann", "Bob"], ["Cat", "Dan"], 9, 5),
        (["Ann", "Bob"], ["Cat", "Dan"], 11, 10),
        (["Ann", "Bob"], ["Cat", "Dan"], -1, 11),
    ])
    def test_rejected(self, team_a, team_b, score_a, score_b):
        assert recording.validate_game(team_a, team_b, score_a, score_b) is not None

    def test_unknown_player(self):
        err = recording.validate_game(["Ann", "Zed"], ["Cat", "Dan"], 11, 4, attendees=ROSTER)
        assert "Zed" in err


class TestRecordGame:
    def test_records(self):
        s = _session()
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        assert out.ok
        assert out.game.team_a == ("Ann", "Bob")
        assert s.games == [out.game]

    def test_invalid_leaves_session_alone(self):
        s = _session()
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 10, now=T0)
        assert out.status == recording.INVALID
        assert s.games == []

    def test_duplicate_within_window(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        out = recording.record_game(s, ["Dan", "Cat"], ["Bob", "Ann"], 6, 11, now=T0 + timedelta(minutes=3))
        assert out.status == recording.DUPLICATE
        assert len(s.games) == 1

    def test_force_records_duplicate(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, force=True, now=T0 + timedelta(minutes=1))
        assert out.ok
        assert len(s.games) == 2

    def test_same_teams_later_is_not_duplicate(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0 + timedelta(hours=1))
        assert out.ok

    def test_different_score_is_not_duplicate(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 8, now=T0 + timedelta(minutes=1))
        assert out.ok

    def test_ended_session(self):
        s = _session()
        s.ended_at = T0
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        assert out.status == recording.INVALID


class TestVoidLastGame:
    def test_voids_most_recent(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        second = recording.record_game(s, ["Eve", "Fay"], ["Cat", "Dan"], 11, 3, now=T0 + timedelta(minutes=20)).game
        voided = recording.void_last_game(s, now=T0 + timedelta(minutes=21))
        assert voided.id == second.id
        assert voided.voided
        assert [g.id for g in s.live_games] == [s.games[0].id]

    def test_nothing_to_void(self):
        assert recording.void_last_game(_session()) is None

    def test_voided_game_does_not_block_rerecord(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0)
        recording.void_last_game(s, now=T0)
        out = recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 6, now=T0 + timedelta(minutes=1))
        assert out.ok


class TestCourtGame:
    def test_needs_full_court(self):
        s = _session()
        out = recording.record_court_game(s, 0, 11, 4, now=T0)
        assert out.status == recording.INVALID

    def test_unknown_court(self):
        out = recording.record_court_game(_session(), 5, 11, 4, now=T0)
        assert out.status == recording.INVALID

    def test_records_and_frees_court(self):
        s = _session()
        _seat_court(s, 0, ["Ann", "Bob"], ["Cat", "Dan"])
        s.courts = reduce(s.courts, ToggleLock(0)).courts
        out = recording.record_court_game(s, 0, 9, 11, now=T0)
        assert out.ok
        assert out.game.team_b == ("Cat", "Dan")
        assert s.courts[0] == CourtState()

    def test_failed_record_keeps_court(self):
        s = _session()
        _seat_court(s, 0, ["Ann", "Bob"], ["Cat", "Dan"])
        before = s.courts
        recording.record_court_game(s, 0, 11, 10, now=T0)
        assert s.courts == before


class TestAvailability:
    def test_mark_out_clears_open_court(self):
        s = _session()
        _seat_court(s, 1, ["Ann", "Bob"], ["Cat", "Dan"])
        assert recording.mark_out(s, "Bob") is False
        assert "Bob" not in s.active_players
        assert s.courts[1].team_a == ("Ann", None)

    def test_mark_out_on_locked_court_finishes_game(self):
        s = _session()
        _seat_court(s, 0, ["Ann", "Bob"], ["Cat", "Dan"])
        s.courts = reduce(s.courts, ToggleLock(0)).courts
        assert recording.mark_out(s, "Cat") is True
        assert s.courts[0].is_full
        assert "Cat" in s.inactive

    def test_make_active(self):
        s = _session()
        recording.mark_out(s, "Eve")
        recording.make_active(s, "Eve")
        assert "Eve" in s.active_players

    def test_unknown_player(self):
        with pytest.raises(ValueError):
            recording.mark_out(_session(), "Zed")

    def test_set_court_count(self):
        s = _session()
        _seat_court(s, 0, ["Ann", "Bob"], ["Cat", "Dan"])
        recording.set_court_count(s, 3)
        assert s.courts == empty_courts(3)
        with pytest.raises(ValueError):
            recording.set_court_count(s, 0)


class TestStandings:
    def test_orders_by_wins_then_diff(self):
        s = _session()
        recording.record_game(s, ["Ann", "Bob"], ["Cat", "Dan"], 11, 2, now=T0)
        recording.record_game(s, ["Ann", "Cat"], ["Bob", "Dan"], 11, 9, now=T0 + timedelta(minutes=20))
        rows = recording.standings(s.players, s.live_games)
        assert [r["player"] for r in rows[:2]] == ["Ann", "Bob"]
        ann = rows[0]
        assert ann["games"] == 2 and ann["wins"] == 2
        assert ann["point_diff"] == 11
        assert ann["win_pct"] == 100.0
        dan = next(r for r in rows if r["player"] == "Dan")
        assert dan["wins"] == 0 and dan["win_pct"] == 0.0
        eve = next(r for r in rows if r["player"] == "Eve")
        assert eve["games"] == 0
