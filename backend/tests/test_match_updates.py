"""
Tests for partial match updates: field validation and lifecycle locks.
"""

from datetime import datetime

import pytest

from brackets.services.bracket_errors import InvalidMatchUpdate, MatchNotFound, TournamentLocked
from brackets.services.bracket_state import Entrant, Group, TournamentState
from brackets.services.match_updates import apply_match_update
from brackets.services.playoff_composer import compose_playoffs
from brackets.utils.match_generation import generate_group_matches


@pytest.fixture
def state():
    s = TournamentState(
        id=3,
        entrants=[Entrant(ref=r, name=r.upper(), seed=i) for i, r in enumerate(["p", "q", "r", "s"], 1)],
        groups=[Group(id="A", name="Group A", members=["p", "s"]), Group(id="B", name="Group B", members=["q", "r"])],
    )
    generate_group_matches(s)
    return s


def test_unknown_match(state):
    with pytest.raises(MatchNotFound):
        apply_match_update(state, "g_Z_9", {"score_a": 1})


def test_scores_venue_and_schedule(state):
    m = apply_match_update(
        state,
        "g_A_1",
        {"score_a": "2", "score_b": 0, "status": "PLAYED", "venue": " Court 4 ", "scheduled_at": "2024-05-01T10:30:00"},
    )
    assert (m.score_a, m.score_b, m.status) == (2, 0, "played")
    assert m.venue == "Court 4"
    assert m.scheduled_at == datetime(2024, 5, 1, 10, 30)
    assert state.find_match("g_A_1") is m


@pytest.mark.parametrize(
    "changes",
    [
        {"score_a": -1},
        {"score_b": "many"},
        {"status": "cancelled"},
        {"scheduled_at": "next tuesday"},
        {"winner": "p"},
    ],
)
def test_invalid_changes_rejected(state, changes):
    before = state.find_match("g_A_1").to_dict()
    with pytest.raises(InvalidMatchUpdate) as exc:
        apply_match_update(state, "g_A_1", changes)
    assert exc.value.status_code == 422
    assert state.find_match("g_A_1").to_dict() == before


def test_side_change_resolves_name_in_draft(state):
    m = apply_match_update(state, "g_A_1", {"side_b": "q"})
    assert (m.side_b, m.side_b_name) == ("q", "Q")

    m = apply_match_update(state, "g_A_1", {"side_b": "bye"})
    assert (m.side_b, m.side_b_name) == ("BYE", "BYE")


def test_explicit_name_wins(state):
    m = apply_match_update(state, "g_A_1", {"side_a": "q", "side_a_name": "Guest"})
    assert (m.side_a, m.side_a_name) == ("q", "Guest")


@pytest.mark.parametrize("status", ["ACTIVE", "LIVE"])
def test_started_tournament_locks_sides_only(state, status):
    state.status = status
    with pytest.raises(TournamentLocked) as exc:
        apply_match_update(state, "g_A_1", {"side_a": "q"})
    assert exc.value.status_code == 409

    m = apply_match_update(state, "g_A_1", {"score_a": 1, "status": "played"})
    assert m.is_played


def test_completed_tournament_locks_everything(state):
    state.status = "COMPLETED"
    with pytest.raises(TournamentLocked):
        apply_match_update(state, "g_A_1", {"venue": "Elsewhere"})


def test_group_edit_keeps_resolved_champion(state):
    compose_playoffs(state)
    apply_match_update(state, "po_r1_1", {"score_a": 3, "score_b": 1, "status": "played"})
    champion = state.champion_name
    assert champion

    apply_match_update(state, "g_B_1", {"score_a": 0, "score_b": 5, "status": "played"})
    # playoffs are not regenerated by group edits
    assert state.champion_name == champion
    assert len(state.playoff_round(1)) == 1
