"""
Tests for group-stage round robin and single-stage match generation.
"""

import random
from itertools import combinations

import pytest

from brackets.services.bracket_errors import GroupsNotGenerated, InsufficientEntrants, InvalidFormat
from brackets.services.bracket_state import (
    STAGE_PLAYOFF,
    BracketMatch,
    Entrant,
    Group,
    TournamentState,
)
from brackets.utils.match_generation import (
    generate_group_matches,
    generate_matches_for_format,
    rr_pairs,
)


def _state(group_sizes, format_name="group_stage") -> TournamentState:
    entrants = []
    groups = []
    n = 0
    for gi, size in enumerate(group_sizes):
        gid = chr(ord("A") + gi)
        members = []
        for _ in range(size):
            n += 1
            entrants.append(Entrant(ref=f"p{n}", name=f"Player {n}", seed=n))
            members.append(f"p{n}")
        groups.append(Group(id=gid, name=f"Group {gid}", members=members))
    return TournamentState(id=1, format=format_name, entrants=entrants, groups=groups)


class TestPairs:
    def test_lexicographic_index_order(self):
        assert rr_pairs(4) == [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]

    def test_counts(self):
        for k in range(0, 9):
            assert len(rr_pairs(k)) == k * (k - 1) // 2


class TestGroupMatches:
    @pytest.mark.parametrize("sizes", [[2, 2], [3, 4], [5], [4, 4, 3]])
    def test_every_pair_once_with_sequential_ids(self, sizes):
        state = _state(sizes)
        generate_group_matches(state, "Main Hall")

        for group in state.groups:
            k = len(group.members)
            ms = [m for m in state.matches if m.group_id == group.id]
            assert len(ms) == k * (k - 1) // 2
            assert [m.id for m in ms] == [f"g_{group.id}_{n}" for n in range(1, len(ms) + 1)]
            played_pairs = {frozenset((m.side_a, m.side_b)) for m in ms}
            assert played_pairs == {frozenset(p) for p in combinations(group.members, 2)}

        assert all(m.venue == "Main Hall" for m in state.matches)
        assert all(m.status == "scheduled" and m.score_a == 0 and m.score_b == 0 for m in state.matches)

    def test_names_resolved_from_entrants(self):
        state = _state([2])
        generate_group_matches(state)
        m = state.matches[0]
        assert (m.side_a, m.side_b) == ("p1", "p2")
        assert (m.side_a_name, m.side_b_name) == ("Player 1", "Player 2")

    def test_unknown_member_is_named_player(self):
        state = _state([2])
        state.groups[0].members.append("stranger")
        generate_group_matches(state)
        assert state.find_match("g_A_2").side_b_name == "Player"

    def test_replaces_playoff_matches_and_champion(self):
        state = _state([2, 2])
        state.matches = [BracketMatch(stage=STAGE_PLAYOFF, round=1, sequence=1, side_a="p1", side_b="p3")]
        state.champion_name = "Player 1"
        generate_group_matches(state)
        assert all(m.is_group for m in state.matches)
        assert state.champion_name == ""

    def test_wrong_format_rejected(self):
        with pytest.raises(InvalidFormat):
            generate_group_matches(_state([2, 2], format_name="round_robin"))

    def test_groups_required(self):
        state = _state([2, 2])
        state.groups = []
        with pytest.raises(GroupsNotGenerated):
            generate_group_matches(state)


class TestFormatDispatch:
    def test_round_robin_over_all_entrants(self):
        state = _state([4], format_name="round_robin")
        generate_matches_for_format(state)
        assert [m.id for m in state.matches] == [f"rr_{n}" for n in range(1, 7)]
        assert all(m.stage == "round_robin" for m in state.matches)

    def test_knockout_odd_count_gets_one_bye(self):
        state = _state([5], format_name="knockout")
        generate_matches_for_format(state, rng=random.Random(3))
        assert [m.id for m in state.matches] == ["ko_1", "ko_2", "ko_3"]
        byes = [m for m in state.matches if m.has_bye]
        assert len(byes) == 1
        assert byes[0] is state.matches[-1]
        sides = [s for m in state.matches for s in (m.side_a, m.side_b) if s != "BYE"]
        assert sorted(sides) == ["p1", "p2", "p3", "p4", "p5"]

    @pytest.mark.parametrize("format_name", ["double_elim", "double_elimination", " Double_Elim "])
    def test_double_elim_builds_winners_round_one(self, format_name):
        state = _state([5], format_name="round_robin")
        generate_matches_for_format(state, format_name, rng=random.Random(3))
        assert [m.id for m in state.matches] == ["de_wb_r1_1", "de_wb_r1_2", "de_wb_r1_3"]
        assert all(m.stage == "double_elim" and m.round == 1 for m in state.matches)
        byes = [m for m in state.matches if m.has_bye]
        assert len(byes) == 1
        sides = [s for m in state.matches for s in (m.side_a, m.side_b) if s != "BYE"]
        assert sorted(sides) == ["p1", "p2", "p3", "p4", "p5"]

    def test_group_stage_delegates(self):
        state = _state([3, 3])
        generate_matches_for_format(state, "group_stage", "Court 9")
        assert len(state.matches) == 6
        assert state.matches[0].venue == "Court 9"

    def test_venue_falls_back_to_tournament_default(self):
        state = _state([3], format_name="round_robin")
        state.default_venue = "Field 2"
        generate_matches_for_format(state)
        assert {m.venue for m in state.matches} == {"Field 2"}

    def test_unknown_format(self):
        with pytest.raises(InvalidFormat):
            generate_matches_for_format(_state([3]), "swiss")

    def test_needs_two_entrants(self):
        with pytest.raises(InsufficientEntrants):
            generate_matches_for_format(_state([1], format_name="round_robin"))
