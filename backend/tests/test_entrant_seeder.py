"""
Tests for entrant seeding: rating order, stable tie-breaks, wholesale replace.
"""

import pytest

from brackets.services.bracket_errors import InsufficientEntrants
from brackets.services.bracket_state import (
    STAGE_GROUP,
    BracketMatch,
    Entrant,
    Group,
    TournamentState,
)
from brackets.services.entrant_seeder import (
    EntrantInput,
    build_seeded_entrants,
    clean_inputs,
    clean_refs,
    seed_entrant_records,
    seed_entrants,
)
from brackets.services.seed_rating import PlayerProfileData


class DictProfiles:
    """Profile provider backed by a dict; records the refs it was asked for."""

    def __init__(self, profiles):
        self.profiles = profiles
        self.calls = []

    def lookup_profiles(self, refs):
        self.calls.append(list(refs))
        return {r: self.profiles[r] for r in refs if r in self.profiles}


def _profiles(**scores):
    return DictProfiles({ref: PlayerProfileData(nickname=ref.upper(), score=s) for ref, s in scores.items()})


def test_seeds_are_a_permutation_in_rating_order():
    provider = _profiles(a=120, b=900, c=450, d=300, e=610)
    state = seed_entrants(TournamentState(id=1), ["a", "b", "c", "d", "e"], provider)

    seeds = [e.seed for e in state.entrants]
    assert sorted(seeds) == [1, 2, 3, 4, 5]

    by_seed = sorted(state.entrants, key=lambda e: e.seed)
    ratings = [e.rating for e in by_seed]
    assert ratings == sorted(ratings, reverse=True)
    assert [e.ref for e in by_seed] == ["b", "e", "c", "d", "a"]


def test_equal_ratings_keep_input_order():
    provider = _profiles(a=500, b=300, c=300, d=100)
    state = seed_entrants(TournamentState(id=1), ["a", "b", "c", "d"], provider)

    seeds = {e.ref: e.seed for e in state.entrants}
    assert seeds == {"a": 1, "b": 2, "c": 3, "d": 4}

    provider = _profiles(a=500, b=300, c=300, d=100)
    state = seed_entrants(TournamentState(id=1), ["a", "c", "b", "d"], provider)
    seeds = {e.ref: e.seed for e in state.entrants}
    assert seeds["c"] == 2
    assert seeds["b"] == 3


def test_fewer_than_two_entrants_rejected():
    with pytest.raises(InsufficientEntrants):
        seed_entrants(TournamentState(id=1), ["only"], _profiles(only=100))


def test_duplicates_and_blanks_are_dropped_before_count_check():
    assert clean_refs([" a ", "", "b", "a", None]) == ["a", "b"]
    with pytest.raises(InsufficientEntrants):
        seed_entrants(TournamentState(id=1), ["a", "a", "  "], _profiles(a=100))


def test_provider_called_once_with_cleaned_refs():
    provider = _profiles(a=100, b=200)
    seed_entrants(TournamentState(id=1), ["a", "b", "a"], provider)
    assert provider.calls == [["a", "b"]]


def test_missing_profile_rates_zero_and_is_named_player():
    provider = _profiles(a=100)
    state = seed_entrants(TournamentState(id=1), ["a", "ghost"], provider)
    ghost = next(e for e in state.entrants if e.ref == "ghost")
    assert ghost.rating == 0
    assert ghost.name == "Player"
    assert ghost.seed == 2


def test_reseed_discards_groups_matches_and_champion():
    state = TournamentState(
        id=1,
        entrants=[Entrant(ref="x", name="X", rating=1, seed=1)],
        groups=[Group(id="A", name="Group A", members=["x"])],
        matches=[BracketMatch(stage=STAGE_GROUP, group_id="A", round=1, sequence=1, side_a="x", side_b="y")],
        playoff_default_venue="Court 1",
        champion_name="X",
        champion_ref="x",
    )
    seed_entrants(state, ["a", "b"], _profiles(a=1, b=2))

    assert [e.ref for e in state.entrants] == ["b", "a"]
    assert state.groups == []
    assert state.matches == []
    assert state.playoff_default_venue == ""
    assert state.champion_name == ""
    assert state.champion_ref == ""


def test_build_seeded_entrants_uses_profile_names():
    entrants = build_seeded_entrants(
        ["u1", "u2"],
        {"u1": PlayerProfileData(tag="#T1", score=10), "u2": PlayerProfileData(nickname="Neo", score=20)},
    )
    assert [(e.ref, e.name, e.seed) for e in entrants] == [("u2", "Neo", 1), ("u1", "#T1", 2)]


class TestEntrantRecords:
    def test_local_guest_keeps_name_and_rates_zero(self):
        provider = _profiles(a=400, b=200)
        entries = [
            EntrantInput(ref="a"),
            EntrantInput(ref="guest-1", name="Walk-in Wes", is_local=True),
            EntrantInput(ref="b"),
        ]
        state = seed_entrant_records(TournamentState(id=1), entries, provider)

        guest = next(e for e in state.entrants if e.ref == "guest-1")
        assert (guest.name, guest.rating, guest.seed, guest.is_local) == ("Walk-in Wes", 0, 3, True)
        assert provider.calls == [["a", "b"]]

    def test_nm_prefix_is_always_local(self):
        provider = DictProfiles({"nm:kim": PlayerProfileData(nickname="Impostor", score=999)})
        entries = [EntrantInput(ref="nm:kim", name="Kim"), EntrantInput(ref="nm:lee", name="Lee")]
        state = seed_entrant_records(TournamentState(id=1), entries, provider)

        assert provider.calls == []
        assert [(e.ref, e.name, e.rating, e.is_local) for e in state.entrants] == [
            ("nm:kim", "Kim", 0, True),
            ("nm:lee", "Lee", 0, True),
        ]

    def test_supplied_name_overrides_profile_name(self):
        provider = _profiles(a=300, b=100)
        entries = [EntrantInput(ref="a", name="Captain A"), EntrantInput(ref="b")]
        state = seed_entrant_records(TournamentState(id=1), entries, provider)
        assert [(e.ref, e.name, e.rating > 0, e.is_local) for e in state.entrants] == [
            ("a", "Captain A", True, False),
            ("b", "B", True, False),
        ]

    def test_duplicate_refs_dropped_first_wins(self):
        cleaned = clean_inputs(
            [EntrantInput(ref=" a ", name="First"), EntrantInput(ref="a", name="Second"), EntrantInput(ref="")]
        )
        assert [(e.ref, e.name) for e in cleaned] == [("a", "First")]
        with pytest.raises(InsufficientEntrants):
            seed_entrant_records(TournamentState(id=1), [EntrantInput(ref="x"), EntrantInput(ref="x")], _profiles())
