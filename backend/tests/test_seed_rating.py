"""
Tests for seed rating and display-name selection.
"""

from brackets.services.seed_rating import (
    PlayerProfileData,
    compute_rating,
    pick_display_name,
    rank_to_base_score,
)


class TestRankToBaseScore:
    def test_tier_floors(self):
        assert rank_to_base_score("PRO") == 400
        assert rank_to_base_score("ADVANCED") == 300
        assert rank_to_base_score("INTERMEDIATE") == 200
        assert rank_to_base_score("BEGINNER") == 100

    def test_case_insensitive_substring(self):
        assert rank_to_base_score("Semi-Pro") == 400
        assert rank_to_base_score("advanced ii") == 300

    def test_missing_tier_is_default(self):
        assert rank_to_base_score(None) == 100
        assert rank_to_base_score("") == 100


class TestComputeRating:
    def test_positive_score_is_base(self):
        assert compute_rating(PlayerProfileData(score=500, rank_tier="PRO")) == 500

    def test_zero_score_uses_tier_floor(self):
        assert compute_rating(PlayerProfileData(score=0, rank_tier="ADVANCED")) == 300

    def test_winnings_boost_capped_at_50(self):
        assert compute_rating(PlayerProfileData(score=100, total_winnings=2500)) == 125
        assert compute_rating(PlayerProfileData(score=100, total_winnings=999999)) == 150

    def test_streak_boost_capped_at_30(self):
        assert compute_rating(PlayerProfileData(score=100, best_win_streak=4)) == 108
        assert compute_rating(PlayerProfileData(score=100, best_win_streak=40)) == 130

    def test_rounds_half_up(self):
        # 100 + 50/100 = 100.5 -> 101
        assert compute_rating(PlayerProfileData(score=100, total_winnings=50)) == 101
        # 100 + 49/100 = 100.49 -> 100
        assert compute_rating(PlayerProfileData(score=100, total_winnings=49)) == 100

    def test_unknown_player_rates_zero(self):
        assert compute_rating(None) == 0


class TestPickDisplayName:
    def test_nickname_first(self):
        assert pick_display_name(PlayerProfileData(nickname="Ace", tag="#A1")) == "Ace"

    def test_tag_when_no_nickname(self):
        assert pick_display_name(PlayerProfileData(nickname="  ", tag="#A1")) == "#A1"

    def test_player_fallback(self):
        assert pick_display_name(PlayerProfileData()) == "Player"
        assert pick_display_name(None) == "Player"
