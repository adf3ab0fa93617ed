"""
Seed rating from player profile stats.

rating = base + min(50, winnings / 100) + min(30, best_streak * 2)
base   = score when positive, otherwise the floor for the player's rank tier.
"""

import math
from dataclasses import dataclass
from typing import Optional

from brackets.services.bracket_state import DEFAULT_PLAYER_NAME

TIER_FLOORS = (
    ("pro", 400),
    ("advanced", 300),
    ("intermediate", 200),
)
DEFAULT_TIER_FLOOR = 100

WINNINGS_BOOST_CAP = 50
WINNINGS_PER_POINT = 100
STREAK_BOOST_CAP = 30
STREAK_POINTS = 2


@dataclass
class PlayerProfileData:
    """Rating inputs returned by the profile provider."""

    nickname: Optional[str] = None
    tag: Optional[str] = None
    score: float = 0
    rank_tier: Optional[str] = None
    total_winnings: float = 0
    best_win_streak: int = 0


def rank_to_base_score(rank_tier: Optional[str]) -> int:
    r = str(rank_tier or "").lower()
    for needle, floor in TIER_FLOORS:
        if needle in r:
            return floor
    return DEFAULT_TIER_FLOOR


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_rating(profile: Optional[PlayerProfileData]) -> int:
    """Integer seed rating. Unknown players rate 0 so they seed last."""
    if profile is None:
        return 0

    score = float(profile.score or 0)
    winnings = float(profile.total_winnings or 0)
    streak = float(profile.best_win_streak or 0)

    base = score if score > 0 else rank_to_base_score(profile.rank_tier)
    win_boost = min(WINNINGS_BOOST_CAP, winnings / WINNINGS_PER_POINT)
    streak_boost = min(STREAK_BOOST_CAP, streak * STREAK_POINTS)

    return _round_half_up(base + win_boost + streak_boost)


def pick_display_name(profile: Optional[PlayerProfileData]) -> str:
    """nickname -> tag -> "Player"."""
    if profile is not None:
        for candidate in (profile.nickname, profile.tag):
            name = str(candidate or "").strip()
            if name:
                return name
    return DEFAULT_PLAYER_NAME
