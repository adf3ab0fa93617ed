"""
Balanced group composition (snake seeding).

Entrants are walked in seed order and dealt into groups 0..k-1, then
k-1..0 on the next pass, alternating direction each pass. With k groups
the strongest entrant of each group is seed 1..k and group sizes differ
by at most 1.
"""

import logging
import random
from math import ceil
from typing import List, Optional, Sequence, TypeVar

from brackets.services.bracket_errors import EntrantsNotSet
from brackets.services.bracket_state import Entrant, Group, TournamentState

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_GROUPS = 2
GROUP_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def group_id_from_index(index: int) -> str:
    """
    0 -> A, 25 -> Z, 26 -> AA, 27 -> AB, ... (bijective base 26)
    """
    if index < 0:
        raise ValueError(f"group index must be >= 0, got {index}")
    letters = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = GROUP_LETTERS[rem] + letters
    return letters


def compute_group_count(entrant_count: int, requested: Optional[int] = None, group_size: Optional[int] = None) -> int:
    """
    Number of groups to create.

    group_size > 0 wins: ceil(n / size). Otherwise the requested count
    (default 2) clamped to [2, n].
    """
    if group_size and group_size > 0:
        return max(1, ceil(entrant_count / group_size))
    count = max(MIN_GROUPS, int(requested or MIN_GROUPS))
    return min(count, entrant_count)


def snake_assign(ordered: Sequence[T], group_count: int) -> List[List[T]]:
    """Deal items into group_count buckets in alternating direction."""
    buckets: List[List[T]] = [[] for _ in range(group_count)]
    forward = True
    idx = 0
    while idx < len(ordered):
        order = range(group_count) if forward else range(group_count - 1, -1, -1)
        for g in order:
            if idx >= len(ordered):
                break
            buckets[g].append(ordered[idx])
            idx += 1
        forward = not forward
    return buckets


def order_for_grouping(entrants: Sequence[Entrant], randomize: bool = False, rng: Optional[random.Random] = None) -> List[Entrant]:
    """
    Seed order (1 first). With randomize the whole list is shuffled, which
    throws away the balancing the snake walk would otherwise give. Seeds on
    the entrants are left untouched.
    """
    ordered = sorted(entrants, key=lambda e: e.seed if e.seed else 9999)
    if randomize:
        (rng or random).shuffle(ordered)
    return ordered


def compose_groups(
    state: TournamentState,
    group_count: Optional[int] = None,
    group_size: Optional[int] = None,
    randomize: bool = False,
    rng: Optional[random.Random] = None,
) -> TournamentState:
    """Replace the tournament's groups. Matches, playoff venue and champion are reset."""
    if len(state.entrants) < 2:
        raise EntrantsNotSet("Entrants not set")

    count = compute_group_count(len(state.entrants), group_count or state.group_count, group_size)
    ordered = order_for_grouping(state.entrants, randomize=randomize, rng=rng)
    buckets = snake_assign(ordered, count)

    groups = []
    for i, members in enumerate(buckets):
        gid = group_id_from_index(i)
        groups.append(Group(id=gid, name=f"Group {gid}", members=[e.ref for e in members]))

    state.group_count = count
    state.group_size = int(group_size or state.group_size or 0)
    state.group_randomize = bool(randomize)
    state.replace_groups(groups)

    logger.info(
        "Tournament %s: composed %d groups from %d entrants (randomize=%s)",
        state.id,
        count,
        len(state.entrants),
        randomize,
    )
    return state
