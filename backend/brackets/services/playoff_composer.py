"""
Playoff construction from group standings.

Qualifiers (top N per group) are interleaved rank by rank across groups:
  [A1, B1, C1, A2, B2, C2, ...]
and round 1 pairs the list from both ends inward (first vs last, second vs
second-last, ...). An odd middle qualifier meets BYE and advances at once.
"""

import logging
from typing import Dict, List, Optional

from brackets.services.bracket_errors import GroupsNotGenerated, InvalidFormat
from brackets.services.bracket_state import (
    BYE,
    FORMAT_GROUP_STAGE,
    STAGE_PLAYOFF,
    BracketMatch,
    TournamentState,
    make_match,
)
from brackets.services.progression_engine import progress_from_round
from brackets.services.standings import StandingRow, compute_group_standings
from brackets.utils.match_generation import generate_group_matches

logger = logging.getLogger(__name__)


def select_qualifiers(
    standings: Dict[str, List[StandingRow]], group_ids: List[str], top_n: int
) -> Dict[str, List[StandingRow]]:
    """Top rows of each group, clamped to the group's size."""
    out: Dict[str, List[StandingRow]] = {}
    for gid in group_ids:
        rows = standings.get(gid, [])
        n = min(max(0, int(top_n)), len(rows))
        out[gid] = rows[:n]
    return out


def interleave_qualifiers(qualifiers: Dict[str, List[StandingRow]], group_ids: List[str]) -> List[StandingRow]:
    """Rank 1 of every group (group order), then rank 2, and so on."""
    max_n = max((len(rows) for rows in qualifiers.values()), default=0)
    ordered = []
    for rank in range(max_n):
        for gid in group_ids:
            rows = qualifiers.get(gid, [])
            if rank < len(rows):
                ordered.append(rows[rank])
    return ordered


def pair_first_round(ordered: List[str], names: Dict[str, str], venue: str = "") -> List[BracketMatch]:
    """1 vs n, 2 vs n-1, ...; the middle of an odd list gets a BYE."""
    out = []
    seq = 1
    i, j = 0, len(ordered) - 1
    while i < j:
        out.append(make_match(STAGE_PLAYOFF, 1, seq, ordered[i], ordered[j], names, venue=venue))
        seq += 1
        i += 1
        j -= 1
    if i == j:
        out.append(make_match(STAGE_PLAYOFF, 1, seq, ordered[i], BYE, names, venue=venue))
    return out


def compose_playoffs(
    state: TournamentState,
    default_venue: str = "",
    top_n_per_group: Optional[int] = None,
) -> TournamentState:
    """
    Rebuild the playoff bracket from current group standings.

    Existing playoff matches and the champion are discarded first. Group
    matches are generated when none exist yet. Fewer than 2 qualifiers is
    not an error; the tournament simply has no playoff matches.
    """
    if state.format != FORMAT_GROUP_STAGE:
        raise InvalidFormat(f"Tournament is not {FORMAT_GROUP_STAGE}")
    if not state.groups:
        raise GroupsNotGenerated("Groups not generated")

    venue = str(default_venue or "").strip()
    state.playoff_default_venue = venue
    if top_n_per_group is not None:
        state.top_n_per_group = int(top_n_per_group)

    if not state.has_group_matches():
        generate_group_matches(state, venue)

    state.remove_playoffs()

    group_ids = [g.id for g in state.groups]
    qualifiers = select_qualifiers(compute_group_standings(state), group_ids, state.top_n_per_group or 1)
    total = sum(len(rows) for rows in qualifiers.values())
    if total < 2:
        logger.info("Tournament %s: %d qualifier(s), no playoff bracket", state.id, total)
        return state

    ordered = interleave_qualifiers(qualifiers, group_ids)
    names = state.names_by_ref()
    first_round = pair_first_round([row.ref for row in ordered], names, venue)
    state.matches.extend(first_round)

    logger.info(
        "Tournament %s: playoff round 1 with %d qualifiers (%d matches)", state.id, total, len(first_round)
    )
    progress_from_round(state, 1)
    return state
