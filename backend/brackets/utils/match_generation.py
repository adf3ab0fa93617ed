"""
Match generation for the group stage and the single-stage formats.

Every generator returns a complete match list; callers replace the
tournament's whole match collection with it.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from brackets.services.bracket_errors import GroupsNotGenerated, InsufficientEntrants, InvalidFormat
from brackets.services.bracket_state import (
    BYE,
    FORMAT_DOUBLE_ELIM,
    FORMAT_GROUP_STAGE,
    FORMAT_KNOCKOUT,
    FORMAT_ROUND_ROBIN,
    STAGE_DOUBLE_ELIM,
    STAGE_GROUP,
    STAGE_KNOCKOUT,
    STAGE_ROUND_ROBIN,
    BracketMatch,
    TournamentState,
    make_match,
    normalize_format,
)

logger = logging.getLogger(__name__)


def rr_pairs(n: int) -> List[Tuple[int, int]]:
    """Every unordered index pair once: (0,1), (0,2), ..., (1,2), ..."""
    return [(i, j) for i in range(n) for j in range(i + 1, n)]


def build_group_matches(state: TournamentState, default_venue: str = "") -> List[BracketMatch]:
    names = state.names_by_ref()
    matches: List[BracketMatch] = []
    for group in state.groups:
        members = [m for m in group.members if m]
        for seq, (i, j) in enumerate(rr_pairs(len(members)), start=1):
            matches.append(
                make_match(STAGE_GROUP, 1, seq, members[i], members[j], names, venue=default_venue, group_id=group.id)
            )
    return matches


def generate_group_matches(state: TournamentState, default_venue: str = "") -> TournamentState:
    """
    Round robin inside every group: g_<group>_1 .. g_<group>_{k(k-1)/2}.

    Replaces ALL matches, playoff rounds included, and resets the champion.
    """
    if state.format != FORMAT_GROUP_STAGE:
        raise InvalidFormat(f"Tournament is not {FORMAT_GROUP_STAGE}")
    if not state.groups:
        raise GroupsNotGenerated("Groups not generated")

    matches = build_group_matches(state, default_venue)
    state.replace_matches(matches)
    logger.info("Tournament %s: generated %d group matches over %d groups", state.id, len(matches), len(state.groups))
    return state


def build_round_robin(refs: Sequence[str], names: Dict[str, str], default_venue: str = "") -> List[BracketMatch]:
    return [
        make_match(STAGE_ROUND_ROBIN, 1, seq, refs[i], refs[j], names, venue=default_venue)
        for seq, (i, j) in enumerate(rr_pairs(len(refs)), start=1)
    ]


def build_knockout_round1(
    refs: Sequence[str],
    names: Dict[str, str],
    default_venue: str = "",
    rng: Optional[random.Random] = None,
    stage: str = STAGE_KNOCKOUT,
) -> List[BracketMatch]:
    """Shuffled adjacent pairs; an odd entrant out meets BYE."""
    shuffled = list(refs)
    (rng or random).shuffle(shuffled)
    out = []
    for seq, i in enumerate(range(0, len(shuffled), 2), start=1):
        a = shuffled[i]
        b = shuffled[i + 1] if i + 1 < len(shuffled) else BYE
        out.append(make_match(stage, 1, seq, a, b, names, venue=default_venue))
    return out


def generate_matches_for_format(
    state: TournamentState,
    format_name: Optional[str] = None,
    default_venue: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> TournamentState:
    refs = [e.ref for e in state.entrants if e.ref]
    if len(refs) < 2:
        raise InsufficientEntrants("Add at least 2 players")

    fmt = normalize_format(format_name or state.format)
    venue = str(default_venue or state.default_venue or state.playoff_default_venue or "").strip()

    if fmt == FORMAT_GROUP_STAGE:
        if state.format != FORMAT_GROUP_STAGE:
            raise InvalidFormat(f"Tournament is not {FORMAT_GROUP_STAGE}")
        if not state.groups:
            raise GroupsNotGenerated("Groups not generated. Generate groups first.")
        return generate_group_matches(state, venue)

    names = state.names_by_ref()
    if fmt == FORMAT_ROUND_ROBIN:
        matches = build_round_robin(refs, names, venue)
    elif fmt == FORMAT_KNOCKOUT:
        matches = build_knockout_round1(refs, names, venue, rng=rng)
    elif fmt == FORMAT_DOUBLE_ELIM:
        # winners bracket round 1 only: de_wb_r1_<n>
        matches = build_knockout_round1(refs, names, venue, rng=rng, stage=STAGE_DOUBLE_ELIM)
    else:
        raise InvalidFormat(f"Unknown format: {fmt!r}")

    state.replace_matches(matches)
    logger.info("Tournament %s: generated %d %s matches", state.id, len(matches), fmt)
    return state
