"""
Playoff progression: resolve rounds, advance winners, fix the champion.

A round is resolved when every match in it has a winner. Winners of a
resolved round are paired by position (1v2, 3v4, ...) into the next round,
an odd winner out meeting BYE, and the cascade continues until a round does
not resolve or a single final remains. An existing next round is never
overwritten; callers that need it rebuilt delete it first.
"""

import logging
from typing import Dict, List, Optional, Tuple

from brackets.services.bracket_errors import PlayoffDrawNotAllowed
from brackets.services.bracket_state import (
    BYE,
    STAGE_PLAYOFF,
    BracketMatch,
    TournamentState,
    is_bye,
    make_match,
)

logger = logging.getLogger(__name__)


def is_playoff_draw(match: BracketMatch) -> bool:
    return match.is_played and not match.has_bye and match.score_a == match.score_b


def validate_playoff_result(match: BracketMatch) -> None:
    """Reject a played playoff draw between two real sides."""
    if match.is_playoff and is_playoff_draw(match):
        raise PlayoffDrawNotAllowed(f"Playoff match {match.id} cannot end in a draw")


def playoff_winner(match: BracketMatch) -> Optional[Tuple[str, str]]:
    """
    (ref, name) of the winning side, or None while unresolved.

    One BYE side: the other side advances without playing. Two BYEs,
    unplayed matches and draws never resolve.
    """
    a_bye = is_bye(match.side_a)
    b_bye = is_bye(match.side_b)

    if a_bye and b_bye:
        return None
    if a_bye:
        return match.side_b, match.side_b_name
    if b_bye:
        return match.side_a, match.side_a_name

    if not match.is_played or match.score_a == match.score_b:
        return None
    if match.score_a > match.score_b:
        return match.side_a, match.side_a_name
    return match.side_b, match.side_b_name


def _round_winners(matches: List[BracketMatch]) -> Optional[List[Tuple[str, str]]]:
    winners = []
    for m in matches:
        w = playoff_winner(m)
        if w is None:
            return None
        winners.append(w)
    return winners


def recompute_champion(state: TournamentState) -> None:
    """Champion = winner of the highest round when that round is a single resolved match."""
    state.reset_champion()
    final_round = state.max_playoff_round()
    if final_round <= 0:
        return

    finals = state.playoff_round(final_round)
    if len(finals) != 1:
        return

    winner = playoff_winner(finals[0])
    if winner is None:
        return
    state.champion_ref, state.champion_name = winner


def build_next_round(
    winners: List[Tuple[str, str]],
    round_number: int,
    names: Dict[str, str],
    venue: str = "",
) -> List[BracketMatch]:
    """Adjacent pairing by position; no re-seeding."""
    out = []
    for seq, i in enumerate(range(0, len(winners), 2), start=1):
        a = winners[i][0]
        b = winners[i + 1][0] if i + 1 < len(winners) else BYE
        out.append(make_match(STAGE_PLAYOFF, round_number, seq, a, b, names, venue=venue))
    return out


def progress_from_round(state: TournamentState, start_round: int = 1) -> int:
    """
    Run the cascade from start_round. Returns the number of matches created.

    Always finishes by recomputing the champion.
    """
    created = 0
    current = start_round

    while True:
        round_matches = state.playoff_round(current)
        if not round_matches:
            break

        winners = _round_winners(round_matches)
        if winners is None or len(winners) < 2:
            break

        next_round = current + 1
        if state.playoff_round(next_round):
            break

        names = state.names_by_ref()
        for ref, name in winners:
            names.setdefault(ref, name)

        new_matches = build_next_round(winners, next_round, names, venue=state.playoff_default_venue)
        state.matches.extend(new_matches)
        created += len(new_matches)
        logger.info("Tournament %s: created playoff round %d (%d matches)", state.id, next_round, len(new_matches))
        current = next_round

    recompute_champion(state)
    return created


def apply_playoff_edit(state: TournamentState, match: BracketMatch) -> int:
    """
    Recompute the bracket after a playoff match at round r changed.

    Rounds after r are dropped and rebuilt from the current results.
    """
    dropped = sum(1 for m in state.matches if m.is_playoff and m.round > match.round)
    state.remove_playoff_rounds_after(match.round)
    if dropped:
        logger.info(
            "Tournament %s: edit to %s discarded %d downstream playoff matches", state.id, match.id, dropped
        )
    return progress_from_round(state, match.round)
