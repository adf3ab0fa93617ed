"""
Result entry and match edits.

A playoff edit at round r discards every later round and reruns progression
from r, so a corrected result always rebuilds the downstream bracket. A group
match edit only recomputes the champion.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict

from brackets.services.bracket_errors import (
    InvalidMatchUpdate,
    MatchNotFound,
    PlayoffDrawNotAllowed,
    TournamentLocked,
)
from brackets.services.bracket_state import (
    BYE,
    MATCH_STATUSES,
    TOURNAMENT_ACTIVE,
    TOURNAMENT_COMPLETED,
    TOURNAMENT_LIVE,
    BracketMatch,
    TournamentState,
    is_bye,
    side_name,
)
from brackets.services.progression_engine import apply_playoff_edit, recompute_champion, validate_playoff_result

logger = logging.getLogger(__name__)

SIDE_FIELDS = ("side_a", "side_b", "side_a_name", "side_b_name")
EDITABLE_FIELDS = SIDE_FIELDS + ("venue", "scheduled_at", "score_a", "score_b", "status")


def _check_locks(state: TournamentState, changes: Dict[str, Any]) -> None:
    status = (state.status or "").upper()
    if status == TOURNAMENT_COMPLETED:
        raise TournamentLocked("Tournament is completed. Matches are locked.")
    if status in (TOURNAMENT_ACTIVE, TOURNAMENT_LIVE) and any(f in changes for f in SIDE_FIELDS):
        raise TournamentLocked("Tournament is live. You cannot change match teams.")


def _edited_copy(state: TournamentState, match: BracketMatch, changes: Dict[str, Any]) -> BracketMatch:
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise InvalidMatchUpdate(f"Unknown match fields: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    names = state.names_by_ref()

    for side in ("a", "b"):
        key = f"side_{side}"
        if key in changes:
            ref = str(changes[key] or "").strip()
            values[key] = BYE if is_bye(ref) else ref
            if f"side_{side}_name" not in changes:
                values[f"side_{side}_name"] = side_name(ref, names)
        if f"side_{side}_name" in changes:
            values[f"side_{side}_name"] = str(changes[f"side_{side}_name"] or "")

    if "venue" in changes:
        values["venue"] = str(changes["venue"] or "").strip()

    if "scheduled_at" in changes:
        when = changes["scheduled_at"]
        if isinstance(when, str):
            try:
                when = datetime.fromisoformat(when)
            except ValueError:
                raise InvalidMatchUpdate(f"Invalid scheduled_at: {changes['scheduled_at']!r}")
        values["scheduled_at"] = when or None

    for key in ("score_a", "score_b"):
        if key in changes:
            try:
                score = int(changes[key] or 0)
            except (TypeError, ValueError):
                raise InvalidMatchUpdate(f"{key} must be an integer")
            if score < 0:
                raise InvalidMatchUpdate(f"{key} must be >= 0")
            values[key] = score

    if "status" in changes:
        status = str(changes["status"] or "scheduled").strip().lower()
        if status not in MATCH_STATUSES:
            raise InvalidMatchUpdate(f"Invalid match status: {changes['status']!r}")
        values["status"] = status

    return replace(match, **values)


def apply_match_update(state: TournamentState, match_id: str, changes: Dict[str, Any]) -> BracketMatch:
    """
    Apply a partial update to one match and cascade.

    Validation runs on a copy; the aggregate is untouched when the update is
    rejected.
    """
    match = state.find_match(match_id)
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found")

    _check_locks(state, changes)
    edited = _edited_copy(state, match, changes)

    try:
        validate_playoff_result(edited)
    except PlayoffDrawNotAllowed:
        logger.warning("Tournament %s: rejected draw result for %s", state.id, match.id)
        raise

    idx = next(i for i, m in enumerate(state.matches) if m is match)
    state.matches[idx] = edited

    if edited.is_playoff:
        apply_playoff_edit(state, edited)
    else:
        recompute_champion(state)
    return edited
