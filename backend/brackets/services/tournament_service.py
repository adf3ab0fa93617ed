"""
Tournament operations: load the aggregate, run one engine step, save it back.

Every operation is a full load -> mutate -> save cycle against a
TournamentStore. Concurrent writers are detected by the store's revision
check (ConcurrentModification); nothing here retries.

Before start a tournament moves through a roster lifecycle: entries are
closed and the format is finalised. Once either has happened the entrants,
groups and schedule can no longer be regenerated.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from brackets.services.bracket_errors import (
    GroupsNotGenerated,
    InsufficientEntrants,
    InvalidFormat,
    NotReadyToStart,
    TournamentLocked,
)
from brackets.services.bracket_state import (
    ENTRIES_CLOSED,
    ENTRIES_OPEN,
    FORMAT_GROUP_STAGE,
    FORMAT_STATUS_CONFIGURED,
    FORMAT_STATUS_DRAFT,
    FORMAT_STATUS_FINALISED,
    FORMATS,
    TOURNAMENT_ACTIVE,
    TOURNAMENT_COMPLETED,
    TOURNAMENT_LIVE,
    TournamentState,
    normalize_format,
)
from brackets.services.entrant_seeder import EntrantInput, ProfileProvider, seed_entrant_records, seed_entrants
from brackets.services.match_updates import apply_match_update
from brackets.services.playoff_composer import compose_playoffs
from brackets.services.progression_engine import progress_from_round
from brackets.services.standings import StandingRow, compute_standings
from brackets.services.tournament_store import TournamentStore
from brackets.utils.match_generation import generate_group_matches, generate_matches_for_format
from brackets.utils.snake_grouping import compose_groups

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = (
    "title",
    "group_count",
    "group_size",
    "group_randomize",
    "top_n_per_group",
    "default_venue",
    "playoff_default_venue",
)


def _require_draft(state: TournamentState) -> None:
    if state.is_started():
        raise TournamentLocked("Tournament already started")


def _require_roster_open(state: TournamentState) -> None:
    reason = state.roster_lock_reason()
    if reason:
        raise TournamentLocked(reason)


def _require_not_completed(state: TournamentState) -> None:
    if (state.status or "").upper() == TOURNAMENT_COMPLETED:
        raise TournamentLocked("Tournament is completed")


def create_tournament(store: TournamentStore, title: str, format_name: str = FORMAT_GROUP_STAGE, **settings: Any) -> TournamentState:
    fmt = normalize_format(format_name)
    if fmt not in FORMATS:
        raise InvalidFormat(f"Unknown format: {format_name!r}")
    state = TournamentState(title=str(title or "").strip(), format=fmt)
    for key, value in settings.items():
        if key in SETTINGS_FIELDS and value is not None:
            setattr(state, key, value)
    return store.create(state)


def get_tournament(store: TournamentStore, tournament_id: int) -> TournamentState:
    return store.load(tournament_id)


def update_settings(store: TournamentStore, tournament_id: int, changes: Dict[str, Any]) -> TournamentState:
    """Group/playoff sizing and venues. Locked once the tournament has started."""
    state = store.load(tournament_id)
    _require_draft(state)
    for key, value in changes.items():
        if key in SETTINGS_FIELDS and value is not None:
            setattr(state, key, value)
    if (state.format_status or FORMAT_STATUS_DRAFT).upper() == FORMAT_STATUS_DRAFT:
        state.format_status = FORMAT_STATUS_CONFIGURED
    return store.save(state)


def set_entrants(
    store: TournamentStore, profiles: ProfileProvider, tournament_id: int, refs: Iterable[str]
) -> TournamentState:
    state = store.load(tournament_id)
    _require_roster_open(state)
    seed_entrants(state, refs, profiles)
    return store.save(state)


def set_entrant_records(
    store: TournamentStore, profiles: ProfileProvider, tournament_id: int, entries: Iterable[EntrantInput]
) -> TournamentState:
    """set_entrants for records carrying their own name; local entrants need no profile."""
    state = store.load(tournament_id)
    _require_roster_open(state)
    seed_entrant_records(state, entries, profiles)
    return store.save(state)


def close_entries(store: TournamentStore, tournament_id: int) -> TournamentState:
    state = store.load(tournament_id)
    _require_draft(state)
    if state.entries_closed():
        return state
    state.entries_status = ENTRIES_CLOSED
    state.entries_closed_at = datetime.now(timezone.utc)
    logger.info("Tournament %s: entries closed with %d entrants", state.id, len(state.entrants))
    return store.save(state)


def open_entries(store: TournamentStore, tournament_id: int) -> TournamentState:
    state = store.load(tournament_id)
    _require_draft(state)
    if state.format_finalised():
        raise TournamentLocked("Tournament format is finalised. Entrants are locked.")
    if not state.entries_closed():
        return state
    state.entries_status = ENTRIES_OPEN
    state.entries_closed_at = None
    return store.save(state)


def finalise_format(store: TournamentStore, tournament_id: int) -> TournamentState:
    state = store.load(tournament_id)
    _require_draft(state)
    if state.format_finalised():
        return state
    state.format_status = FORMAT_STATUS_FINALISED
    logger.info("Tournament %s: format %s finalised", state.id, state.format)
    return store.save(state)


def generate_groups(
    store: TournamentStore,
    tournament_id: int,
    group_count: Optional[int] = None,
    group_size: Optional[int] = None,
    randomize: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> TournamentState:
    state = store.load(tournament_id)
    _require_roster_open(state)
    if randomize is None:
        randomize = state.group_randomize
    compose_groups(state, group_count=group_count, group_size=group_size, randomize=randomize, rng=rng)
    return store.save(state)


def generate_group_stage_matches(store: TournamentStore, tournament_id: int, default_venue: str = "") -> TournamentState:
    state = store.load(tournament_id)
    _require_roster_open(state)
    generate_group_matches(state, default_venue)
    return store.save(state)


def generate_matches(
    store: TournamentStore,
    tournament_id: int,
    format_name: Optional[str] = None,
    default_venue: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> TournamentState:
    state = store.load(tournament_id)
    _require_roster_open(state)
    generate_matches_for_format(state, format_name, default_venue, rng=rng)
    return store.save(state)


def generate_playoffs(
    store: TournamentStore,
    tournament_id: int,
    default_venue: str = "",
    top_n_per_group: Optional[int] = None,
) -> TournamentState:
    state = store.load(tournament_id)
    _require_not_completed(state)
    compose_playoffs(state, default_venue, top_n_per_group)
    return store.save(state)


def update_match(store: TournamentStore, tournament_id: int, match_id: str, changes: Dict[str, Any]) -> TournamentState:
    state = store.load(tournament_id)
    apply_match_update(state, match_id, changes)
    return store.save(state)


def progress_playoffs(store: TournamentStore, tournament_id: int) -> int:
    """Rerun progression from round 1 without discarding anything. Returns matches created."""
    state = store.load(tournament_id)
    _require_not_completed(state)
    before = state.champion_name
    created = progress_from_round(state, 1)
    if created or state.champion_name != before:
        store.save(state)
    return created


def get_standings(store: TournamentStore, tournament_id: int) -> Dict[str, List[StandingRow]]:
    return compute_standings(store.load(tournament_id))


def start_tournament(store: TournamentStore, tournament_id: int, default_venue: Optional[str] = None) -> TournamentState:
    """
    DRAFT -> ACTIVE. Entries must be closed and the format finalised.
    Matches are generated first when none exist, so an active tournament
    always has a schedule.
    """
    state = store.load(tournament_id)
    _require_draft(state)
    if not state.entries_closed():
        raise NotReadyToStart("Close entries before starting")
    if not state.format_finalised():
        raise NotReadyToStart("Finalise format before starting")
    if len(state.entrants) < 2:
        raise InsufficientEntrants("Need at least 2 entrants before starting")
    if not state.matches:
        if state.format == FORMAT_GROUP_STAGE and not state.groups:
            raise GroupsNotGenerated("Generate groups before starting")
        generate_matches_for_format(state, state.format, default_venue)
    state.status = TOURNAMENT_ACTIVE
    state.started_at = datetime.now(timezone.utc)
    logger.info("Tournament %s: started with %d matches", state.id, len(state.matches))
    return store.save(state)


def complete_tournament(store: TournamentStore, tournament_id: int) -> TournamentState:
    state = store.load(tournament_id)
    if (state.status or "").upper() not in (TOURNAMENT_ACTIVE, TOURNAMENT_LIVE):
        raise TournamentLocked("Only a started tournament can be completed")
    state.status = TOURNAMENT_COMPLETED
    return store.save(state)
