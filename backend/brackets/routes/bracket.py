"""
Bracket engine endpoints: seeding, groups, match generation, standings,
playoffs and result entry.

Each call is one load -> engine step -> save cycle on the tournament.
"""
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from brackets.database import get_session
from brackets.routes.schemas import (
    EntrantsUpdate,
    GroupsGenerate,
    MatchesGenerate,
    MatchUpdate,
    PlayoffsGenerate,
    ProgressResponse,
    StandingOut,
    TournamentResponse,
    VenueRequest,
    http_error,
    standings_response,
    tournament_response,
)
from brackets.services import tournament_service
from brackets.services.bracket_errors import BracketError
from brackets.services.entrant_seeder import EntrantInput
from brackets.services.tournament_store import SqlProfileProvider, SqlTournamentStore

router = APIRouter()


@router.put("/tournaments/{tournament_id}/entrants", response_model=TournamentResponse)
def set_entrants(tournament_id: int, payload: EntrantsUpdate, session: Session = Depends(get_session)):
    """
    Seed entrants from profile ratings. Clears groups, matches and champion.

    ``entrants`` records keep their given name; local guests (or "nm:" refs)
    skip the profile lookup and rate 0.
    """
    store = SqlTournamentStore(session)
    profiles = SqlProfileProvider(session)
    try:
        if payload.entrants is not None:
            records = [EntrantInput(ref=e.ref, name=e.name, is_local=e.is_local) for e in payload.entrants]
            state = tournament_service.set_entrant_records(store, profiles, tournament_id, records)
        else:
            state = tournament_service.set_entrants(store, profiles, tournament_id, payload.entrant_ids)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/groups", response_model=TournamentResponse)
def generate_groups(tournament_id: int, payload: GroupsGenerate, session: Session = Depends(get_session)):
    """Snake-seeded groups. Clears matches and champion."""
    try:
        state = tournament_service.generate_groups(
            SqlTournamentStore(session),
            tournament_id,
            group_count=payload.group_count,
            group_size=payload.group_size,
            randomize=payload.randomize,
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/group-matches", response_model=TournamentResponse)
def generate_group_matches(tournament_id: int, payload: VenueRequest, session: Session = Depends(get_session)):
    """Round robin inside each group. Replaces every existing match."""
    try:
        state = tournament_service.generate_group_stage_matches(
            SqlTournamentStore(session), tournament_id, payload.default_venue
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/matches/generate", response_model=TournamentResponse)
def generate_matches(tournament_id: int, payload: MatchesGenerate, session: Session = Depends(get_session)):
    try:
        state = tournament_service.generate_matches(
            SqlTournamentStore(session), tournament_id, payload.format, payload.default_venue
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.get("/tournaments/{tournament_id}/standings", response_model=Dict[str, List[StandingOut]])
def get_standings(tournament_id: int, session: Session = Depends(get_session)):
    """Standings per group, computed from played matches."""
    try:
        standings = tournament_service.get_standings(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return standings_response(standings)


@router.post("/tournaments/{tournament_id}/playoffs", response_model=TournamentResponse)
def generate_playoffs(tournament_id: int, payload: PlayoffsGenerate, session: Session = Depends(get_session)):
    """Rebuild the playoff bracket from current standings and advance byes."""
    try:
        state = tournament_service.generate_playoffs(
            SqlTournamentStore(session), tournament_id, payload.default_venue, payload.top_n_per_group
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/playoffs/progress", response_model=ProgressResponse)
def progress_playoffs(tournament_id: int, session: Session = Depends(get_session)):
    """Rerun progression from round 1 (repair). Idempotent."""
    store = SqlTournamentStore(session)
    try:
        created = tournament_service.progress_playoffs(store, tournament_id)
        state = store.load(tournament_id)
    except BracketError as e:
        raise http_error(e)
    return ProgressResponse(created_matches=created, champion_name=state.champion_name)


@router.patch("/tournaments/{tournament_id}/matches/{match_id}", response_model=TournamentResponse)
def update_match(
    tournament_id: int,
    match_id: str,
    payload: MatchUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a match's result or details.

    A playoff edit discards later rounds and rebuilds them from current
    results; a group edit recomputes the champion.
    """
    changes = payload.model_dump(exclude_unset=True)
    try:
        state = tournament_service.update_match(SqlTournamentStore(session), tournament_id, match_id, changes)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)
