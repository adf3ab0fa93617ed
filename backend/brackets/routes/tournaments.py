from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from brackets.database import get_session
from brackets.models.player_profile import PlayerProfile
from brackets.models.tournament import Tournament
from brackets.routes.schemas import (
    ProfileResponse,
    ProfileUpsert,
    TournamentCreate,
    TournamentResponse,
    TournamentSettingsUpdate,
    http_error,
    tournament_response,
)
from brackets.services import tournament_service
from brackets.services.bracket_errors import BracketError
from brackets.services.tournament_store import SqlTournamentStore, row_to_state

router = APIRouter()


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    rows = session.exec(select(Tournament).order_by(Tournament.id)).all()
    return [tournament_response(row_to_state(row)) for row in rows]


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(payload: TournamentCreate, session: Session = Depends(get_session)):
    data = payload.model_dump(exclude={"title", "format"})
    try:
        state = tournament_service.create_tournament(
            SqlTournamentStore(session), payload.title, payload.format, **data
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    try:
        state = tournament_service.get_tournament(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.patch("/tournaments/{tournament_id}/settings", response_model=TournamentResponse)
def update_settings(
    tournament_id: int,
    payload: TournamentSettingsUpdate,
    session: Session = Depends(get_session),
):
    """Update group/playoff sizing and venues. Locked once the tournament has started."""
    try:
        state = tournament_service.update_settings(
            SqlTournamentStore(session), tournament_id, payload.model_dump(exclude_unset=True)
        )
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/entries/close", response_model=TournamentResponse)
def close_entries(tournament_id: int, session: Session = Depends(get_session)):
    """Lock the roster. No-op when entries are already closed."""
    try:
        state = tournament_service.close_entries(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/entries/open", response_model=TournamentResponse)
def open_entries(tournament_id: int, session: Session = Depends(get_session)):
    """Reopen the roster. Not allowed once the format is finalised."""
    try:
        state = tournament_service.open_entries(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/finalise", response_model=TournamentResponse)
def finalise_format(tournament_id: int, session: Session = Depends(get_session)):
    try:
        state = tournament_service.finalise_format(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/start", response_model=TournamentResponse)
def start_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """DRAFT -> ACTIVE once entries are closed and the format is finalised.

    Generates matches first if the tournament has none.
    """
    try:
        state = tournament_service.start_tournament(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.post("/tournaments/{tournament_id}/complete", response_model=TournamentResponse)
def complete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    try:
        state = tournament_service.complete_tournament(SqlTournamentStore(session), tournament_id)
    except BracketError as e:
        raise http_error(e)
    return tournament_response(state)


@router.put("/profiles/{ref}", response_model=ProfileResponse)
def upsert_profile(ref: str, payload: ProfileUpsert, session: Session = Depends(get_session)):
    """Create or replace the seeding stats for one player ref."""
    ref = ref.strip()
    if not ref:
        raise HTTPException(status_code=422, detail="ref is required")

    profile = session.get(PlayerProfile, ref)
    if profile is None:
        profile = PlayerProfile(ref=ref)
    for key, value in payload.model_dump().items():
        setattr(profile, key, value)
    profile.updated_at = datetime.now(timezone.utc)

    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile
