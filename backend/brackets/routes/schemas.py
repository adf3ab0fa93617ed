"""
Request/response models shared by the tournament and bracket routers.
"""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, field_validator, model_validator

from brackets.services.bracket_errors import BracketError
from brackets.services.bracket_state import TournamentState
from brackets.services.standings import StandingRow


def http_error(e: BracketError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


class EntrantOut(BaseModel):
    ref: str
    name: str
    rating: int
    seed: int
    is_local: bool = False


class GroupOut(BaseModel):
    id: str
    name: str
    members: List[str]


class MatchOut(BaseModel):
    id: str
    stage: str
    group_id: Optional[str] = None
    round: int
    sequence: int
    side_a: str
    side_b: str
    side_a_name: str
    side_b_name: str
    venue: str
    scheduled_at: Optional[datetime] = None
    score_a: int
    score_b: int
    status: str


class TournamentResponse(BaseModel):
    id: int
    title: str
    format: str
    status: str
    entries_status: str
    format_status: str
    entries_closed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    group_count: int
    group_size: int
    group_randomize: bool
    top_n_per_group: int
    default_venue: str
    playoff_default_venue: str
    entrants: List[EntrantOut]
    groups: List[GroupOut]
    matches: List[MatchOut]
    champion_name: str
    champion_ref: str
    revision: int


def tournament_response(state: TournamentState) -> TournamentResponse:
    return TournamentResponse(
        id=state.id,
        title=state.title,
        format=state.format,
        status=state.status,
        entries_status=state.entries_status,
        format_status=state.format_status,
        entries_closed_at=state.entries_closed_at,
        started_at=state.started_at,
        group_count=state.group_count,
        group_size=state.group_size,
        group_randomize=state.group_randomize,
        top_n_per_group=state.top_n_per_group,
        default_venue=state.default_venue,
        playoff_default_venue=state.playoff_default_venue,
        entrants=[EntrantOut(**e.to_dict()) for e in state.entrants],
        groups=[GroupOut(**g.to_dict()) for g in state.groups],
        matches=[MatchOut(**m.to_dict()) for m in state.matches],
        champion_name=state.champion_name,
        champion_ref=state.champion_ref,
        revision=state.revision,
    )


class StandingOut(BaseModel):
    ref: str
    name: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


def standings_response(standings: Dict[str, List[StandingRow]]) -> Dict[str, List[StandingOut]]:
    return {gid: [StandingOut(**row.to_dict()) for row in rows] for gid, rows in standings.items()}


class TournamentCreate(BaseModel):
    title: str
    format: str = "group_stage"
    group_count: Optional[int] = None
    group_size: Optional[int] = None
    group_randomize: Optional[bool] = None
    top_n_per_group: Optional[int] = None
    default_venue: Optional[str] = None
    playoff_default_venue: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title is required")
        return v.strip()


class TournamentSettingsUpdate(BaseModel):
    title: Optional[str] = None
    group_count: Optional[int] = None
    group_size: Optional[int] = None
    group_randomize: Optional[bool] = None
    top_n_per_group: Optional[int] = None
    default_venue: Optional[str] = None
    playoff_default_venue: Optional[str] = None

    @field_validator("group_count", "top_n_per_group")
    @classmethod
    def validate_positive(cls, v):
        if v is not None and v < 1:
            raise ValueError("must be >= 1")
        return v


class EntrantIn(BaseModel):
    ref: str
    name: str = ""
    is_local: bool = False


class EntrantsUpdate(BaseModel):
    """Either plain profile refs or entrant records (which may be local guests)."""

    entrant_ids: Optional[List[str]] = None
    entrants: Optional[List[EntrantIn]] = None

    @model_validator(mode="after")
    def validate_entrants(self):
        if self.entrants is None and self.entrant_ids is None:
            raise ValueError("Provide entrants (records) or entrant_ids")
        return self



class GroupsGenerate(BaseModel):
    group_count: Optional[int] = None
    group_size: Optional[int] = None
    randomize: Optional[bool] = None


class VenueRequest(BaseModel):
    default_venue: str = ""


class MatchesGenerate(BaseModel):
    format: Optional[str] = None
    default_venue: Optional[str] = None


class PlayoffsGenerate(BaseModel):
    default_venue: str = ""
    top_n_per_group: Optional[int] = None


class MatchUpdate(BaseModel):
    side_a: Optional[str] = None
    side_b: Optional[str] = None
    side_a_name: Optional[str] = None
    side_b_name: Optional[str] = None
    venue: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    status: Optional[str] = None


class ProgressResponse(BaseModel):
    created_matches: int
    champion_name: str


class ProfileUpsert(BaseModel):
    nickname: Optional[str] = None
    tag: Optional[str] = None
    score: float = 0
    rank_tier: Optional[str] = None
    total_winnings: float = 0
    best_win_streak: int = 0


class ProfileResponse(ProfileUpsert):
    ref: str
    updated_at: datetime

    class Config:
        from_attributes = True
