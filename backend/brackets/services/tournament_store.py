"""
SQL-backed collaborators for the bracket engine.

SqlTournamentStore loads and saves the whole tournament aggregate.
SqlProfileProvider answers profile lookups for seeding.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Protocol, Sequence

from sqlalchemy import update
from sqlmodel import Session, select

from brackets.models.player_profile import PlayerProfile
from brackets.models.tournament import Tournament
from brackets.services.bracket_errors import ConcurrentModification, TournamentNotFound
from brackets.services.bracket_state import BracketMatch, Entrant, Group, TournamentState
from brackets.services.seed_rating import PlayerProfileData


class TournamentStore(Protocol):
    def create(self, state: TournamentState) -> TournamentState: ...

    def load(self, tournament_id: int) -> TournamentState: ...

    def save(self, state: TournamentState) -> TournamentState: ...


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back without tzinfo; they were written as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def row_to_state(row: Tournament) -> TournamentState:
    return TournamentState(
        id=row.id,
        title=row.title,
        format=row.format,
        status=(row.status or "DRAFT").upper(),
        entries_status=(row.entries_status or "OPEN").upper(),
        format_status=(row.format_status or "DRAFT").upper(),
        entries_closed_at=_aware(row.entries_closed_at),
        started_at=_aware(row.started_at),
        group_count=row.group_count,
        group_size=row.group_size,
        group_randomize=row.group_randomize,
        top_n_per_group=row.top_n_per_group,
        default_venue=row.default_venue or "",
        playoff_default_venue=row.playoff_default_venue or "",
        entrants=[Entrant.from_dict(e) for e in row.entrants or []],
        groups=[Group.from_dict(g) for g in row.groups or []],
        matches=[BracketMatch.from_dict(m) for m in row.matches or []],
        champion_name=row.champion_name or "",
        champion_ref=row.champion_ref or "",
        revision=row.revision or 0,
    )


def state_values(state: TournamentState) -> Dict:
    """Column values for a whole-aggregate write."""
    return {
        "title": state.title,
        "format": state.format,
        "status": state.status,
        "entries_status": state.entries_status,
        "format_status": state.format_status,
        "entries_closed_at": state.entries_closed_at,
        "started_at": state.started_at,
        "group_count": state.group_count,
        "group_size": state.group_size,
        "group_randomize": state.group_randomize,
        "top_n_per_group": state.top_n_per_group,
        "default_venue": state.default_venue,
        "playoff_default_venue": state.playoff_default_venue,
        "entrants": [e.to_dict() for e in state.entrants],
        "groups": [g.to_dict() for g in state.groups],
        "matches": [m.to_dict() for m in state.matches],
        "champion_name": state.champion_name,
        "champion_ref": state.champion_ref,
    }


class SqlTournamentStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, state: TournamentState) -> TournamentState:
        row = Tournament(**state_values(state), revision=0)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row_to_state(row)

    def load(self, tournament_id: int) -> TournamentState:
        row = self.session.get(Tournament, tournament_id)
        if not row:
            raise TournamentNotFound(f"Tournament {tournament_id} not found")
        return row_to_state(row)

    def save(self, state: TournamentState) -> TournamentState:
        """
        Replace the stored aggregate. The write only lands if nobody else
        saved since this state was loaded (revision compare-and-set).
        """
        values = state_values(state)
        values["revision"] = state.revision + 1
        values["updated_at"] = datetime.now(timezone.utc)

        result = self.session.execute(
            update(Tournament)
            .where(Tournament.id == state.id, Tournament.revision == state.revision)
            .values(**values)
        )
        if result.rowcount != 1:
            self.session.rollback()
            if self.session.get(Tournament, state.id) is None:
                raise TournamentNotFound(f"Tournament {state.id} not found")
            raise ConcurrentModification(
                f"Tournament {state.id} was modified by another request (revision {state.revision} is stale)"
            )
        self.session.commit()
        self.session.expire_all()
        state.revision += 1
        return state


class SqlProfileProvider:
    def __init__(self, session: Session):
        self.session = session

    def lookup_profiles(self, refs: Sequence[str]) -> Dict[str, PlayerProfileData]:
        if not refs:
            return {}
        rows = self.session.exec(select(PlayerProfile).where(PlayerProfile.ref.in_(list(refs)))).all()
        return {
            row.ref: PlayerProfileData(
                nickname=row.nickname,
                tag=row.tag,
                score=row.score or 0,
                rank_tier=row.rank_tier,
                total_winnings=row.total_winnings or 0,
                best_win_streak=row.best_win_streak or 0,
            )
            for row in rows
        }
