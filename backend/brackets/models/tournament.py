from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Tournament(SQLModel, table=True):
    """
    One tournament aggregate. Entrants, groups and matches are embedded JSON
    arrays and are always written back whole.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(default="")
    format: str = Field(default="group_stage")  # "group_stage" | "round_robin" | "knockout" | "double_elim"
    status: str = Field(default="DRAFT")  # DRAFT | ACTIVE | LIVE | COMPLETED

    # Roster / format lifecycle, both must be locked in before start
    entries_status: str = Field(default="OPEN")  # OPEN | CLOSED
    format_status: str = Field(default="DRAFT")  # DRAFT | CONFIGURED | FINALISED
    entries_closed_at: Optional[datetime] = Field(default=None)
    started_at: Optional[datetime] = Field(default=None)

    group_count: int = Field(default=2)
    group_size: int = Field(default=0)
    group_randomize: bool = Field(default=False)
    top_n_per_group: int = Field(default=1)

    default_venue: str = Field(default="")
    playoff_default_venue: str = Field(default="")

    entrants: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    groups: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    matches: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    champion_name: str = Field(default="")
    champion_ref: str = Field(default="")

    # Optimistic concurrency: bumped on every save
    revision: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
