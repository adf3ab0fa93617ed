from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from brackets.models.tournament import utc_now


class PlayerProfile(SQLModel, table=True):
    """Local copy of the profile stats used for seeding."""

    ref: str = Field(primary_key=True)
    nickname: Optional[str] = None
    tag: Optional[str] = None
    score: float = Field(default=0)
    rank_tier: Optional[str] = None  # "PRO" | "ADVANCED" | "INTERMEDIATE" | "BEGINNER"
    total_winnings: float = Field(default=0)
    best_win_streak: int = Field(default=0)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
