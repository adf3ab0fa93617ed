import os
from pathlib import Path
from typing import Any, Generator, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./brackets.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")


def build_engine(url: str, echo: bool = False, **kwargs: Any) -> Engine:
    """
    Engine for a database URL.

    SQLite connections are opened with check_same_thread=False because sync
    routes run in FastAPI's threadpool. File-backed SQLite gets its parent
    directory created.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" not in url:
            Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=echo, connect_args=connect_args, **kwargs)


engine: Engine = build_engine(DATABASE_URL, echo=SQL_ECHO)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the tournament and profile tables (defaults to the app engine)"""
    # Import all models to ensure they're registered with SQLModel metadata
    from brackets.models.player_profile import PlayerProfile  # noqa: F401
    from brackets.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
