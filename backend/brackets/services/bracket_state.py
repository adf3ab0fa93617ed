"""
In-memory tournament aggregate used by every bracket operation.

The aggregate is loaded once per operation, mutated here, and saved back whole.
Collections hold plain value records keyed by string refs; there is no object
graph between matches. Bracket adjacency is derived from (round, sequence).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

BYE = "BYE"
DEFAULT_PLAYER_NAME = "Player"

STAGE_GROUP = "group"
STAGE_PLAYOFF = "playoff"
STAGE_ROUND_ROBIN = "round_robin"
STAGE_KNOCKOUT = "knockout"
STAGE_DOUBLE_ELIM = "double_elim"

MATCH_SCHEDULED = "scheduled"
MATCH_PLAYED = "played"
MATCH_STATUSES = (MATCH_SCHEDULED, MATCH_PLAYED)

FORMAT_GROUP_STAGE = "group_stage"
FORMAT_ROUND_ROBIN = "round_robin"
FORMAT_KNOCKOUT = "knockout"
FORMAT_DOUBLE_ELIM = "double_elim"
FORMATS = (FORMAT_GROUP_STAGE, FORMAT_ROUND_ROBIN, FORMAT_KNOCKOUT, FORMAT_DOUBLE_ELIM)
FORMAT_ALIASES = {"double_elimination": FORMAT_DOUBLE_ELIM}

TOURNAMENT_DRAFT = "DRAFT"
TOURNAMENT_ACTIVE = "ACTIVE"
TOURNAMENT_LIVE = "LIVE"
TOURNAMENT_COMPLETED = "COMPLETED"
TOURNAMENT_STATUSES = (TOURNAMENT_DRAFT, TOURNAMENT_ACTIVE, TOURNAMENT_LIVE, TOURNAMENT_COMPLETED)

ENTRIES_OPEN = "OPEN"
ENTRIES_CLOSED = "CLOSED"

FORMAT_STATUS_DRAFT = "DRAFT"
FORMAT_STATUS_CONFIGURED = "CONFIGURED"
FORMAT_STATUS_FINALISED = "FINALISED"

_GROUP_ID_RE = re.compile(r"^g_([A-Z]+)_(\d+)$")
_PLAYOFF_ID_RE = re.compile(r"^po_r(\d+)_(\d+)$")
_FLAT_ID_RE = re.compile(r"^(rr|ko)_(\d+)$")
_DOUBLE_ELIM_ID_RE = re.compile(r"^de_wb_r(\d+)_(\d+)$")


def normalize_format(name: Optional[str]) -> str:
    """Canonical format name; "double_elimination" is accepted for "double_elim"."""
    fmt = str(name or "").strip().lower()
    return FORMAT_ALIASES.get(fmt, fmt)


def is_bye(side: Optional[str]) -> bool:
    """BYE sentinel check, case-insensitive."""
    return str(side or "").strip().upper() == BYE


def format_match_id(stage: str, round_number: int, sequence: int, group_id: Optional[str] = None) -> str:
    """Display id: g_<group>_<n>, po_r<round>_<n>, rr_<n>, ko_<n> or de_wb_r<round>_<n>."""
    if stage == STAGE_GROUP:
        return f"g_{group_id}_{sequence}"
    if stage == STAGE_PLAYOFF:
        return f"po_r{round_number}_{sequence}"
    if stage == STAGE_ROUND_ROBIN:
        return f"rr_{sequence}"
    if stage == STAGE_KNOCKOUT:
        return f"ko_{sequence}"
    if stage == STAGE_DOUBLE_ELIM:
        return f"de_wb_r{round_number}_{sequence}"
    raise ValueError(f"Unknown match stage: {stage}")


def parse_match_id(match_id: str) -> Tuple[str, Optional[str], int, int]:
    """
    Recover (stage, group_id, round, sequence) from a display id.

    Only used for stored documents that predate the explicit round/sequence
    fields. Raises ValueError for ids that match no known family.
    """
    s = str(match_id or "").strip()
    m = _GROUP_ID_RE.match(s)
    if m:
        return STAGE_GROUP, m.group(1), 1, int(m.group(2))
    m = _PLAYOFF_ID_RE.match(s)
    if m:
        return STAGE_PLAYOFF, None, int(m.group(1)), int(m.group(2))
    m = _FLAT_ID_RE.match(s)
    if m:
        stage = STAGE_ROUND_ROBIN if m.group(1) == "rr" else STAGE_KNOCKOUT
        return stage, None, 1, int(m.group(2))
    m = _DOUBLE_ELIM_ID_RE.match(s)
    if m:
        return STAGE_DOUBLE_ELIM, None, int(m.group(1)), int(m.group(2))
    raise ValueError(f"Unrecognized match id: {match_id!r}")


@dataclass
class Entrant:
    ref: str
    name: str = ""
    rating: int = 0
    seed: int = 0
    is_local: bool = False

    def display_name(self) -> str:
        return self.name.strip() or DEFAULT_PLAYER_NAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ref": self.ref,
            "name": self.name,
            "rating": self.rating,
            "seed": self.seed,
            "is_local": self.is_local,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entrant":
        return cls(
            ref=str(data.get("ref") or ""),
            name=str(data.get("name") or ""),
            rating=int(data.get("rating") or 0),
            seed=int(data.get("seed") or 0),
            is_local=bool(data.get("is_local", False)),
        )


@dataclass
class Group:
    id: str
    name: str
    members: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "members": list(self.members)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        gid = str(data.get("id") or "")
        return cls(
            id=gid,
            name=str(data.get("name") or f"Group {gid}"),
            members=[str(m) for m in data.get("members") or []],
        )


@dataclass
class BracketMatch:
    stage: str
    round: int
    sequence: int
    side_a: str
    side_b: str
    side_a_name: str = ""
    side_b_name: str = ""
    group_id: Optional[str] = None
    venue: str = ""
    scheduled_at: Optional[datetime] = None
    score_a: int = 0
    score_b: int = 0
    status: str = MATCH_SCHEDULED

    @property
    def id(self) -> str:
        return format_match_id(self.stage, self.round, self.sequence, self.group_id)

    @property
    def is_group(self) -> bool:
        return self.stage == STAGE_GROUP

    @property
    def is_playoff(self) -> bool:
        return self.stage == STAGE_PLAYOFF

    @property
    def is_played(self) -> bool:
        return self.status == MATCH_PLAYED

    @property
    def has_bye(self) -> bool:
        return is_bye(self.side_a) or is_bye(self.side_b)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stage": self.stage,
            "group_id": self.group_id,
            "round": self.round,
            "sequence": self.sequence,
            "side_a": self.side_a,
            "side_b": self.side_b,
            "side_a_name": self.side_a_name,
            "side_b_name": self.side_b_name,
            "venue": self.venue,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "score_a": self.score_a,
            "score_b": self.score_b,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketMatch":
        stage = data.get("stage")
        group_id = data.get("group_id")
        round_number = data.get("round")
        sequence = data.get("sequence")
        if not stage or round_number is None or sequence is None:
            # legacy document: only the display id was stored
            stage, group_id, round_number, sequence = parse_match_id(data.get("id", ""))

        scheduled_at = data.get("scheduled_at")
        if isinstance(scheduled_at, str):
            scheduled_at = datetime.fromisoformat(scheduled_at)

        return cls(
            stage=stage,
            group_id=group_id,
            round=int(round_number),
            sequence=int(sequence),
            side_a=str(data.get("side_a") or ""),
            side_b=str(data.get("side_b") or ""),
            side_a_name=str(data.get("side_a_name") or ""),
            side_b_name=str(data.get("side_b_name") or ""),
            venue=str(data.get("venue") or ""),
            scheduled_at=scheduled_at,
            score_a=int(data.get("score_a") or 0),
            score_b=int(data.get("score_b") or 0),
            status=str(data.get("status") or MATCH_SCHEDULED),
        )


def side_name(ref: str, names: Dict[str, str]) -> str:
    if is_bye(ref):
        return BYE
    return names.get(ref) or DEFAULT_PLAYER_NAME


def make_match(
    stage: str,
    round_number: int,
    sequence: int,
    side_a: str,
    side_b: str,
    names: Dict[str, str],
    venue: str = "",
    group_id: Optional[str] = None,
) -> BracketMatch:
    """New scheduled match with display names resolved from the entrant snapshot."""
    a = str(side_a or "").strip()
    b = str(side_b or "").strip()
    return BracketMatch(
        stage=stage,
        round=round_number,
        sequence=sequence,
        group_id=group_id,
        side_a=BYE if is_bye(a) else a,
        side_b=BYE if is_bye(b) else b,
        side_a_name=side_name(a, names),
        side_b_name=side_name(b, names),
        venue=str(venue or "").strip(),
    )


@dataclass
class TournamentState:
    """Aggregate root for one tournament."""

    id: Optional[int] = None
    title: str = ""
    format: str = FORMAT_GROUP_STAGE
    status: str = TOURNAMENT_DRAFT
    entries_status: str = ENTRIES_OPEN
    format_status: str = FORMAT_STATUS_DRAFT
    entries_closed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    group_count: int = 2
    group_size: int = 0
    group_randomize: bool = False
    top_n_per_group: int = 1
    default_venue: str = ""
    playoff_default_venue: str = ""
    entrants: List[Entrant] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    matches: List[BracketMatch] = field(default_factory=list)
    champion_name: str = ""
    champion_ref: str = ""
    revision: int = 0

    # -- lifecycle ---------------------------------------------------------

    def is_started(self) -> bool:
        return (self.status or TOURNAMENT_DRAFT).upper() != TOURNAMENT_DRAFT

    def entries_closed(self) -> bool:
        return (self.entries_status or ENTRIES_OPEN).upper() == ENTRIES_CLOSED

    def format_finalised(self) -> bool:
        return (self.format_status or FORMAT_STATUS_DRAFT).upper() == FORMAT_STATUS_FINALISED

    def roster_lock_reason(self) -> Optional[str]:
        """Why entrants, groups and the schedule can no longer change, or None."""
        if self.is_started():
            return "Tournament already started. Entrants are locked."
        if self.format_finalised():
            return "Tournament format is finalised. Entrants are locked."
        if self.entries_closed():
            return "Entries are closed. Entrants are locked."
        return None

    # -- lookups -----------------------------------------------------------

    def names_by_ref(self) -> Dict[str, str]:
        return {e.ref: e.display_name() for e in self.entrants}

    def find_match(self, match_id: str) -> Optional[BracketMatch]:
        wanted = str(match_id or "").strip()
        for m in self.matches:
            if m.id == wanted:
                return m
        return None

    def group_matches(self) -> List[BracketMatch]:
        return [m for m in self.matches if m.is_group]

    def has_group_matches(self) -> bool:
        return any(m.is_group for m in self.matches)

    def playoff_round(self, round_number: int) -> List[BracketMatch]:
        """Playoff matches of one round, ordered by position."""
        return sorted(
            (m for m in self.matches if m.is_playoff and m.round == round_number),
            key=lambda m: m.sequence,
        )

    def max_playoff_round(self) -> int:
        return max((m.round for m in self.matches if m.is_playoff), default=0)

    # -- destructive resets ------------------------------------------------

    def reset_champion(self) -> None:
        self.champion_name = ""
        self.champion_ref = ""

    def remove_playoffs(self) -> None:
        self.matches = [m for m in self.matches if not m.is_playoff]
        self.reset_champion()

    def remove_playoff_rounds_after(self, round_number: int) -> None:
        self.matches = [m for m in self.matches if not (m.is_playoff and m.round > round_number)]
        self.reset_champion()

    def replace_matches(self, matches: List[BracketMatch]) -> None:
        self.matches = list(matches)
        self.reset_champion()

    def replace_groups(self, groups: List[Group]) -> None:
        self.groups = list(groups)
        self.matches = []
        self.playoff_default_venue = ""
        self.reset_champion()

    def replace_entrants(self, entrants: List[Entrant]) -> None:
        self.entrants = list(entrants)
        self.groups = []
        self.matches = []
        self.playoff_default_venue = ""
        self.reset_champion()
