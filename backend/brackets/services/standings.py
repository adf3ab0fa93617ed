"""
Standings tables, derived on demand from played matches. Never persisted.

Ranking: points desc, goal difference desc, goals for desc, name
(case-insensitive) asc, ref asc. The tail of the key makes the order total,
so qualifier selection is deterministic.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence

from brackets.services.bracket_state import (
    FORMAT_ROUND_ROBIN,
    STAGE_ROUND_ROBIN,
    BracketMatch,
    TournamentState,
    side_name,
)

POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0


@dataclass
class StandingRow:
    ref: str
    name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["goal_difference"] = self.goal_difference
        return data


def standing_sort_key(row: StandingRow) -> tuple:
    return (-row.points, -row.goal_difference, -row.goals_for, row.name.casefold(), row.ref)


def _apply_result(a: StandingRow, b: StandingRow, score_a: int, score_b: int) -> None:
    a.played += 1
    b.played += 1
    a.goals_for += score_a
    a.goals_against += score_b
    b.goals_for += score_b
    b.goals_against += score_a

    if score_a > score_b:
        a.won += 1
        b.lost += 1
        a.points += POINTS_WIN
        b.points += POINTS_LOSS
    elif score_b > score_a:
        b.won += 1
        a.lost += 1
        b.points += POINTS_WIN
        a.points += POINTS_LOSS
    else:
        a.drawn += 1
        b.drawn += 1
        a.points += POINTS_DRAW
        b.points += POINTS_DRAW


def compute_table(members: Sequence[str], matches: Iterable[BracketMatch], names: Dict[str, str]) -> List[StandingRow]:
    """
    Fold played matches between members into ranked rows.

    Matches involving a non-member (or a BYE) are ignored.
    """
    rows: Dict[str, StandingRow] = {}
    for ref in members:
        rows[ref] = StandingRow(ref=ref, name=side_name(ref, names))

    for m in matches:
        if not m.is_played:
            continue
        a = rows.get(m.side_a)
        b = rows.get(m.side_b)
        if a is None or b is None:
            continue
        _apply_result(a, b, m.score_a, m.score_b)

    return sorted(rows.values(), key=standing_sort_key)


def compute_group_standings(state: TournamentState) -> Dict[str, List[StandingRow]]:
    """Ranked table per group id, in group order."""
    names = state.names_by_ref()
    by_group: Dict[str, List[BracketMatch]] = {g.id: [] for g in state.groups}
    for m in state.group_matches():
        if m.group_id in by_group:
            by_group[m.group_id].append(m)

    return {g.id: compute_table(g.members, by_group[g.id], names) for g in state.groups}


def compute_round_robin_standings(state: TournamentState) -> List[StandingRow]:
    """Single table over every entrant for the round_robin format."""
    names = state.names_by_ref()
    matches = [m for m in state.matches if m.stage == STAGE_ROUND_ROBIN]
    return compute_table([e.ref for e in state.entrants], matches, names)


def compute_standings(state: TournamentState) -> Dict[str, List[StandingRow]]:
    """Standings keyed by group id; the round_robin format uses the single key "all"."""
    if state.format == FORMAT_ROUND_ROBIN:
        return {"all": compute_round_robin_standings(state)}
    return compute_group_standings(state)
