"""
Entrant seeding: raw refs or entrant records -> rated, ranked entrants.

Seeds are assigned by rating descending. The sort is stable so equal ratings
keep the order the entrants were submitted in.

Local (guest) entrants have no profile: they rate 0 and keep the name they
were entered with. Refs starting with "nm:" are always local.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from brackets.services.bracket_errors import InsufficientEntrants
from brackets.services.bracket_state import Entrant, TournamentState
from brackets.services.seed_rating import PlayerProfileData, compute_rating, pick_display_name

logger = logging.getLogger(__name__)

MIN_ENTRANTS = 2
LOCAL_REF_PREFIX = "nm:"


class ProfileProvider(Protocol):
    def lookup_profiles(self, refs: Sequence[str]) -> Dict[str, PlayerProfileData]: ...


@dataclass
class EntrantInput:
    """One submitted entrant. name, when given, wins over the profile name."""

    ref: str
    name: str = ""
    is_local: bool = False


def clean_refs(refs: Iterable[str]) -> List[str]:
    """Strip, drop blanks and duplicates (first occurrence wins)."""
    seen = set()
    out: List[str] = []
    for raw in refs or []:
        ref = str(raw or "").strip()
        if not ref or ref in seen:
            continue
        seen.add(ref)
        out.append(ref)
    return out


def clean_inputs(entries: Iterable[EntrantInput]) -> List[EntrantInput]:
    """Same rules as clean_refs, keyed on ref. Local flag is forced for nm: refs."""
    seen = set()
    out: List[EntrantInput] = []
    for entry in entries or []:
        ref = str(entry.ref or "").strip()
        if not ref or ref in seen:
            continue
        seen.add(ref)
        out.append(
            EntrantInput(
                ref=ref,
                name=str(entry.name or "").strip(),
                is_local=bool(entry.is_local) or ref.startswith(LOCAL_REF_PREFIX),
            )
        )
    return out


def _rank(entrants: List[Entrant]) -> List[Entrant]:
    ranked = sorted(entrants, key=lambda e: -e.rating)
    for i, entrant in enumerate(ranked):
        entrant.seed = i + 1
    return ranked


def _check_count(count: int) -> None:
    if count < MIN_ENTRANTS:
        raise InsufficientEntrants(f"Provide at least {MIN_ENTRANTS} entrants, got {count}")


def build_seeded_entrants(refs: Sequence[str], profiles: Mapping[str, PlayerProfileData]) -> List[Entrant]:
    """Rate each ref and assign seeds 1..n. Input order breaks rating ties."""
    _check_count(len(refs))
    entrants = []
    for ref in refs:
        profile = profiles.get(ref)
        entrants.append(Entrant(ref=ref, name=pick_display_name(profile), rating=compute_rating(profile)))
    return _rank(entrants)


def build_seeded_entrant_records(
    entries: Sequence[EntrantInput], profiles: Mapping[str, PlayerProfileData]
) -> List[Entrant]:
    _check_count(len(entries))
    entrants = []
    for entry in entries:
        profile: Optional[PlayerProfileData] = None if entry.is_local else profiles.get(entry.ref)
        entrants.append(
            Entrant(
                ref=entry.ref,
                name=entry.name or pick_display_name(profile),
                rating=compute_rating(profile),
                is_local=entry.is_local,
            )
        )
    return _rank(entrants)


def _log_missing(state: TournamentState, refs: Sequence[str], profiles: Mapping[str, PlayerProfileData]) -> None:
    missing = [ref for ref in refs if ref not in profiles]
    if missing:
        logger.warning("Tournament %s: %d entrant(s) have no profile: %s", state.id, len(missing), missing)


def seed_entrants(state: TournamentState, refs: Iterable[str], provider: ProfileProvider) -> TournamentState:
    """
    Replace the tournament's entrants with a freshly seeded list.

    Groups, matches, playoff venue and champion are discarded.
    """
    cleaned = clean_refs(refs)
    _check_count(len(cleaned))

    profiles = provider.lookup_profiles(cleaned)
    entrants = build_seeded_entrants(cleaned, profiles)
    state.replace_entrants(entrants)

    _log_missing(state, cleaned, profiles)
    logger.info("Tournament %s: seeded %d entrants", state.id, len(entrants))
    return state


def seed_entrant_records(
    state: TournamentState, entries: Iterable[EntrantInput], provider: ProfileProvider
) -> TournamentState:
    """seed_entrants for entrant records; only non-local refs are looked up."""
    cleaned = clean_inputs(entries)
    _check_count(len(cleaned))

    lookup = [e.ref for e in cleaned if not e.is_local]
    profiles = provider.lookup_profiles(lookup) if lookup else {}
    entrants = build_seeded_entrant_records(cleaned, profiles)
    state.replace_entrants(entrants)

    _log_missing(state, lookup, profiles)
    logger.info(
        "Tournament %s: seeded %d entrants (%d local)",
        state.id,
        len(entrants),
        sum(1 for e in entrants if e.is_local),
    )
    return state
