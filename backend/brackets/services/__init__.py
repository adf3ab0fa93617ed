"""
Bracket engine services.

Engine modules (seeding, standings, playoffs, progression) operate on an
in-memory TournamentState and never touch the database or HTTP objects.
tournament_service wraps each engine step in a load -> mutate -> save cycle.
"""
