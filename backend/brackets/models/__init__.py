from brackets.models.player_profile import PlayerProfile
from brackets.models.tournament import Tournament

__all__ = [
    "Tournament",
    "PlayerProfile",
]
