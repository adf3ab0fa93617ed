# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from brackets.models.player_profile import PlayerProfile  # noqa: F401
from brackets.models.tournament import Tournament  # noqa: F401
