"""
Typed failures raised by the bracket engine.

Routes translate these into HTTPException using ``status_code``.
"""


class BracketError(Exception):
    """Base class for bracket engine failures"""

    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = str(self.args[0])


class InsufficientEntrants(BracketError):
    """At least 2 entrants are required"""


class EntrantsNotSet(BracketError):
    """Entrants not set"""


class GroupsNotGenerated(BracketError):
    """Groups not generated"""


class TournamentNotFound(BracketError):
    """Tournament not found"""

    status_code = 404


class MatchNotFound(BracketError):
    """Match not found"""

    status_code = 404


class InvalidFormat(BracketError):
    """Operation not allowed for this tournament format"""


class PlayoffDrawNotAllowed(BracketError):
    """Playoff matches cannot end in a draw"""

    status_code = 422


class InvalidMatchUpdate(BracketError):
    """Invalid match update"""

    status_code = 422


class TournamentLocked(BracketError):
    """Tournament is locked"""

    status_code = 409


class ConcurrentModification(BracketError):
    """Tournament was modified by another request"""

    status_code = 409


class NotReadyToStart(BracketError):
    """Tournament is not ready to start"""
