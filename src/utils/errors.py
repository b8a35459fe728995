"""
Typed failures raised by the arena engine.

Invalid input is rejected with one of these before any state is touched.
Inconsistent-state situations (re-applied results, redundant stage
generation) are not errors and never raise.
"""


class ArenaError(Exception):
    """Base class for all arena errors."""


class InvalidInputError(ArenaError, ValueError):
    """A request is incompatible with the current roster or settings."""


class InvalidResultError(InvalidInputError):
    """A match result does not fit the match it was submitted for."""


class UnknownCompetitorError(InvalidInputError):
    """A competitor id is not part of the roster."""

    def __init__(self, competitor_id: str):
        super().__init__(f"Unknown competitor: {competitor_id}")
        self.competitor_id = competitor_id


class UnknownTournamentError(InvalidInputError):
    """A tournament id is not known to the session."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Unknown tournament: {tournament_id}")
        self.tournament_id = tournament_id
