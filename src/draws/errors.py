"""
Exceptions raised by the draw engine.

Validation errors carry a human-readable message that the web layer returns
as-is to the organizer.
"""


class DrawError(Exception):
    """Base exception for all draw engine errors."""
    pass


class InvalidBracketSize(DrawError):
    """Raised when a bracket size is not a power of two >= 2, or too small."""
    def __init__(self, bracket_size, competitors: int = None):
        self.bracket_size = bracket_size
        self.competitors = competitors
        if competitors is not None:
            msg = f"Bracket of size {bracket_size} cannot hold {competitors} competitors"
        else:
            msg = f"Bracket size must be a power of two and at least 2 (got {bracket_size})"
        super().__init__(msg)


class TooManySeeds(DrawError):
    """Raised when more competitors are seeded than the bracket can place."""
    def __init__(self, seeded: int, limit: int):
        self.seeded = seeded
        self.limit = limit
        super().__init__(f"{seeded} seeded competitors, at most {limit} can be placed")


class DuplicateSeed(DrawError):
    """Raised when two competitors share a seed."""
    def __init__(self, seed: int):
        self.seed = seed
        super().__init__(f"Seed {seed} is assigned to more than one competitor")


class EmptyBracket(DrawError):
    """Raised when a bracket would contain no competitors."""
    def __init__(self):
        super().__init__("Cannot generate a bracket without competitors")


class InvalidWinner(DrawError):
    """Raised when a submitted winner is not one of the match's competitors."""
    pass


class InvalidStatusTransition(DrawError):
    """Raised when a match cannot move to the requested status."""
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change match status from '{current}' to '{requested}'")


class InvalidSeasonSetup(DrawError):
    """Raised when season play or playoffs cannot be generated."""
    pass


class InvalidSettings(DrawError):
    """Raised when event settings or request options have an unknown key or a value of the wrong type."""
    pass


class MatchNotFound(DrawError):
    """Raised when a match id does not exist in the event."""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


class StorageFailure(DrawError):
    """Raised when the event store cannot be read or written."""
    pass
