"""Ballot / outcome and lifecycle enums."""

from enum import Enum, IntEnum


class VoteStatus(IntEnum):
    """Ballot choice, and the frozen outcome of an executed voting."""
    NONE = 0
    ACCEPT = 1
    REJECT = 2
    NOT_APPLIED = 3   # Participation did not clear the quorum floor

    @classmethod
    def parse(cls, value) -> "VoteStatus":
        """Accept a member, its integer value, or its name (any casing)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls[value.strip().upper()]
        if isinstance(value, bool):
            raise ValueError(f"Not a vote status: {value!r}")
        return cls(value)


# Statuses a voter may cast
BALLOT_STATUSES = frozenset({VoteStatus.ACCEPT, VoteStatus.REJECT})


class VotingState(str, Enum):
    OPEN = "OPEN"
    EXPIRED = "EXPIRED"       # Past expiry, awaiting execution
    EXECUTED = "EXECUTED"     # Terminal
