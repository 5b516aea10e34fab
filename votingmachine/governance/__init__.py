"""
Stake-weighted voting.

Provides:
  - VoteStatus / VotingState                       (status.py)
  - Staked / Withdrawn / VoteStarted / VotePlaced /
    VotingExecuted / EventLog                      (events.py)
  - VotingRecord / VotingMachine / outcome         (voting.py)
"""

from .status import BALLOT_STATUSES, VoteStatus, VotingState
from .events import (
    EventLog,
    Staked,
    VotePlaced,
    VoteStarted,
    VotingExecuted,
    Withdrawn,
)
from .voting import VotingMachine, VotingRecord, outcome

__all__ = [
    # Status
    "BALLOT_STATUSES",
    "VoteStatus",
    "VotingState",
    # Events
    "EventLog",
    "Staked",
    "VotePlaced",
    "VoteStarted",
    "VotingExecuted",
    "Withdrawn",
    # Machine
    "VotingMachine",
    "VotingRecord",
    "outcome",
]
