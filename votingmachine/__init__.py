"""
Stake-weighted voting machine over an AMM pool token.
"""

__version__ = "0.1.0"

from .exceptions import VotingMachineError
from .governance import VoteStatus, VotingMachine, VotingRecord
from .tokens import PoolToken

__all__ = [
    "PoolToken",
    "VoteStatus",
    "VotingMachine",
    "VotingMachineError",
    "VotingRecord",
]
