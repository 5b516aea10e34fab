"""
Stake-weight token collaborator.

Provides:
  - StakeToken   (interface the voting machine consumes)
  - PoolToken    (in-memory ERC-20–shaped pool token)
"""

from .pool_token import (
    ApprovalEvent,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    PoolToken,
    StakeToken,
    TokenError,
    TransferEvent,
)

__all__ = [
    "ApprovalEvent",
    "InsufficientAllowanceError",
    "InsufficientBalanceError",
    "PoolToken",
    "StakeToken",
    "TokenError",
    "TransferEvent",
]
