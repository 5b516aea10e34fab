"""
Voting Machine Exceptions

Every failure is a synchronous precondition rejection that leaves the
machine untouched. Each class carries a stable ``code`` (its taxonomy name)
and a stable, human-readable ``reason`` that callers may assert on.
"""

from typing import Optional


class VotingMachineError(Exception):
    """Base exception for the voting machine."""

    code = "VotingMachineError"
    reason = "voting machine error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = self.reason if not detail else f"{self.reason}: {detail}"
        super().__init__(message)


class InvalidConfiguration(VotingMachineError):
    """Construction-time configuration is unusable."""
    code = "InvalidConfiguration"
    reason = "invalid configuration"


class InvalidAmount(VotingMachineError):
    """Stake or withdraw amount is zero (or not a positive integer)."""
    code = "InvalidAmount"
    reason = "amount must be greater than zero"


class InsufficientBalance(VotingMachineError):
    """Withdrawal would underflow the staked balance."""
    code = "InsufficientBalance"
    reason = "subtraction overflow: amount exceeds staked balance"


class TransferNotAuthorized(VotingMachineError):
    """The stake token declined to move funds into custody."""
    code = "TransferNotAuthorized"
    reason = "token transfer not authorized"


class NoStakePresent(VotingMachineError):
    """Only stakers may open a voting."""
    code = "NoStakePresent"
    reason = "caller has no stake"


class VoteNotFound(VotingMachineError):
    code = "VoteNotFound"
    reason = "voting does not exist"


class InvalidVoteStatus(VotingMachineError):
    code = "InvalidVoteStatus"
    reason = "vote status must be ACCEPT or REJECT"


class DuplicateVote(VotingMachineError):
    code = "DuplicateVote"
    reason = "caller has already voted"


class VotingClosed(VotingMachineError):
    code = "VotingClosed"
    reason = "voting period has ended"


class VotingStillOpen(VotingMachineError):
    code = "VotingStillOpen"
    reason = "voting period has not ended"


class AlreadyExecuted(VotingMachineError):
    code = "AlreadyExecuted"
    reason = "voting already executed"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        InvalidConfiguration,
        InvalidAmount,
        InsufficientBalance,
        TransferNotAuthorized,
        NoStakePresent,
        VoteNotFound,
        InvalidVoteStatus,
        DuplicateVote,
        VotingClosed,
        VotingStillOpen,
        AlreadyExecuted,
    )
}
