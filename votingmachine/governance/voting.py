"""
Stake-Weighted Voting Machine

Implements:
  - Custody of staked pool tokens (stake / withdraw, 1:1 with the token)
  - Time-boxed votings opened by stakers
  - One ballot per account per voting, weighted by the live staked balance
  - Execution after expiry against a total-supply snapshot:
    NOT_APPLIED below the participation floor, otherwise ACCEPT on a strict
    majority and REJECT on everything else (ties included)
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Set

from ..logger import get_logger
from ..clock import SystemClock
from ..constants import (
    BPS_DENOMINATOR,
    VOTING_MACHINE_ADDRESS,
    VOTING_QUORUM_BPS,
    VOTING_SECONDS_PER_DAY,
    ZERO_ADDRESS,
)
from ..exceptions import (
    AlreadyExecuted,
    DuplicateVote,
    InsufficientBalance,
    InvalidAmount,
    InvalidConfiguration,
    InvalidVoteStatus,
    NoStakePresent,
    TransferNotAuthorized,
    VoteNotFound,
    VotingClosed,
    VotingStillOpen,
)
from ..tokens import StakeToken, TokenError
from .events import (
    EventLog,
    Staked,
    VotePlaced,
    VoteStarted,
    VotingExecuted,
    Withdrawn,
)
from .status import BALLOT_STATUSES, VoteStatus, VotingState

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  VOTING RECORD
# ══════════════════════════════════════════════════════════════════════

@dataclass
class VotingRecord:
    """
    One voting round.

    Fields:
        id:               Sequential identifier, starting at 0
        created_at:       Ledger timestamp at creation
        duration:         Length of the voting window in seconds
        description:      Free-text label
        executed:         Set exactly once by execution
        total_accepted:   Summed ACCEPT weight
        total_rejected:   Summed REJECT weight
        total_supply:     Reference supply sampled at execution (0 before)
        result:           Frozen outcome (NONE until executed)
        voters:           Accounts that have cast a ballot
    """
    id: int
    created_at: int
    duration: int
    description: str
    executed: bool = False
    total_accepted: int = 0
    total_rejected: int = 0
    total_supply: int = 0
    result: VoteStatus = VoteStatus.NONE
    voters: Set[str] = field(default_factory=set)

    @property
    def expires_at(self) -> int:
        return self.created_at + self.duration

    @property
    def total_votes(self) -> int:
        return self.total_accepted + self.total_rejected

    def is_open(self, now: int) -> bool:
        """Ballots are accepted up to and including the expiry instant."""
        return now <= self.expires_at

    def state(self, now: int) -> VotingState:
        if self.executed:
            return VotingState.EXECUTED
        if self.is_open(now):
            return VotingState.OPEN
        return VotingState.EXPIRED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "duration": self.duration,
            "expiresAt": self.expires_at,
            "description": self.description,
            "executed": self.executed,
            "totalAccepted": str(self.total_accepted),
            "totalRejected": str(self.total_rejected),
            "totalSupply": str(self.total_supply),
            "result": self.result.name,
            "voters": sorted(self.voters),
        }


def outcome(
    total_accepted: int,
    total_rejected: int,
    total_supply: int,
    quorum_bps: int,
) -> VoteStatus:
    """
    Outcome of a closed voting.

    Participation at or below ``total_supply * quorum_bps / 10000`` yields
    NOT_APPLIED. The comparison is done on integers so no rounding occurs.
    """
    participation = total_accepted + total_rejected
    if participation * BPS_DENOMINATOR <= total_supply * quorum_bps:
        return VoteStatus.NOT_APPLIED
    if total_accepted > total_rejected:
        return VoteStatus.ACCEPT
    return VoteStatus.REJECT


# ══════════════════════════════════════════════════════════════════════
#  VOTING MACHINE
# ══════════════════════════════════════════════════════════════════════

class VotingMachine:
    """
    Stake ledger plus voting state machine.

    Every mutating call takes the acting account as ``caller`` and is
    all-or-nothing: preconditions and the token transfer are settled before
    the ledger or any voting is touched. Mutations are serialized through a
    single re-entrant lock.
    """

    def __init__(
        self,
        token: StakeToken,
        *,
        address: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
        get_total_supply_fn: Optional[Callable[[], int]] = None,
        quorum_bps: Optional[int] = None,
        seconds_per_day: Optional[int] = None,
    ):
        """
        Args:
            token:               Stake-weight (pool) token to custody
            address:             Custody account of the machine on the token
            clock:               Callable() → int  (ledger timestamp, seconds)
            get_total_supply_fn: Callable() → int  (reference supply; defaults to token supply)
            quorum_bps:          Participation floor in basis points of supply
            seconds_per_day:     Length of one voting day in seconds (defaults to VOTING_SECONDS_PER_DAY)
        """
        if token is None or getattr(token, "address", None) in (None, "", ZERO_ADDRESS):
            raise InvalidConfiguration("stake token address cannot be zero")

        if quorum_bps is None:
            try:
                quorum_bps = int(VOTING_QUORUM_BPS)
            except ValueError as e:
                raise InvalidConfiguration(f"VOTING_QUORUM_BPS={VOTING_QUORUM_BPS!r}") from e
        if seconds_per_day is None:
            try:
                seconds_per_day = int(VOTING_SECONDS_PER_DAY)
            except ValueError as e:
                raise InvalidConfiguration(
                    f"VOTING_SECONDS_PER_DAY={VOTING_SECONDS_PER_DAY!r}"
                ) from e
        if not isinstance(quorum_bps, int) or not 0 <= quorum_bps <= BPS_DENOMINATOR:
            raise InvalidConfiguration(
                f"quorum must be 0-{BPS_DENOMINATOR} bps, got {quorum_bps!r}"
            )
        if not isinstance(seconds_per_day, int) or seconds_per_day <= 0:
            raise InvalidConfiguration(
                f"seconds per day must be positive, got {seconds_per_day!r}"
            )

        address = address or str(VOTING_MACHINE_ADDRESS)
        if address == ZERO_ADDRESS:
            raise InvalidConfiguration("machine address cannot be zero")

        self._token = token
        self.address = address
        self._clock = clock or SystemClock()
        self._get_total_supply = get_total_supply_fn or (lambda: token.total_supply)
        self.quorum_bps = quorum_bps
        self.seconds_per_day = seconds_per_day

        self._balances: Dict[str, int] = {}
        self._votings: List[VotingRecord] = []
        self._events = EventLog()
        self._lock = threading.RLock()

        logger.info(
            f"Voting machine {address} ready (token={token.address}, quorum={quorum_bps} bps)"
        )

    # ── Read accessors ────────────────────────────────────────────────

    @property
    def balancer_lp_token(self) -> StakeToken:
        return self._token

    @property
    def balancer_pool(self) -> StakeToken:
        return self._token

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def voting_count(self) -> int:
        return len(self._votings)

    @property
    def total_staked(self) -> int:
        return sum(self._balances.values())

    def now(self) -> int:
        return int(self._clock())

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def get_voting(self, voting_id: int) -> VotingRecord:
        """Detached copy of a voting; mutating it does not touch the machine."""
        with self._lock:
            record = self._require_voting(voting_id)
            return replace(record, voters=set(record.voters))

    def has_voted(self, voting_id: int, account: str) -> bool:
        return account in self._require_voting(voting_id).voters

    def voting_state(self, voting_id: int) -> VotingState:
        return self._require_voting(voting_id).state(self.now())

    # ── Staking ───────────────────────────────────────────────────────

    def stake(self, caller: str, amount: int) -> Staked:
        """Pull *amount* pool tokens from *caller* into custody."""
        _require_amount(amount)
        with self._lock:
            try:
                self._token.transfer_from(self.address, caller, self.address, amount)
            except TokenError as e:
                raise TransferNotAuthorized(str(e)) from e

            self._balances[caller] = self.balance_of(caller) + amount
            event = self._events.append(Staked(user=caller, amount=amount))

        logger.debug(f"Stake: {caller} +{amount} (balance={self.balance_of(caller)})")
        return event

    def withdraw(self, caller: str, amount: int) -> Withdrawn:
        """Return *amount* staked tokens to *caller*."""
        _require_amount(amount)
        with self._lock:
            balance = self.balance_of(caller)
            if amount > balance:
                raise InsufficientBalance(f"{caller} has {balance}, requested {amount}")

            # Custody always covers the ledger, so a refusal here is a broken token
            self._token.transfer(self.address, caller, amount)

            self._balances[caller] = balance - amount
            event = self._events.append(Withdrawn(user=caller, amount=amount))

        logger.debug(f"Withdraw: {caller} -{amount} (balance={balance - amount})")
        return event

    # ── Voting ────────────────────────────────────────────────────────

    def start_voting(self, caller: str, duration_days: int, description: str) -> int:
        """Open a new voting and return its id."""
        if (
            not isinstance(duration_days, int)
            or isinstance(duration_days, bool)
            or duration_days < 0
        ):
            raise InvalidAmount(f"duration must be a whole number of days, got {duration_days!r}")

        with self._lock:
            if self.balance_of(caller) <= 0:
                raise NoStakePresent(caller)

            voting = VotingRecord(
                id=len(self._votings),
                created_at=self.now(),
                duration=duration_days * self.seconds_per_day,
                description=description,
            )
            self._votings.append(voting)
            self._events.append(VoteStarted(voting_id=voting.id))

        logger.info(
            f"Voting #{voting.id} started by {caller}: {description!r} "
            f"({duration_days}d, expires {voting.expires_at})"
        )
        return voting.id

    def vote(self, caller: str, voting_id: int, status) -> int:
        """
        Cast *caller*'s ballot and return the weight applied.

        Weight is the caller's staked balance right now. A zero weight is
        accepted and still uses up the caller's ballot.
        """
        with self._lock:
            voting = self._require_voting(voting_id)

            try:
                ballot = VoteStatus.parse(status)
            except (KeyError, ValueError, TypeError) as e:
                raise InvalidVoteStatus(repr(status)) from e
            if ballot not in BALLOT_STATUSES:
                raise InvalidVoteStatus(ballot.name)

            if caller in voting.voters:
                raise DuplicateVote(f"{caller} on voting #{voting_id}")

            now = self.now()
            if not voting.is_open(now):
                raise VotingClosed(f"voting #{voting_id} expired at {voting.expires_at}")

            weight = self.balance_of(caller)
            if ballot == VoteStatus.ACCEPT:
                voting.total_accepted += weight
            else:
                voting.total_rejected += weight
            voting.voters.add(caller)

            self._events.append(
                VotePlaced(voting_id=voting.id, voter=caller, status=ballot, weight=weight)
            )

        logger.debug(f"Vote: {caller} → {ballot.name} on voting #{voting_id} (weight={weight})")
        return weight

    def execute_voting(self, caller: str, voting_id: int) -> VoteStatus:
        """
        Close a voting after expiry and freeze its outcome.

        Any account may execute; the caller has no influence on the result.
        """
        with self._lock:
            voting = self._require_voting(voting_id)

            if voting.is_open(self.now()):
                raise VotingStillOpen(f"voting #{voting_id} open until {voting.expires_at}")
            if voting.executed:
                raise AlreadyExecuted(f"voting #{voting_id}")

            supply = int(self._get_total_supply())
            result = outcome(
                voting.total_accepted,
                voting.total_rejected,
                supply,
                self.quorum_bps,
            )

            voting.total_supply = supply
            voting.result = result
            voting.executed = True
            self._events.append(VotingExecuted(voting_id=voting.id, result=result))

        if result == VoteStatus.NOT_APPLIED:
            logger.warning(
                f"Voting #{voting_id}: NOT_APPLIED, participation too low "
                f"({voting.total_votes}/{supply}, quorum {self.quorum_bps} bps)"
            )
        else:
            logger.info(
                f"Voting #{voting_id}: {result.name} "
                f"(accepted={voting.total_accepted}, rejected={voting.total_rejected}, "
                f"executed by {caller})"
            )
        return result

    # ── Internals ─────────────────────────────────────────────────────

    def _require_voting(self, voting_id: int) -> VotingRecord:
        if (
            not isinstance(voting_id, int)
            or isinstance(voting_id, bool)
            or not 0 <= voting_id < len(self._votings)
        ):
            raise VoteNotFound(f"#{voting_id}")
        return self._votings[voting_id]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "token": self._token.address,
            "quorumBps": self.quorum_bps,
            "now": self.now(),
            "totalStaked": str(self.total_staked),
            "balances": {
                account: str(amount)
                for account, amount in sorted(self._balances.items())
                if amount > 0
            },
            "votings": [v.to_dict() for v in self._votings],
            "events": self._events.to_list(),
        }

    def __repr__(self) -> str:
        return f"<VotingMachine votings={len(self._votings)} staked={self.total_staked}>"


def _require_amount(amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmount(f"got {amount!r}")
