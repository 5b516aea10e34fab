"""
Pool Token

An in-memory, ERC-20–shaped stand-in for the AMM pool token that the voting
machine custodies. It models balances, allowances and transfers only:
  - balance_of / allowance / total_supply
  - approve, transfer, transfer_from ("pull" with allowance)
  - mint (pool-share issuance is out of scope, so supply is minted directly)

Any object exposing the same surface (see ``StakeToken``) can be handed to
the voting machine instead.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

from ..logger import get_logger
from ..constants import (
    TOKEN_DEFAULT_DECIMALS,
    TOKEN_MAX_DECIMALS,
    ZERO_ADDRESS,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(Exception):
    """Base exception for pool token operations."""


class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""


# ══════════════════════════════════════════════════════════════════════
#  COLLABORATOR INTERFACE
# ══════════════════════════════════════════════════════════════════════

@runtime_checkable
class StakeToken(Protocol):
    """What the voting machine needs from its stake-weight token."""

    address: str

    @property
    def total_supply(self) -> int: ...

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> Any: ...

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> Any: ...


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every successful transfer or mint."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on every successful approve."""
    token_symbol: str
    owner: str
    spender: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  POOL TOKEN
# ══════════════════════════════════════════════════════════════════════

class PoolToken:
    """
    Pool token with ERC-20 semantics:
        - balance_of(address) → int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, sender, recipient, amount)
        - total_supply → int

    Amounts are integers in the token's minor unit.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        address: str,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
    ):
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > TOKEN_MAX_DECIMALS:
            raise TokenError(f"Decimals must be 0-{TOKEN_MAX_DECIMALS}, got {decimals}")

        self.name = name
        self.symbol = symbol
        self.address = address
        self.decimals = decimals
        self._total_supply = 0

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._events: List[Any] = []

        logger.info(f"Pool token deployed: {symbol} ({name}) at {address}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    # ── Issuance ──────────────────────────────────────────────────────

    def mint(self, recipient: str, amount: int) -> TransferEvent:
        """Create new pool shares for *recipient*."""
        _require_amount(amount)
        if not recipient or recipient == ZERO_ADDRESS:
            raise TokenError("Cannot mint to the zero address")

        self._balances[recipient] = self.balance_of(recipient) + amount
        self._total_supply += amount

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=ZERO_ADDRESS,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Mint: {recipient} +{amount} {self.symbol}")
        return event

    # ── Core ERC-20 operations ────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        _require_amount(amount)
        if not recipient or recipient == ZERO_ADDRESS:
            raise TokenError("Cannot transfer to the zero address")

        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )

        self._move(sender, recipient, amount)

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=sender,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Transfer: {sender} → {recipient} {amount} {self.symbol}")
        return event

    def approve(self, owner: str, spender: str, amount: int) -> ApprovalEvent:
        """Set spender allowance, overwriting any previous value."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise TokenError("Allowance amount must be a non-negative integer")

        self._allowances[(owner, spender)] = amount

        event = ApprovalEvent(
            token_symbol=self.symbol,
            owner=owner,
            spender=spender,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Approve: {owner} → {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(
        self,
        spender: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> TransferEvent:
        """Transfer on behalf of *sender* using spender's allowance."""
        _require_amount(amount)
        if not recipient or recipient == ZERO_ADDRESS:
            raise TokenError("Cannot transfer to the zero address")

        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )

        allow = self.allowance(sender, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

        self._move(sender, recipient, amount)
        self._allowances[(sender, spender)] = allow - amount

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=sender,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(
            f"transferFrom: spender={spender} {sender} → {recipient} {amount} {self.symbol}"
        )
        return event

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "decimals": self.decimals,
            "totalSupply": str(self._total_supply),
            "holders": len([b for b in self._balances.values() if b > 0]),
        }

    def __repr__(self) -> str:
        return f"<PoolToken {self.symbol} supply={self._total_supply}>"


def _require_amount(amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise TokenError(f"Amount must be a positive integer, got {amount!r}")
