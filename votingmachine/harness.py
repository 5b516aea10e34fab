"""
Scripted sessions.

Wires a pool token, a manual clock and a voting machine together and replays
a list of operations against them, the way a deployment-and-assert test
harness drives a contract. A script is a plain dict (usually loaded from
JSON):

    {
        "token": {"name": "Prime Balancer Pool Token", "symbol": "BPOOL",
                  "holders": {"alice": 100, "bob": 50, "root": 50}},
        "start_time": 1600560000,
        "steps": [
            {"op": "approve", "caller": "alice", "amount": 100},
            {"op": "stake", "caller": "alice", "amount": 100},
            {"op": "start_voting", "caller": "alice", "duration_days": 7,
             "description": "Change swap fee"},
            {"op": "vote", "caller": "alice", "voting_id": 0, "status": "ACCEPT"},
            {"op": "vote", "caller": "alice", "voting_id": 0, "status": "REJECT",
             "expect_error": "DuplicateVote"},
            {"op": "advance", "days": 8},
            {"op": "execute", "caller": "bob", "voting_id": 0}
        ]
    }

Amounts are integers in the token's minor unit.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from .clock import ManualClock
from .config import AppConfig
from .constants import DEFAULT_START_TIME
from .exceptions import ERRORS_BY_CODE, VotingMachineError
from .governance import VoteStatus, VotingMachine
from .logger import get_logger
from .tokens import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    PoolToken,
    TokenError,
)

logger = get_logger(__name__)

DEFAULT_TOKEN_NAME = "Prime Balancer Pool Token"
DEFAULT_TOKEN_SYMBOL = "BPOOL"
DEFAULT_TOKEN_ADDRESS = "0xBPOOL"

# Codes a step may name in "expect_error"
EXPECTABLE_ERRORS = {
    **ERRORS_BY_CODE,
    **{
        cls.__name__: cls
        for cls in (TokenError, InsufficientBalanceError, InsufficientAllowanceError)
    },
}


class ScriptError(Exception):
    """Raised when a script is malformed (unknown op, missing field)."""


@dataclass
class StepResult:
    """Outcome of one replayed step."""
    index: int
    op: str
    ok: bool
    value: Any = None
    error: Optional[str] = None
    expected_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if isinstance(value, VoteStatus):
            value = value.name
        elif hasattr(value, "to_dict"):
            value = value.to_dict()
        return {
            "index": self.index,
            "op": self.op,
            "ok": self.ok,
            "value": value,
            "error": self.error,
            "expectedError": self.expected_error,
        }


class Session:
    """A token, a clock and a machine sharing one timeline."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        token: Optional[PoolToken] = None,
        start_time: int = DEFAULT_START_TIME,
    ):
        self.config = config or AppConfig()
        self.config.machine.validate()
        self.clock = ManualClock(
            start_time, seconds_per_day=self.config.machine.seconds_per_day
        )
        self.token = token or PoolToken(
            DEFAULT_TOKEN_NAME, DEFAULT_TOKEN_SYMBOL, DEFAULT_TOKEN_ADDRESS
        )
        self.machine = VotingMachine(
            self.token,
            address=self.config.machine.address,
            clock=self.clock,
            quorum_bps=self.config.machine.quorum_bps,
            seconds_per_day=self.config.machine.seconds_per_day,
        )
        self.results: List[StepResult] = []

        self._ops: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "mint": self._op_mint,
            "approve": self._op_approve,
            "transfer": self._op_transfer,
            "stake": self._op_stake,
            "withdraw": self._op_withdraw,
            "start_voting": self._op_start_voting,
            "vote": self._op_vote,
            "advance": self._op_advance,
            "execute": self._op_execute,
        }

    @classmethod
    def from_dict(cls, script: Dict[str, Any], config: Optional[AppConfig] = None) -> "Session":
        """Build a session and fund the script's token holders."""
        token_cfg = script.get("token", {})
        token = PoolToken(
            token_cfg.get("name", DEFAULT_TOKEN_NAME),
            token_cfg.get("symbol", DEFAULT_TOKEN_SYMBOL),
            token_cfg.get("address", DEFAULT_TOKEN_ADDRESS),
            decimals=token_cfg.get("decimals", 18),
        )
        for holder, amount in token_cfg.get("holders", {}).items():
            token.mint(holder, int(amount))

        return cls(
            config,
            token=token,
            start_time=int(script.get("start_time", DEFAULT_START_TIME)),
        )

    # ── Replay ────────────────────────────────────────────────────────

    def run(self, steps: Iterable[Dict[str, Any]]) -> List[StepResult]:
        """Replay *steps*, returning one result per step."""
        results = []
        for step in steps:
            results.append(self.step(step))
        return results

    def step(self, step: Dict[str, Any]) -> StepResult:
        index = len(self.results)
        op = step.get("op")
        if op not in self._ops:
            raise ScriptError(f"Step {index}: unknown op {op!r}")

        expected = step.get("expect_error")
        if expected is not None and expected not in EXPECTABLE_ERRORS:
            raise ScriptError(f"Step {index}: unknown error code {expected!r}")

        try:
            value = self._ops[op](step)
        except (VotingMachineError, TokenError) as e:
            code = getattr(e, "code", type(e).__name__)
            result = StepResult(
                index=index,
                op=op,
                ok=(code == expected),
                error=f"{code}: {e}",
                expected_error=expected,
            )
        else:
            result = StepResult(
                index=index,
                op=op,
                ok=expected is None,
                value=value,
                expected_error=expected,
            )

        if not result.ok:
            logger.warning(
                f"Step {index} ({op}) failed: "
                f"{result.error or 'succeeded'} (expected {expected or 'success'})"
            )
        self.results.append(result)
        return result

    @property
    def failures(self) -> List[StepResult]:
        return [r for r in self.results if not r.ok]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "token": self.token.to_dict(),
            "machine": self.machine.to_dict(),
            "steps": [r.to_dict() for r in self.results],
        }

    # ── Operations ────────────────────────────────────────────────────

    def _op_mint(self, step):
        return self.token.mint(_field(step, "to"), _amount(step))

    def _op_approve(self, step):
        spender = step.get("spender", self.machine.address)
        return self.token.approve(_field(step, "caller"), spender, _amount(step))

    def _op_transfer(self, step):
        return self.token.transfer(_field(step, "caller"), _field(step, "to"), _amount(step))

    def _op_stake(self, step):
        return self.machine.stake(_field(step, "caller"), _amount(step))

    def _op_withdraw(self, step):
        return self.machine.withdraw(_field(step, "caller"), _amount(step))

    def _op_start_voting(self, step):
        return self.machine.start_voting(
            _field(step, "caller"),
            _field(step, "duration_days"),
            step.get("description", ""),
        )

    def _op_vote(self, step):
        return self.machine.vote(
            _field(step, "caller"),
            _field(step, "voting_id"),
            _field(step, "status"),
        )

    def _op_advance(self, step):
        return self.clock.advance(
            seconds=int(step.get("seconds", 0)),
            days=int(step.get("days", 0)),
        )

    def _op_execute(self, step):
        return self.machine.execute_voting(
            step.get("caller", "anyone"),
            _field(step, "voting_id"),
        )


def _field(step: Dict[str, Any], name: str) -> Any:
    if name not in step:
        raise ScriptError(f"{step.get('op')}: missing field {name!r}")
    return step[name]


def _amount(step: Dict[str, Any]) -> int:
    amount = _field(step, "amount")
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ScriptError(f"{step.get('op')}: amount must be an integer, got {amount!r}")
    return amount
