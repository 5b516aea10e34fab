"""
Voting machine events.

Events are recorded, in emission order, on an append-only ``EventLog``.
Consumers read them back; nothing is dispatched through callbacks.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Type, Union

from .status import VoteStatus


@dataclass(frozen=True)
class Staked:
    user: str
    amount: int

    name = "Staked"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "user": self.user, "amount": str(self.amount)}


@dataclass(frozen=True)
class Withdrawn:
    user: str
    amount: int

    name = "Withdrawn"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "user": self.user, "amount": str(self.amount)}


@dataclass(frozen=True)
class VoteStarted:
    voting_id: int

    name = "VoteStarted"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "votingId": self.voting_id}


@dataclass(frozen=True)
class VotePlaced:
    voting_id: int
    voter: str
    status: int
    weight: int

    name = "VotePlaced"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "votingId": self.voting_id,
            "voter": self.voter,
            "status": VoteStatus(self.status).name,
            "weight": str(self.weight),
        }


@dataclass(frozen=True)
class VotingExecuted:
    voting_id: int
    result: int

    name = "VotingExecuted"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "votingId": self.voting_id,
            "result": VoteStatus(self.result).name,
        }


Event = Union[Staked, Withdrawn, VoteStarted, VotePlaced, VotingExecuted]

EVENT_TYPES: Dict[str, Type] = {
    cls.name: cls for cls in (Staked, Withdrawn, VoteStarted, VotePlaced, VotingExecuted)
}


class EventLog:
    """Append-only, ordered record of emitted events."""

    def __init__(self):
        self._entries: List[Event] = []

    def append(self, event: Event) -> Event:
        self._entries.append(event)
        return event

    def of_type(self, kind: Union[str, Type]) -> List[Event]:
        """All events of one kind, by class or by event name."""
        cls = EVENT_TYPES[kind] if isinstance(kind, str) else kind
        return [e for e in self._entries if isinstance(e, cls)]

    def last(self, kind: Optional[Union[str, Type]] = None) -> Optional[Event]:
        entries = self._entries if kind is None else self.of_type(kind)
        return entries[-1] if entries else None

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._entries)}>"
