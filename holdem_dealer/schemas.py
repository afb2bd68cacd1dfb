"""
Typed records exchanged between the engine, the controller and the adapters.

Adapters answer with loosely-typed JSON; everything here is what the core
trusts *after* sanitisation (see ``holdem_dealer.sanitize``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from .cards import Card


class Side(str, enum.Enum):
    PLAYER = "PLAYER"
    DEALER = "DEALER"

    @property
    def opponent(self) -> "Side":
        return Side.DEALER if self is Side.PLAYER else Side.PLAYER


class Winner(str, enum.Enum):
    PLAYER = "PLAYER"
    DEALER = "DEALER"
    TIE = "TIE"


class ActionKind(str, enum.Enum):
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE_TO = "raise_to"
    ALL_IN = "all_in"


class DecisionKind(str, enum.Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    BET = "BET"
    RAISE = "RAISE"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    amount: Optional[int] = None

    @classmethod
    def fold(cls) -> "Action":
        return cls(ActionKind.FOLD)

    @classmethod
    def check(cls) -> "Action":
        return cls(ActionKind.CHECK)

    @classmethod
    def call(cls) -> "Action":
        return cls(ActionKind.CALL)

    @classmethod
    def raise_to(cls, target: int) -> "Action":
        return cls(ActionKind.RAISE_TO, target)

    @classmethod
    def all_in(cls) -> "Action":
        return cls(ActionKind.ALL_IN)


@dataclass(slots=True)
class ActionHistoryEntry:
    side: Side
    action: ActionKind
    amount: Optional[int]
    street: str
    to_call: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "side": self.side.value,
            "action": self.action.value,
            "amount": self.amount,
            "street": self.street,
            "to_call": self.to_call,
        }


@dataclass(slots=True)
class BettingContext:
    """What the acting side faces right now."""

    to_call: int
    bet: int
    stack: int
    opponent_bet: int
    opponent_stack: int
    min_raise_to: int
    max_raise_to: int


@dataclass(slots=True)
class DealerDecisionRequest:
    dealer_hand: Sequence[Card]
    board: Sequence[Card]
    pot: int
    amount_to_call: int
    dealer_stack: int
    opponent_stack: int
    dealer_bet: int = 0
    min_raise_to: int = 0


@dataclass(slots=True)
class DealerDecision:
    action: DecisionKind
    amount: Optional[int] = None
    all_in: bool = False


@dataclass(slots=True)
class ShowdownRequest:
    player_hand: Sequence[Card]
    dealer_hand: Sequence[Card]
    board: Sequence[Card]


@dataclass(slots=True)
class ShowdownVerdict:
    winner: Winner
    hand_name: str
    hand_description: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "winner": self.winner.value,
            "winningHandName": self.hand_name,
            "winningHandDescription": self.hand_description,
        }


@dataclass(slots=True)
class RoundOutcome:
    reason: str  # "fold" or "showdown"
    pot: int
    payouts: Dict[Side, int] = field(default_factory=dict)
    folded: Optional[Side] = None
    verdict: Optional[ShowdownVerdict] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "reason": self.reason,
            "pot": self.pot,
            "payouts": {side.value: amount for side, amount in self.payouts.items()},
        }
        if self.folded is not None:
            payload["folded"] = self.folded.value
        if self.verdict is not None:
            payload["verdict"] = self.verdict.as_dict()
        return payload
