"""
TAG (tight-aggressive) dealer baseline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

from ..cards import Card, best_hand_rank
from ..schemas import DealerDecisionRequest, DecisionKind


@dataclass
class TagDealer:
    """
    Plays premium holdings aggressively and everything else passively. Not
    meant to be strong, only stable and easy to reason about.
    """

    name: str = "TAG"
    big_blind: int = 20

    def decide(self, request: DealerDecisionRequest) -> Dict[str, Any]:
        if request.board:
            strength = self._postflop_strength(request.dealer_hand, request.board)
        else:
            strength = self._preflop_strength(request.dealer_hand)

        if request.amount_to_call == 0:
            if strength >= 2:
                return self._bet(request, pot_growth=0.75)
            return {"action": DecisionKind.CHECK.value}

        if strength >= 2:
            return self._bet(request, pot_growth=1.0)
        if strength == 1 or request.amount_to_call <= self.big_blind:
            return {"action": DecisionKind.CALL.value}
        return {"action": DecisionKind.FOLD.value}

    def _preflop_strength(self, hole: Sequence[Card]) -> int:
        high, low = sorted((card.value for card in hole), reverse=True)
        suited = hole[0].suit == hole[1].suit
        if high == low and high >= 10:
            return 2
        if high >= 13 and low >= 10 and suited:
            return 2
        if high == 14 and low >= 11:
            return 2
        if high == low or (high >= 12 and low >= 9):
            return 1
        return 0

    def _postflop_strength(self, hole: Sequence[Card], board: Sequence[Card]) -> int:
        category, _ = best_hand_rank(list(hole) + list(board))
        if category >= 3:
            return 2
        if category == 2:
            return 1
        return 0

    def _bet(self, request: DealerDecisionRequest, pot_growth: float) -> Dict[str, Any]:
        target = request.dealer_bet + request.amount_to_call + int(request.pot * pot_growth)
        amount = max(request.min_raise_to, target)
        kind = DecisionKind.RAISE if request.amount_to_call > 0 else DecisionKind.BET
        return {"action": kind.value, "amount": amount}
