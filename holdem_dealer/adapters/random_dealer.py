"""
Random dealer baseline.

Picks uniformly among the dealer's decision kinds without looking at the
cards. Answers are deliberately unfiltered (it may check facing a bet), so the
sanitiser does the work of keeping them legal.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..schemas import DealerDecisionRequest, DecisionKind


@dataclass
class RandomDealer:
    name: str = "Random"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def decide(self, request: DealerDecisionRequest) -> Dict[str, Any]:
        action = self._rng.choice(list(DecisionKind))
        if action in (DecisionKind.BET, DecisionKind.RAISE):
            base = max(request.min_raise_to, request.amount_to_call * 2, 1)
            amount = self._rng.randint(base, max(base, request.dealer_stack + request.dealer_bet))
            return {"action": action.value, "amount": amount}
        return {"action": action.value}
