"""
Offline showdown oracle backed by the local hand evaluator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..cards import best_hand_rank, describe_hand, hand_name
from ..schemas import ShowdownRequest, Winner


@dataclass
class EvaluatorJudge:
    name: str = "Evaluator"

    def judge(self, request: ShowdownRequest) -> Dict[str, str]:
        board = list(request.board)
        player = best_hand_rank(list(request.player_hand) + board)
        dealer = best_hand_rank(list(request.dealer_hand) + board)
        if player > dealer:
            winner, best = Winner.PLAYER, player
        elif dealer > player:
            winner, best = Winner.DEALER, dealer
        else:
            winner, best = Winner.TIE, player
        return {
            "winner": winner.value,
            "winningHandName": hand_name(best),
            "winningHandDescription": describe_hand(best),
        }
