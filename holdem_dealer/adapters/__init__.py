"""Dealer strategies and showdown oracles."""

from .base import AdapterError, DealerAdapter, ShowdownOracle, load_adapter
from .evaluator_judge import EvaluatorJudge
from .random_dealer import RandomDealer
from .tag_dealer import TagDealer

__all__ = [
    "AdapterError",
    "DealerAdapter",
    "EvaluatorJudge",
    "RandomDealer",
    "ShowdownOracle",
    "TagDealer",
    "load_adapter",
]
