"""
Factory helpers for the dealer strategies and showdown oracles shipped with
the table.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from .adapters.base import load_adapter
from .adapters.evaluator_judge import EvaluatorJudge
from .adapters.gemini import GeminiDealer, GeminiJudge
from .adapters.openai_base import LLMDealer, LLMJudge
from .adapters.random_dealer import RandomDealer
from .adapters.tag_dealer import TagDealer

DEALER_FACTORIES: Dict[str, Callable[..., Any]] = {
    "random": RandomDealer,
    "tag": TagDealer,
    "gemini": GeminiDealer,
    "openai": LLMDealer,
}

JUDGE_FACTORIES: Dict[str, Callable[..., Any]] = {
    "evaluator": EvaluatorJudge,
    "gemini": GeminiJudge,
    "openai": LLMJudge,
}


def _build(spec: str, factories: Dict[str, Callable[..., Any]], kind: str, **kwargs: Any) -> Any:
    if ":" in spec:
        return load_adapter(spec, **kwargs)
    if spec not in factories:
        known = ", ".join(sorted(factories))
        raise ValueError(f"Unknown {kind} {spec!r} (known: {known})")
    factory = factories[spec]
    try:
        return factory(**kwargs)
    except TypeError:
        if kwargs:
            raise
        return factory()


def make_dealer(spec: str, **kwargs: Any) -> Any:
    """Build a dealer from a registered name or a ``package.module:Class`` path."""
    return _build(spec, DEALER_FACTORIES, "dealer", **kwargs)


def make_judge(spec: str, **kwargs: Any) -> Any:
    return _build(spec, JUDGE_FACTORIES, "judge", **kwargs)
