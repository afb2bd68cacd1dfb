"""
Validation of untrusted dealer decisions and showdown verdicts.

Adapters may be remote models that return anything. Nothing they return is
used before it passes through this module:

- ``sanitize_dealer_decision`` validates the raw payload and coerces it into a
  decision that is consistent with the amount to call and the dealer's stack.
- ``decision_to_action`` maps that decision onto an engine ``Action`` that the
  betting engine will accept.
- ``sanitize_verdict`` validates a showdown verdict.

Malformed payloads raise ``MalformedResponseError``; callers then fall back to
``fallback_decision`` / ``fallback_verdict``.
"""

from __future__ import annotations

import math
from dataclasses import asdict, is_dataclass
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .schemas import (
    Action,
    BettingContext,
    DealerDecision,
    DealerDecisionRequest,
    DecisionKind,
    ShowdownVerdict,
    Winner,
)

MAX_HAND_NAME = 80
MAX_HAND_DESCRIPTION = 240
FALLBACK_HAND_NAME = "Unknown"
FALLBACK_HAND_DESCRIPTION = "The hand could not be evaluated; the pot is split."


class MalformedResponseError(ValueError):
    pass


class RawDealerDecision(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str
    amount: Any = None

    @field_validator("action", mode="before")
    @classmethod
    def _normalise_action(cls, value: Any) -> str:
        if isinstance(value, DecisionKind):
            return value.value
        if not isinstance(value, str):
            raise ValueError("action must be a string")
        return value.strip().upper()


class RawVerdict(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    winner: str
    hand_name: Any = Field(default="", alias="winningHandName")
    hand_description: Any = Field(default="", alias="winningHandDescription")

    @field_validator("winner", mode="before")
    @classmethod
    def _normalise_winner(cls, value: Any) -> str:
        if isinstance(value, Winner):
            return value.value
        if not isinstance(value, str):
            raise ValueError("winner must be a string")
        return value.strip().upper()


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if is_dataclass(raw) and not isinstance(raw, type):
        return asdict(raw)
    if isinstance(raw, Mapping):
        return raw
    raise MalformedResponseError(f"expected a JSON object, got {type(raw).__name__}")


def _clean_amount(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return None
    return int(math.floor(value))


def sanitize_dealer_decision(raw: Any, request: DealerDecisionRequest) -> DealerDecision:
    """Coerce a raw dealer answer into a decision consistent with ``request``."""
    try:
        parsed = RawDealerDecision.model_validate(_as_mapping(raw))
    except ValidationError as exc:
        raise MalformedResponseError(str(exc)) from exc
    try:
        action = DecisionKind(parsed.action)
    except ValueError as exc:
        raise MalformedResponseError(f"unknown dealer action {parsed.action!r}") from exc
    amount = _clean_amount(parsed.amount)
    to_call = max(request.amount_to_call, 0)

    if to_call > 0 and action is DecisionKind.CHECK:
        action = DecisionKind.CALL if request.dealer_stack > to_call else DecisionKind.FOLD
    if to_call == 0 and action in (DecisionKind.CALL, DecisionKind.FOLD):
        action = DecisionKind.CHECK

    if action in (DecisionKind.BET, DecisionKind.RAISE):
        if amount is None or amount <= to_call:
            if to_call > 0:
                action, amount = DecisionKind.RAISE, to_call * 2
            else:
                action, amount = DecisionKind.BET, request.pot // 2
        if amount > request.dealer_stack:
            return DealerDecision(action=action, amount=request.dealer_stack, all_in=True)
        return DealerDecision(action=action, amount=amount)

    return DealerDecision(action=action)


def fallback_decision(request: DealerDecisionRequest) -> DealerDecision:
    if request.amount_to_call > 0:
        return DealerDecision(action=DecisionKind.FOLD)
    return DealerDecision(action=DecisionKind.CHECK)


def decision_to_action(decision: DealerDecision, context: BettingContext) -> Action:
    """Translate a sanitised decision into an action the engine will accept."""
    if decision.action is DecisionKind.FOLD:
        return Action.fold() if context.to_call > 0 else Action.check()
    if decision.action is DecisionKind.CHECK:
        return Action.check() if context.to_call == 0 else Action.call()
    if decision.action is DecisionKind.CALL:
        return Action.call() if context.to_call > 0 else Action.check()

    passive = Action.call() if context.to_call > 0 else Action.check()
    if context.opponent_stack == 0 or context.stack <= context.to_call:
        # Nothing to raise against, or no chips beyond the call.
        return passive
    if decision.all_in:
        return Action.all_in()
    # BET/RAISE amounts are the dealer's total for the street.
    target = min(decision.amount or 0, context.max_raise_to)
    if target <= context.opponent_bet:
        return passive
    if target < context.min_raise_to:
        target = context.min_raise_to
    if target == context.max_raise_to:
        return Action.all_in()
    return Action.raise_to(target)


def _clip_text(value: Any, limit: int, default: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        return default
    return text[:limit]


def sanitize_verdict(raw: Any) -> ShowdownVerdict:
    mapping = dict(_as_mapping(raw))
    # Accept snake_case keys from local oracles as well as the camelCase wire names.
    for wire, local in (("winningHandName", "winning_hand_name"), ("winningHandDescription", "winning_hand_description")):
        if wire not in mapping and local in mapping:
            mapping[wire] = mapping[local]
    try:
        parsed = RawVerdict.model_validate(mapping)
    except ValidationError as exc:
        raise MalformedResponseError(str(exc)) from exc
    try:
        winner = Winner(parsed.winner)
    except ValueError as exc:
        raise MalformedResponseError(f"unknown winner {parsed.winner!r}") from exc
    return ShowdownVerdict(
        winner=winner,
        hand_name=_clip_text(parsed.hand_name, MAX_HAND_NAME, FALLBACK_HAND_NAME),
        hand_description=_clip_text(parsed.hand_description, MAX_HAND_DESCRIPTION, ""),
    )


def fallback_verdict() -> ShowdownVerdict:
    return ShowdownVerdict(
        winner=Winner.TIE,
        hand_name=FALLBACK_HAND_NAME,
        hand_description=FALLBACK_HAND_DESCRIPTION,
    )
