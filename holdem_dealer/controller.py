"""
Async round lifecycle around ``HoldemEngine``.

The controller is the only place that talks to the dealer adapter and the
showdown oracle. It owns the turn-owner lock: while an adapter call is in
flight, player actions are rejected with ``DealerBusyError``. Every adapter
call is tagged with the engine's ``(epoch, round_id, version)``; an answer that
arrives after the tag moved on (for example after ``reset``) is dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .cards import Card
from .engine import GameState, HoldemEngine, IllegalActionError
from .logging_utils import NDJSONLogger
from .sanitize import (
    decision_to_action,
    fallback_decision,
    fallback_verdict,
    sanitize_dealer_decision,
    sanitize_verdict,
)
from .schemas import Action, ShowdownVerdict, Side

logger = logging.getLogger(__name__)

FEED_SIZE = 30


class DealerBusyError(IllegalActionError):
    pass


class GameController:
    def __init__(
        self,
        engine: HoldemEngine,
        dealer: Any,
        judge: Any,
        decision_timeout: float = 20.0,
        runout_delay: float = 0.0,
        logger: Optional[NDJSONLogger] = None,
    ) -> None:
        self.engine = engine
        self.dealer = dealer
        self.judge = judge
        self.decision_timeout = decision_timeout
        self.runout_delay = runout_delay
        self.events = logger or engine.logger
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def start_round(self, deck: Optional[Sequence[Card]] = None) -> Dict[str, Any]:
        async with self._lock:
            self.engine.start_round(deck)
            await self._drive()
        return self.snapshot()

    async def player_action(self, action: Action) -> Dict[str, Any]:
        if self._lock.locked():
            raise DealerBusyError("the dealer is still thinking")
        async with self._lock:
            self.engine.apply(Side.PLAYER, action)
            await self._drive()
        return self.snapshot()

    async def reset(self) -> Dict[str, Any]:
        # Does not wait for the lock; an in-flight answer becomes stale.
        self.engine.reset()
        return self.snapshot()

    def snapshot(self) -> Dict[str, Any]:
        snapshot = self.engine.snapshot()
        snapshot["busy"] = self.busy
        snapshot["dealer"] = getattr(self.dealer, "name", type(self.dealer).__name__)
        snapshot["judge"] = getattr(self.judge, "name", type(self.judge).__name__)
        snapshot["feed"] = self.events.recent(limit=FEED_SIZE)
        return snapshot

    # --- driving the engine -------------------------------------------------

    async def _drive(self) -> None:
        """Advance the engine until the player has to act or the round is over."""
        while True:
            if self.engine.state is GameState.DEALER_TURN:
                advanced = await self._dealer_turn()
            elif self.engine.state is GameState.SHOWDOWN:
                advanced = await self._showdown()
            else:
                return
            if not advanced:
                return

    async def _dealer_turn(self) -> bool:
        tag = self.engine.tag()
        request = self.engine.dealer_request()
        context = self.engine.betting_context(Side.DEALER)
        try:
            raw = await self._ask(self.dealer.decide, request)
            decision = sanitize_dealer_decision(raw, request)
        except Exception as exc:
            if self._is_stale(tag, "dealer"):
                return False
            self._log_fallback("dealer", exc)
            decision = fallback_decision(request)
        if self._is_stale(tag, "dealer"):
            return False

        action = decision_to_action(decision, context)
        try:
            self.engine.apply(Side.DEALER, action)
        except IllegalActionError as exc:
            self._log_fallback("dealer", exc)
            self.engine.apply(Side.DEALER, decision_to_action(fallback_decision(request), context))
        return True

    async def _showdown(self) -> bool:
        tag = self.engine.tag()
        request = self.engine.showdown_request()
        if self.runout_delay > 0 and self.engine.round is not None and self.engine.round.ran_out:
            await asyncio.sleep(self.runout_delay)
            if self._is_stale(tag, "judge"):
                return False
        try:
            raw = await self._ask(self.judge.judge, request)
            verdict: ShowdownVerdict = sanitize_verdict(raw)
        except Exception as exc:
            if self._is_stale(tag, "judge"):
                return False
            self._log_fallback("judge", exc)
            verdict = fallback_verdict()
        if self._is_stale(tag, "judge"):
            return False
        self.engine.resolve_showdown(verdict)
        return True

    async def _ask(self, method: Callable[[Any], Any], request: Any) -> Any:
        result = method(request)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=self.decision_timeout)
        return result

    def _is_stale(self, tag: Tuple[int, int, int], source: str) -> bool:
        current = self.engine.tag()
        if current == tag:
            return False
        logger.info("Discarding stale %s response (asked at %s, now %s)", source, tag, current)
        self.events.log(
            "stale_response",
            {"source": source, "asked_at": list(tag), "current": list(current)},
        )
        return True

    def _log_fallback(self, source: str, exc: BaseException) -> None:
        reason = str(exc) or type(exc).__name__
        logger.warning("%s adapter failed (%s); applying fallback", source, reason)
        round_id = self.engine.round.round_id if self.engine.round else None
        self.events.log(
            "adapter_fallback",
            {"source": source, "error": type(exc).__name__, "reason": reason, "round_id": round_id},
        )
