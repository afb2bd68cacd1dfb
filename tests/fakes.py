"""Scripted stand-ins for the dealer adapter and the showdown oracle."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional


class ScriptedDealer:
    """Synchronous dealer that replays canned answers, then checks (or calls)."""

    name = "Scripted"

    def __init__(self, answers: Optional[List[Any]] = None) -> None:
        self.answers = list(answers or [])
        self.requests: List[Any] = []

    def decide(self, request):
        self.requests.append(request)
        answer = self.answers.pop(0) if self.answers else {"action": "CHECK"}
        if isinstance(answer, BaseException):
            raise answer
        return answer


class SlowDealer:
    """Async dealer that never answers within a short timeout."""

    name = "Slow"

    def __init__(self, delay: float = 5.0) -> None:
        self.delay = delay

    async def decide(self, request):
        await asyncio.sleep(self.delay)
        return {"action": "RAISE", "amount": 500}


class GatedDealer:
    """Async dealer that answers only once the test releases it."""

    name = "Gated"

    def __init__(self, answer: Any) -> None:
        self.answer = answer
        self.called = asyncio.Event()
        self.release = asyncio.Event()

    async def decide(self, request):
        self.called.set()
        await self.release.wait()
        return self.answer


class ScriptedJudge:
    name = "ScriptedJudge"

    def __init__(self, answer: Any = None) -> None:
        self.answer = answer if answer is not None else {
            "winner": "PLAYER",
            "winningHandName": "Pair",
            "winningHandDescription": "Pair of Aces",
        }
        self.requests: List[Any] = []

    def judge(self, request):
        self.requests.append(request)
        if isinstance(self.answer, BaseException):
            raise self.answer
        return self.answer
