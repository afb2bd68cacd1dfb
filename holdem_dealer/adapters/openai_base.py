"""
Reusable base class for adapters that call OpenAI-compatible chat APIs.

Gemini, OpenAI and most third-party hosts expose an OpenAI-compatible
``/chat/completions`` endpoint. This module implements the shared mechanics:
building JSON prompts from table requests, invoking the API with rate-limit
retries, and extracting the JSON object from the reply. It does not decide
what to do when the reply is unusable; the controller owns that.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, RateLimitError

from ..schemas import DealerDecisionRequest, ShowdownRequest
from .base import AdapterError

logger = logging.getLogger(__name__)


def extract_json_object(content: str) -> Optional[Dict[str, Any]]:
    """Parse ``content`` as JSON, or the outermost ``{...}`` span inside it."""
    if not content:
        return None
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            payload = json.loads(content[start : end + 1])
        except json.JSONDecodeError:
            return None
    return payload if isinstance(payload, dict) else None


@dataclass
class OpenAICompatibleClient:
    """
    Shared implementation for OpenAI-style adapters.

    Settings come from arguments first, then ``<PREFIX>_MODEL``,
    ``<PREFIX>_API_KEY`` and ``<PREFIX>_API_BASE``.
    """

    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = 0.9
    name: Optional[str] = None
    max_retries: int = 3
    retry_delay: float = 2.0
    client: Any = None

    env_prefix: str = field(default="OPENAI", init=False)
    default_model: str = field(default="gpt-4o-mini", init=False)
    default_name: str = field(default="LLM", init=False)
    default_base_url: Optional[str] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.model = self.model or os.getenv(f"{self.env_prefix}_MODEL") or self.default_model
        self.base_url = self.base_url or os.getenv(f"{self.env_prefix}_API_BASE") or self.default_base_url
        self.name = self.name or self.default_name
        if self.client is not None:
            return
        key = self.api_key or os.getenv(f"{self.env_prefix}_API_KEY")
        if not key:
            raise RuntimeError(
                f"{self.name} adapter requires an API key. "
                f"Set {self.env_prefix}_API_KEY or pass api_key=..."
            )
        client_kwargs: Dict[str, Any] = {"api_key": key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        self.client = AsyncOpenAI(**client_kwargs)

    async def complete_json(self, system: str, prompt: str) -> Dict[str, Any]:
        """Send one chat request and return the JSON object in the reply."""
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.chat.completions.create(**payload)
                break
            except RateLimitError as exc:
                if attempt >= self.max_retries:
                    raise AdapterError(f"{self.name}: rate limited after {attempt + 1} attempts") from exc
                wait_time = self.retry_delay * (2 ** attempt)
                logger.info(
                    "%s rate limited; retrying in %.1fs (attempt %d/%d)",
                    self.name,
                    wait_time,
                    attempt + 1,
                    self.max_retries,
                )
                await asyncio.sleep(wait_time)

        content = self._extract_chat_text(response)
        parsed = extract_json_object(content)
        if parsed is None:
            raise AdapterError(f"{self.name}: reply was not a JSON object: {content[:200]!r}")
        logger.debug("%s replied %s", self.name, parsed)
        return parsed

    def _extract_chat_text(self, response: Any) -> str:
        choices = getattr(response, "choices", []) or []
        if not choices:
            return ""
        message = choices[0].message
        content = getattr(message, "content", "")
        if isinstance(content, list):
            parts = []
            for part in content:
                text = getattr(part, "text", None)
                if text is None:
                    continue
                value = getattr(text, "value", None)
                parts.append(value if isinstance(value, str) else str(value))
            content = "\n".join(parts)
        return content or ""


DEALER_SYSTEM_PROMPT = (
    "You are an expert heads-up No-Limit Texas Hold'em player acting as the dealer "
    "against a human opponent. Analyse the state and choose the best action. "
    "Available actions: FOLD, CHECK, CALL, BET, RAISE.\n"
    "- CHECK only when the amount to call is 0.\n"
    "- Facing a bet, CALL or FOLD, or RAISE.\n"
    "- For BET or RAISE give 'amount': your TOTAL bet for this betting round. "
    "Half-pot to pot-sized bets are reasonable; a good raise is 2x-3x the previous bet. "
    "Never bet more chips than you have.\n"
    'Respond with a JSON object: {"action": "FOLD|CHECK|CALL|BET|RAISE", "amount": optional integer}.'
)

JUDGE_SYSTEM_PROMPT = (
    "You are a Texas Hold'em showdown judge. Given the player's hand, the dealer's hand "
    "and the five community cards, determine the winner using standard hand rankings. "
    "Respond with a JSON object with three fields: "
    '"winner" ("PLAYER", "DEALER" or "TIE"), '
    '"winningHandName" (e.g. "Full House") and '
    '"winningHandDescription" (e.g. "Aces full of Kings").'
)


def _cards(cards) -> str:
    return ", ".join(card.symbol() for card in cards)


@dataclass
class LLMDealer(OpenAICompatibleClient):
    default_name: str = field(default="LLMDealer", init=False)

    async def decide(self, request: DealerDecisionRequest) -> Dict[str, Any]:
        return await self.complete_json(DEALER_SYSTEM_PROMPT, self.build_prompt(request))

    def build_prompt(self, request: DealerDecisionRequest) -> str:
        lines: List[str] = ["Game state:"]
        lines.append(f"- Your hand: [{_cards(request.dealer_hand)}]")
        lines.append(f"- Community cards: [{_cards(request.board)}]")
        lines.append(f"- Pot: {request.pot} chips")
        lines.append(f"- Your chips: {request.dealer_stack}")
        lines.append(f"- Your bet this round: {request.dealer_bet}")
        lines.append(f"- Opponent's chips: {request.opponent_stack}")
        lines.append(f"- Amount to call: {request.amount_to_call} chips")
        lines.append(f"- Minimum raise to: {request.min_raise_to}")
        lines.append("What is your action? If you BET or RAISE, what is your total bet for this round?")
        return "\n".join(lines)


@dataclass
class LLMJudge(OpenAICompatibleClient):
    default_name: str = field(default="LLMJudge", init=False)
    temperature: Optional[float] = 0.0

    async def judge(self, request: ShowdownRequest) -> Dict[str, Any]:
        return await self.complete_json(JUDGE_SYSTEM_PROMPT, self.build_prompt(request))

    def build_prompt(self, request: ShowdownRequest) -> str:
        return "\n".join(
            [
                f"Player hand: [{_cards(request.player_hand)}]",
                f"Dealer hand: [{_cards(request.dealer_hand)}]",
                f"Community cards: [{_cards(request.board)}]",
                "Who wins?",
            ]
        )
