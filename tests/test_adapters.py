import json
from types import SimpleNamespace

import httpx
import pytest
from openai import RateLimitError

from holdem_dealer.adapters.base import AdapterError
from holdem_dealer.adapters.evaluator_judge import EvaluatorJudge
from holdem_dealer.adapters.gemini import GEMINI_BASE_URL, GeminiDealer
from holdem_dealer.adapters.openai_base import LLMDealer, LLMJudge, extract_json_object
from holdem_dealer.adapters.random_dealer import RandomDealer
from holdem_dealer.adapters.tag_dealer import TagDealer
from holdem_dealer.cards import cards_from_iterable
from holdem_dealer.registry import make_dealer, make_judge
from holdem_dealer.sanitize import sanitize_dealer_decision, sanitize_verdict
from holdem_dealer.schemas import DealerDecisionRequest, DecisionKind, ShowdownRequest, Winner


def make_request(hand, board=(), to_call=0, pot=40, stack=980, bet=0, min_to=20):
    return DealerDecisionRequest(
        dealer_hand=cards_from_iterable(hand),
        board=cards_from_iterable(board),
        pot=pot,
        amount_to_call=to_call,
        dealer_stack=stack,
        opponent_stack=980,
        dealer_bet=bet,
        min_raise_to=min_to,
    )


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **payload):
        self.calls.append(payload)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(*replies):
    completions = FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def rate_limited():
    request = httpx.Request("POST", "https://example.invalid/chat/completions")
    return RateLimitError("slow down", response=httpx.Response(429, request=request), body=None)


def test_tag_dealer_raises_premium_hands_preflop():
    answer = TagDealer().decide(make_request(["Ah", "As"], to_call=20, bet=0, pot=30, min_to=40))
    assert answer["action"] == "RAISE"
    assert answer["amount"] >= 40


def test_tag_dealer_folds_junk_to_a_big_bet():
    answer = TagDealer().decide(make_request(["7c", "2d"], to_call=200, pot=240))
    assert answer == {"action": "FOLD"}


def test_tag_dealer_defends_the_big_blind_cheaply():
    answer = TagDealer(big_blind=20).decide(make_request(["7c", "2d"], to_call=20, pot=60))
    assert answer == {"action": "CALL"}


def test_tag_dealer_bets_made_hands_postflop():
    answer = TagDealer().decide(make_request(["Kh", "Kd"], board=["Ks", "7c", "2h"], pot=40))
    assert answer == {"action": "BET", "amount": 30}


def test_random_dealer_answers_always_sanitise():
    dealer = RandomDealer(seed=11)
    for to_call in (0, 20, 500):
        request = make_request(["9h", "8h"], to_call=to_call)
        for _ in range(25):
            decision = sanitize_dealer_decision(dealer.decide(request), request)
            assert decision.action in DecisionKind


def test_evaluator_judge_picks_the_better_hand():
    request = ShowdownRequest(
        player_hand=cards_from_iterable(["Ah", "Kh"]),
        dealer_hand=cards_from_iterable(["Qs", "Qd"]),
        board=cards_from_iterable(["2h", "7h", "9h", "Qc", "3s"]),
    )
    verdict = sanitize_verdict(EvaluatorJudge().judge(request))
    assert verdict.winner is Winner.PLAYER
    assert verdict.hand_name == "Flush"


def test_evaluator_judge_ties_on_the_board():
    request = ShowdownRequest(
        player_hand=cards_from_iterable(["2c", "3d"]),
        dealer_hand=cards_from_iterable(["2d", "3c"]),
        board=cards_from_iterable(["Ah", "Kh", "Qh", "Jh", "Th"]),
    )
    verdict = sanitize_verdict(EvaluatorJudge().judge(request))
    assert verdict.winner is Winner.TIE
    assert verdict.hand_name == "Straight Flush"


def test_extract_json_object_from_chatty_reply():
    assert extract_json_object('Sure! {"action": "CALL"} good luck') == {"action": "CALL"}
    assert extract_json_object('{"action": "FOLD"}') == {"action": "FOLD"}
    assert extract_json_object("no json here") is None
    assert extract_json_object("[1, 2]") is None


@pytest.mark.asyncio
async def test_llm_dealer_sends_json_prompt_and_parses_reply():
    client, completions = fake_client('{"action": "RAISE", "amount": 120}')
    dealer = LLMDealer(client=client, model="test-model")
    answer = await dealer.decide(make_request(["Ah", "Kd"], board=["2c", "7d", "9s"], to_call=40))
    assert answer == {"action": "RAISE", "amount": 120}
    payload = completions.calls[0]
    assert payload["model"] == "test-model"
    assert payload["response_format"] == {"type": "json_object"}
    assert "Amount to call: 40" in payload["messages"][1]["content"]
    assert "A♥" in payload["messages"][1]["content"]


@pytest.mark.asyncio
async def test_llm_retries_rate_limits():
    client, completions = fake_client(rate_limited(), '{"winner": "DEALER"}')
    judge = LLMJudge(client=client, retry_delay=0)
    request = ShowdownRequest(
        player_hand=cards_from_iterable(["Ah", "Kh"]),
        dealer_hand=cards_from_iterable(["Qs", "Qd"]),
        board=cards_from_iterable(["2h", "7h", "9c", "Qc", "3s"]),
    )
    assert await judge.judge(request) == {"winner": "DEALER"}
    assert len(completions.calls) == 2


@pytest.mark.asyncio
async def test_llm_gives_up_after_max_retries():
    client, _ = fake_client(rate_limited(), rate_limited())
    dealer = LLMDealer(client=client, max_retries=1, retry_delay=0)
    with pytest.raises(AdapterError):
        await dealer.decide(make_request(["Ah", "Kd"]))


@pytest.mark.asyncio
async def test_llm_non_json_reply_is_an_adapter_error():
    client, _ = fake_client("I would call here.")
    dealer = LLMDealer(client=client)
    with pytest.raises(AdapterError):
        await dealer.decide(make_request(["Ah", "Kd"]))


def test_llm_adapter_requires_an_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        LLMDealer()


def test_gemini_defaults(monkeypatch):
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    monkeypatch.delenv("GEMINI_API_BASE", raising=False)
    dealer = GeminiDealer(client=object())
    assert dealer.model == "gemini-2.5-flash"
    assert dealer.base_url == GEMINI_BASE_URL
    assert dealer.name == "Gemini"


def test_registry_builds_by_name_and_dotted_path():
    assert isinstance(make_dealer("tag", big_blind=50), TagDealer)
    assert isinstance(make_dealer("random"), RandomDealer)
    assert isinstance(make_judge("evaluator"), EvaluatorJudge)
    assert isinstance(make_dealer("holdem_dealer.adapters.tag_dealer:TagDealer"), TagDealer)
    with pytest.raises(ValueError):
        make_dealer("nobody")
