import random

import pytest

from holdem_dealer.cards import card_from_str, new_deck
from holdem_dealer.config import TableConfig
from holdem_dealer.engine import HoldemEngine
from holdem_dealer.schemas import Side


@pytest.fixture
def config():
    return TableConfig()


@pytest.fixture
def engine(config):
    return HoldemEngine(config, rng=random.Random(7))


@pytest.fixture
def make_deck():
    """Build a 52-card deck whose front holds the given cards in dealing order."""

    def _make(player=("Ah", "Ad"), dealer=("7c", "2d"), board=("Kh", "Qs", "9c", "4h", "3s")):
        front = [card_from_str(token) for token in (*player, *dealer, *board)]
        rest = [card for card in new_deck() if card not in front]
        return front + rest

    return _make


@pytest.fixture
def set_stacks():
    """Move chips between the two stacks before a round, keeping the total."""

    def _set(engine, player, dealer):
        assert player + dealer == 2 * engine.config.starting_stack
        engine.accounts[Side.PLAYER].stack = player
        engine.accounts[Side.DEALER].stack = dealer

    return _set
