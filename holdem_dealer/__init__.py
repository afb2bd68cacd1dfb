"""
Heads-up No-Limit Texas Hold'em against a computer dealer.

Key modules:

- cards: Playing card representations, deck, shuffle and a local hand evaluator.
- engine: Round state machine and betting engine (single owner of game state).
- sanitize: Validation of untrusted dealer decisions and showdown verdicts.
- controller: Async round lifecycle, dealer turns and showdown resolution.
- adapters: Dealer strategies and showdown oracles (offline and LLM-backed).
- web / cli: HTTP surface and command line entry points.
"""

from .config import TableConfig
from .controller import DealerBusyError, GameController
from .engine import GameState, HoldemEngine, IllegalActionError, InvariantError, Street
from .sanitize import MalformedResponseError
from .schemas import Action, ActionKind, Side, Winner

__all__ = [
    "Action",
    "ActionKind",
    "DealerBusyError",
    "GameController",
    "GameState",
    "HoldemEngine",
    "IllegalActionError",
    "InvariantError",
    "MalformedResponseError",
    "Side",
    "Street",
    "TableConfig",
    "Winner",
]
