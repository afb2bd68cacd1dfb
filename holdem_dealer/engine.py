"""
Heads-up No-Limit Texas Hold'em state machine for the player-vs-dealer table.

``HoldemEngine`` is the single owner of all game state: persistent stacks, the
current round, the explicit game state and street, and the turn owner. All
mutations go through ``start_round``, ``apply``, ``resolve_showdown`` and
``reset``; anything that fails validation raises ``IllegalActionError`` before
touching state.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .cards import Card, new_deck, shuffle
from .config import TableConfig
from .logging_utils import NDJSONLogger
from .schemas import (
    Action,
    ActionHistoryEntry,
    ActionKind,
    BettingContext,
    DealerDecisionRequest,
    RoundOutcome,
    ShowdownRequest,
    ShowdownVerdict,
    Side,
    Winner,
)

DECK_SIZE = 52
BOARD_SIZE = 5


class GameState(str, enum.Enum):
    READY = "READY"
    PRE_FLOP = "PRE_FLOP"
    PLAYER_TURN = "PLAYER_TURN"
    DEALER_TURN = "DEALER_TURN"
    SHOWDOWN = "SHOWDOWN"
    ROUND_OVER = "ROUND_OVER"
    GAME_OVER = "GAME_OVER"
    VICTORY = "VICTORY"


class Street(str, enum.Enum):
    PRE_FLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"

    @property
    def board_size(self) -> int:
        return {"preflop": 0, "flop": 3, "turn": 4, "river": 5}[self.value]


NEXT_STREET = {
    Street.PRE_FLOP: (Street.FLOP, 3),
    Street.FLOP: (Street.TURN, 1),
    Street.TURN: (Street.RIVER, 1),
}

ACTING_STATES = {
    Side.PLAYER: (GameState.PRE_FLOP, GameState.PLAYER_TURN),
    Side.DEALER: (GameState.DEALER_TURN,),
}

TERMINAL_STATES = (GameState.GAME_OVER, GameState.VICTORY)


class IllegalActionError(RuntimeError):
    pass


class InvariantError(AssertionError):
    pass


@dataclass(slots=True)
class ChipAccount:
    stack: int
    bet: int = 0
    committed: int = 0

    @property
    def all_in(self) -> bool:
        return self.stack == 0 and self.committed > 0

    def commit(self, amount: int) -> int:
        amount = min(amount, self.stack)
        self.stack -= amount
        self.bet += amount
        self.committed += amount
        return amount

    def reset_for_round(self) -> None:
        self.bet = 0
        self.committed = 0


@dataclass(slots=True)
class Round:
    round_id: int
    deck: List[Card]
    player_hole: List[Card] = field(default_factory=list)
    dealer_hole: List[Card] = field(default_factory=list)
    board: List[Card] = field(default_factory=list)
    street: Street = Street.PRE_FLOP
    pot: int = 0
    acted: Set[Side] = field(default_factory=set)
    history: List[ActionHistoryEntry] = field(default_factory=list)
    ran_out: bool = False
    outcome: Optional[RoundOutcome] = None

    def draw(self, count: int) -> List[Card]:
        if len(self.deck) < count:
            raise InvariantError(f"cannot draw {count} cards from {len(self.deck)}")
        cards, self.deck = self.deck[:count], self.deck[count:]
        return cards


class HoldemEngine:
    """
    Player-vs-dealer table. The player always posts the small blind and acts
    first on every street.
    """

    def __init__(
        self,
        config: TableConfig,
        logger: Optional[NDJSONLogger] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.logger = logger or NDJSONLogger()
        self._rng = rng or random.Random(config.seed)
        self.accounts: Dict[Side, ChipAccount] = {
            Side.PLAYER: ChipAccount(config.starting_stack),
            Side.DEALER: ChipAccount(config.starting_stack),
        }
        self.state = GameState.READY
        self.to_act: Optional[Side] = None
        self.round: Optional[Round] = None
        self.epoch = 0
        self.version = 0
        self._round_counter = 0

    # --- read-only views -------------------------------------------------

    @property
    def pot(self) -> int:
        return self.round.pot if self.round else 0

    @property
    def street(self) -> Optional[Street]:
        return self.round.street if self.round else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def stack(self, side: Side) -> int:
        return self.accounts[side].stack

    def bet(self, side: Side) -> int:
        return self.accounts[side].bet

    def tag(self) -> Tuple[int, int, int]:
        """Identity of the current position; changes on every mutation."""
        round_id = self.round.round_id if self.round else 0
        return self.epoch, round_id, self.version

    def to_call(self, side: Side) -> int:
        return max(self.accounts[side.opponent].bet - self.accounts[side].bet, 0)

    def min_raise_target(self, side: Side) -> int:
        opponent_bet = self.accounts[side.opponent].bet
        return opponent_bet + max(self.to_call(side), self.config.raise_increment)

    def raise_bounds(self, side: Side) -> Tuple[int, int]:
        """``(min_target, max_target)`` for a raise; min is capped at all-in."""
        account = self.accounts[side]
        max_target = account.bet + account.stack
        return min(self.min_raise_target(side), max_target), max_target

    def betting_context(self, side: Side) -> BettingContext:
        account = self.accounts[side]
        opponent = self.accounts[side.opponent]
        min_target, max_target = self.raise_bounds(side)
        return BettingContext(
            to_call=self.to_call(side),
            bet=account.bet,
            stack=account.stack,
            opponent_bet=opponent.bet,
            opponent_stack=opponent.stack,
            min_raise_to=min_target,
            max_raise_to=max_target,
        )

    def legal_actions(self, side: Side) -> List[ActionKind]:
        if self.to_act is not side or self.state not in ACTING_STATES[side]:
            return []
        account = self.accounts[side]
        opponent = self.accounts[side.opponent]
        to_call = self.to_call(side)
        legal = [ActionKind.FOLD]
        if to_call == 0:
            legal.append(ActionKind.CHECK)
        else:
            legal.append(ActionKind.CALL)
        if opponent.stack > 0 and account.stack > to_call:
            legal.append(ActionKind.RAISE_TO)
        if account.stack > 0 and (opponent.stack > 0 or to_call > 0):
            legal.append(ActionKind.ALL_IN)
        return legal

    # --- lifecycle -------------------------------------------------------

    def start_round(self, deck: Optional[Sequence[Card]] = None) -> GameState:
        if self.state not in (GameState.READY, GameState.ROUND_OVER):
            raise IllegalActionError(f"cannot start a round while {self.state.value}")
        if self.accounts[Side.PLAYER].stack <= 0:
            self._set_state(GameState.GAME_OVER)
            return self.state
        if self.accounts[Side.DEALER].stack <= 0:
            self._set_state(GameState.VICTORY)
            return self.state

        if deck is None:
            cards = shuffle(new_deck(), self._rng)
        else:
            cards = list(deck)
            if len(cards) != DECK_SIZE or len(set(cards)) != DECK_SIZE:
                raise IllegalActionError("a round needs 52 unique cards")

        self._round_counter += 1
        self.round = Round(round_id=self._round_counter, deck=cards)
        for account in self.accounts.values():
            account.reset_for_round()
        self.round.player_hole = self.round.draw(2)
        self.round.dealer_hole = self.round.draw(2)

        self.logger.log(
            "round_start",
            {
                "round_id": self.round.round_id,
                "stacks": self._stacks_payload(),
                "blinds": {"sb": self.config.small_blind, "bb": self.config.big_blind},
            },
        )
        self._post_blind(Side.PLAYER, self.config.small_blind, "small")
        self._post_blind(Side.DEALER, self.config.big_blind, "big")

        self.state = GameState.PRE_FLOP
        self.to_act = Side.PLAYER
        if self._nothing_left_to_decide(Side.PLAYER):
            self._run_out()
        self._touch()
        return self.state

    def resolve_showdown(self, verdict: ShowdownVerdict) -> GameState:
        if self.state is not GameState.SHOWDOWN or self.round is None:
            raise IllegalActionError(f"no showdown pending (state {self.state.value})")
        pot = self.round.pot
        if verdict.winner is Winner.PLAYER:
            payouts = {Side.PLAYER: pot, Side.DEALER: 0}
        elif verdict.winner is Winner.DEALER:
            payouts = {Side.PLAYER: 0, Side.DEALER: pot}
        else:
            payouts = split_pot(pot)
        self.logger.log(
            "showdown",
            {
                "round_id": self.round.round_id,
                "board": [str(c) for c in self.round.board],
                "player_hole": [str(c) for c in self.round.player_hole],
                "dealer_hole": [str(c) for c in self.round.dealer_hole],
                "verdict": verdict.as_dict(),
            },
        )
        self._finish_round(RoundOutcome(reason="showdown", pot=pot, payouts=payouts, verdict=verdict))
        return self.state

    def reset(self) -> None:
        for account in self.accounts.values():
            account.stack = self.config.starting_stack
            account.reset_for_round()
        self.round = None
        self.to_act = None
        self.state = GameState.READY
        self.epoch += 1
        self.logger.log("reset", {"epoch": self.epoch, "stacks": self._stacks_payload()})
        self._touch()

    # --- betting ---------------------------------------------------------

    def apply(self, side: Side, action: Action) -> GameState:
        """Validate and apply one action for ``side``; raises before mutating."""
        if self.round is None or self.state not in ACTING_STATES[side] or self.to_act is not side:
            raise IllegalActionError(f"it is not the {side.value.lower()}'s turn")
        to_call = self.to_call(side)

        if action.kind is ActionKind.FOLD:
            self._record(side, action.kind, None, to_call)
            self._apply_fold(side)
        elif action.kind is ActionKind.CHECK:
            self._apply_check(side, to_call)
        elif action.kind is ActionKind.CALL:
            self._apply_call(side, to_call)
        elif action.kind is ActionKind.RAISE_TO:
            self._apply_raise_to(side, action.amount, to_call)
        elif action.kind is ActionKind.ALL_IN:
            self._apply_all_in(side, to_call)
        else:
            raise IllegalActionError(f"Unsupported action {action.kind!r}")
        self._touch()
        return self.state

    def _apply_fold(self, side: Side) -> None:
        assert self.round is not None
        pot = self.round.pot
        payouts = {side: 0, side.opponent: pot}
        self._finish_round(RoundOutcome(reason="fold", pot=pot, payouts=payouts, folded=side))

    def _apply_check(self, side: Side, to_call: int) -> None:
        if to_call != 0:
            raise IllegalActionError(f"cannot check facing a bet of {to_call}")
        assert self.round is not None
        self._record(side, ActionKind.CHECK, None, to_call)
        self.round.acted.add(side)
        if side.opponent in self.round.acted:
            self._conclude_street()
        else:
            self._pass_turn(side.opponent)

    def _apply_call(self, side: Side, to_call: int) -> None:
        if to_call <= 0:
            raise IllegalActionError("nothing to call; check instead")
        account = self.accounts[side]
        added = self._transfer(side, to_call)
        self._record(side, ActionKind.CALL, added, to_call)
        assert self.round is not None
        self.round.acted.add(side)
        if account.stack == 0 or self.accounts[side.opponent].stack == 0:
            self._run_out()
        else:
            self._conclude_street()

    def _apply_raise_to(self, side: Side, target: Optional[int], to_call: int) -> None:
        if target is None or isinstance(target, bool) or not isinstance(target, int):
            raise IllegalActionError("raise_to requires an integer amount")
        account = self.accounts[side]
        opponent = self.accounts[side.opponent]
        max_total = account.bet + account.stack
        if target > max_total:
            raise IllegalActionError(f"cannot bet more chips than you have (max {max_total})")
        if target <= opponent.bet:
            if target == max_total and to_call > 0:
                # All-in for no more than the outstanding bet is a short call.
                self._apply_call(side, to_call)
                return
            raise IllegalActionError(f"a raise must go above the current bet of {opponent.bet}")
        if opponent.stack == 0:
            raise IllegalActionError("opponent is all-in; call or fold")
        min_target = self.min_raise_target(side)
        if target < min_target and target != max_total:
            raise IllegalActionError(f"raise must be at least to {min_target}")

        self._transfer(side, target - account.bet)
        self._record(side, ActionKind.RAISE_TO, target, to_call)
        assert self.round is not None
        self.round.acted = {side}
        self._pass_turn(side.opponent)

    def _apply_all_in(self, side: Side, to_call: int) -> None:
        account = self.accounts[side]
        if account.stack <= 0:
            raise IllegalActionError("no chips left to move all-in")
        opponent = self.accounts[side.opponent]
        max_total = account.bet + account.stack
        if max_total <= opponent.bet or opponent.stack == 0:
            if to_call <= 0:
                raise IllegalActionError("opponent is all-in; nothing left to bet against")
            self._apply_call(side, to_call)
            return
        self._apply_raise_to(side, max_total, to_call)

    # --- internals -------------------------------------------------------

    def _post_blind(self, side: Side, amount: int, blind_type: str) -> int:
        posted = self._transfer(side, amount)
        self.logger.log(
            "blind",
            {
                "side": side.value,
                "type": blind_type,
                "amount": posted,
                "all_in": self.accounts[side].stack == 0,
            },
        )
        return posted

    def _transfer(self, side: Side, amount: int) -> int:
        assert self.round is not None
        added = self.accounts[side].commit(amount)
        self.round.pot += added
        return added

    def _record(self, side: Side, kind: ActionKind, amount: Optional[int], to_call: int) -> None:
        assert self.round is not None
        entry = ActionHistoryEntry(
            side=side,
            action=kind,
            amount=amount,
            street=self.round.street.value,
            to_call=to_call,
        )
        self.round.history.append(entry)
        account = self.accounts[side]
        self.logger.log(
            "action",
            {
                **entry.as_dict(),
                "round_id": self.round.round_id,
                "stack_after": account.stack,
                "bet": account.bet,
                "pot": self.round.pot,
            },
        )

    def _pass_turn(self, side: Side) -> None:
        if self._nothing_left_to_decide(side):
            self._run_out()
            return
        self.to_act = side
        self.state = GameState.PLAYER_TURN if side is Side.PLAYER else GameState.DEALER_TURN

    def _nothing_left_to_decide(self, side: Side) -> bool:
        account = self.accounts[side]
        opponent = self.accounts[side.opponent]
        if account.stack == 0:
            return True
        return opponent.stack == 0 and self.to_call(side) == 0

    def _conclude_street(self) -> None:
        assert self.round is not None
        if self.round.street is Street.RIVER:
            self._enter_showdown()
            return
        next_street, count = NEXT_STREET[self.round.street]
        self.round.board.extend(self.round.draw(count))
        self.round.street = next_street
        self.round.acted = set()
        for account in self.accounts.values():
            account.bet = 0
        self.logger.log(
            "street_transition",
            {
                "round_id": self.round.round_id,
                "street": next_street.value,
                "board": [str(c) for c in self.round.board],
            },
        )
        self.to_act = Side.PLAYER
        self.state = GameState.PLAYER_TURN

    def _run_out(self) -> None:
        assert self.round is not None
        missing = BOARD_SIZE - len(self.round.board)
        if missing > 0:
            self.round.board.extend(self.round.draw(missing))
        self.round.street = Street.RIVER
        self.round.ran_out = True
        self.logger.log(
            "runout",
            {
                "round_id": self.round.round_id,
                "board": [str(c) for c in self.round.board],
                "stacks": self._stacks_payload(),
            },
        )
        self._enter_showdown()

    def _enter_showdown(self) -> None:
        self.to_act = None
        self.state = GameState.SHOWDOWN

    def _finish_round(self, outcome: RoundOutcome) -> None:
        assert self.round is not None
        for side, amount in outcome.payouts.items():
            self.accounts[side].stack += amount
        for account in self.accounts.values():
            account.bet = 0
        self.round.pot = 0
        self.round.outcome = outcome
        self.to_act = None
        if self.accounts[Side.PLAYER].stack == 0:
            self.state = GameState.GAME_OVER
        elif self.accounts[Side.DEALER].stack == 0:
            self.state = GameState.VICTORY
        else:
            self.state = GameState.ROUND_OVER
        self.logger.log(
            "round_end",
            {
                "round_id": self.round.round_id,
                **outcome.as_dict(),
                "stacks": self._stacks_payload(),
                "state": self.state.value,
            },
        )

    def _set_state(self, state: GameState) -> None:
        self.state = state
        self.to_act = None
        self._touch()

    def _touch(self) -> None:
        self.version += 1

    def _stacks_payload(self) -> Dict[str, int]:
        return {side.value: account.stack for side, account in self.accounts.items()}

    # --- adapter requests ------------------------------------------------

    def dealer_request(self) -> DealerDecisionRequest:
        if self.round is None or self.to_act is not Side.DEALER:
            raise IllegalActionError("the dealer is not to act")
        dealer = self.accounts[Side.DEALER]
        return DealerDecisionRequest(
            dealer_hand=list(self.round.dealer_hole),
            board=list(self.round.board),
            pot=self.round.pot,
            amount_to_call=self.to_call(Side.DEALER),
            dealer_stack=dealer.stack,
            opponent_stack=self.accounts[Side.PLAYER].stack,
            dealer_bet=dealer.bet,
            min_raise_to=self.raise_bounds(Side.DEALER)[0],
        )

    def showdown_request(self) -> ShowdownRequest:
        if self.round is None or self.state is not GameState.SHOWDOWN:
            raise IllegalActionError("no showdown pending")
        return ShowdownRequest(
            player_hand=list(self.round.player_hole),
            dealer_hand=list(self.round.dealer_hole),
            board=list(self.round.board),
        )

    # --- checks and views ------------------------------------------------

    def chip_total(self) -> int:
        return sum(a.stack for a in self.accounts.values()) + self.pot

    def check_invariants(self) -> None:
        expected = 2 * self.config.starting_stack
        if self.chip_total() != expected:
            raise InvariantError(f"chips drifted: {self.chip_total()} != {expected}")
        for side, account in self.accounts.items():
            if account.stack < 0 or account.bet < 0:
                raise InvariantError(f"{side.value} account went negative: {account}")
        if self.round is None:
            return
        if self.round.outcome is None:
            committed = sum(a.committed for a in self.accounts.values())
            if self.round.pot != committed:
                raise InvariantError(f"pot {self.round.pot} != committed {committed}")
        elif self.round.pot != 0:
            raise InvariantError("pot not cleared after disbursement")
        cards = self.round.player_hole + self.round.dealer_hole + self.round.board + self.round.deck
        if len(cards) != DECK_SIZE or len(set(cards)) != DECK_SIZE:
            raise InvariantError(f"card accounting broken: {len(cards)} cards, {len(set(cards))} unique")
        if len(self.round.board) != self.round.street.board_size:
            raise InvariantError(
                f"board has {len(self.round.board)} cards on the {self.round.street.value}"
            )

    def snapshot(self) -> Dict[str, Any]:
        """Everything a front end needs to render the table and controls."""
        rnd = self.round
        reveal_dealer = bool(rnd and rnd.outcome and rnd.outcome.reason == "showdown")
        min_target, max_target = self.raise_bounds(Side.PLAYER)
        return {
            "state": self.state.value,
            "street": rnd.street.value if rnd else None,
            "to_act": self.to_act.value if self.to_act else None,
            "round_id": rnd.round_id if rnd else None,
            "pot": self.pot,
            "stacks": self._stacks_payload(),
            "bets": {side.value: account.bet for side, account in self.accounts.items()},
            "all_in": {side.value: account.all_in for side, account in self.accounts.items()},
            "to_call": self.to_call(Side.PLAYER),
            "legal_actions": [kind.value for kind in self.legal_actions(Side.PLAYER)],
            "raise_bounds": {"min": min_target, "max": max_target},
            "board": [str(c) for c in rnd.board] if rnd else [],
            "player_hole": [str(c) for c in rnd.player_hole] if rnd else [],
            "dealer_hole": [str(c) for c in rnd.dealer_hole] if reveal_dealer else [],
            "history": [entry.as_dict() for entry in rnd.history] if rnd else [],
            "outcome": rnd.outcome.as_dict() if rnd and rnd.outcome else None,
        }


def split_pot(pot: int) -> Dict[Side, int]:
    """Tie split: the player takes the floor, the dealer the odd chip."""
    player_share = pot // 2
    return {Side.PLAYER: player_share, Side.DEALER: pot - player_share}
