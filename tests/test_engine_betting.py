import pytest

from holdem_dealer.engine import GameState, IllegalActionError, Street
from holdem_dealer.schemas import Action, ActionKind, Side


def test_round_start_posts_blinds(engine, make_deck):
    state = engine.start_round(make_deck())
    assert state is GameState.PRE_FLOP
    assert engine.pot == 30
    assert engine.stack(Side.PLAYER) == 990
    assert engine.stack(Side.DEALER) == 980
    assert engine.to_act is Side.PLAYER
    assert engine.to_call(Side.PLAYER) == 10
    assert engine.legal_actions(Side.PLAYER) == [
        ActionKind.FOLD,
        ActionKind.CALL,
        ActionKind.RAISE_TO,
        ActionKind.ALL_IN,
    ]
    assert engine.legal_actions(Side.DEALER) == []
    engine.check_invariants()


def test_preflop_fold_awards_blinds_to_dealer(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.fold())
    assert engine.state is GameState.ROUND_OVER
    assert engine.stack(Side.DEALER) == 1010
    assert engine.stack(Side.PLAYER) == 990
    assert engine.pot == 0
    assert engine.round.outcome.folded is Side.PLAYER
    engine.check_invariants()


def test_check_facing_a_bet_is_rejected_without_mutation(engine, make_deck):
    engine.start_round(make_deck())
    before = engine.snapshot()
    version = engine.version
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.check())
    assert engine.snapshot() == before
    assert engine.version == version


def test_acting_out_of_turn_is_rejected(engine, make_deck):
    engine.start_round(make_deck())
    with pytest.raises(IllegalActionError):
        engine.apply(Side.DEALER, Action.call())


def test_call_that_equalizes_preflop_deals_the_flop(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.call())
    assert engine.street is Street.FLOP
    assert engine.state is GameState.PLAYER_TURN
    assert [str(c) for c in engine.round.board] == ["Kh", "Qs", "9c"]
    assert engine.bet(Side.PLAYER) == engine.bet(Side.DEALER) == 0
    assert engine.pot == 40
    engine.check_invariants()


def test_call_with_nothing_to_call_is_rejected(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.call())
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.call())


def test_check_check_walks_the_streets_to_showdown(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.call())
    for street, board_size in ((Street.TURN, 4), (Street.RIVER, 5)):
        engine.apply(Side.PLAYER, Action.check())
        assert engine.state is GameState.DEALER_TURN
        engine.apply(Side.DEALER, Action.check())
        assert engine.street is street
        assert len(engine.round.board) == board_size
        engine.check_invariants()
    engine.apply(Side.PLAYER, Action.check())
    engine.apply(Side.DEALER, Action.check())
    assert engine.state is GameState.SHOWDOWN
    assert engine.to_act is None


def test_raise_below_minimum_is_rejected(engine, make_deck):
    engine.start_round(make_deck())
    assert engine.raise_bounds(Side.PLAYER) == (40, 1000)
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.raise_to(30))
    engine.apply(Side.PLAYER, Action.raise_to(40))
    assert engine.state is GameState.DEALER_TURN
    assert engine.to_call(Side.DEALER) == 20
    assert engine.min_raise_target(Side.DEALER) == 60
    assert engine.pot == 60


def test_raise_must_exceed_the_current_bet(engine, make_deck):
    engine.start_round(make_deck())
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.raise_to(20))


def test_raise_above_stack_is_rejected(engine, make_deck):
    engine.start_round(make_deck())
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.raise_to(1001))


def test_raise_requires_an_integer_target(engine, make_deck):
    engine.start_round(make_deck())
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action(ActionKind.RAISE_TO, None))


def test_reraise_reopens_action(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.raise_to(60))
    engine.apply(Side.DEALER, Action.raise_to(180))
    assert engine.state is GameState.PLAYER_TURN
    assert engine.to_call(Side.PLAYER) == 120
    assert engine.min_raise_target(Side.PLAYER) == 300
    engine.apply(Side.PLAYER, Action.call())
    assert engine.street is Street.FLOP
    assert engine.pot == 360
    engine.check_invariants()


def test_all_in_under_raise_is_allowed(engine, make_deck, set_stacks):
    set_stacks(engine, 35, 1965)
    engine.start_round(make_deck())
    assert engine.raise_bounds(Side.PLAYER) == (35, 35)
    engine.apply(Side.PLAYER, Action.raise_to(35))
    assert engine.stack(Side.PLAYER) == 0
    assert engine.state is GameState.DEALER_TURN
    assert engine.legal_actions(Side.DEALER) == [ActionKind.FOLD, ActionKind.CALL, ActionKind.ALL_IN]
    engine.apply(Side.DEALER, Action.call())
    assert engine.state is GameState.SHOWDOWN
    assert len(engine.round.board) == 5
    assert engine.round.ran_out
    assert engine.pot == 70
    engine.check_invariants()


def test_forced_all_in_call_for_less(engine, make_deck, set_stacks):
    set_stacks(engine, 100, 1900)
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.call())
    engine.apply(Side.PLAYER, Action.check())
    engine.apply(Side.DEALER, Action.raise_to(500))
    assert engine.to_call(Side.PLAYER) == 500
    engine.apply(Side.PLAYER, Action.call())
    assert engine.stack(Side.PLAYER) == 0
    assert engine.state is GameState.SHOWDOWN
    assert engine.pot == 620
    engine.check_invariants()


def test_short_all_in_raise_target_is_applied_as_call(engine, make_deck, set_stacks):
    set_stacks(engine, 100, 1900)
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.call())
    engine.apply(Side.PLAYER, Action.check())
    engine.apply(Side.DEALER, Action.raise_to(500))
    engine.apply(Side.PLAYER, Action.raise_to(80))
    assert engine.round.history[-1].action is ActionKind.CALL
    assert engine.state is GameState.SHOWDOWN


def test_raising_into_an_all_in_opponent_is_rejected(engine, make_deck, set_stacks):
    set_stacks(engine, 1985, 15)
    engine.start_round(make_deck())
    assert engine.bet(Side.DEALER) == 15
    assert ActionKind.RAISE_TO not in engine.legal_actions(Side.PLAYER)
    with pytest.raises(IllegalActionError):
        engine.apply(Side.PLAYER, Action.raise_to(100))


def test_all_in_against_all_in_opponent_is_a_call(engine, make_deck, set_stacks):
    set_stacks(engine, 1985, 15)
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.all_in())
    assert engine.round.history[-1].action is ActionKind.CALL
    assert engine.pot == 30
    assert engine.stack(Side.PLAYER) == 1970
    assert engine.state is GameState.SHOWDOWN
    engine.check_invariants()


def test_all_in_shove_passes_the_turn(engine, make_deck):
    engine.start_round(make_deck())
    engine.apply(Side.PLAYER, Action.all_in())
    assert engine.stack(Side.PLAYER) == 0
    assert engine.bet(Side.PLAYER) == 1000
    assert engine.state is GameState.DEALER_TURN
    engine.apply(Side.DEALER, Action.fold())
    assert engine.stack(Side.PLAYER) == 1020
    assert engine.state is GameState.ROUND_OVER
    engine.check_invariants()


def test_pot_never_decreases_during_a_round(engine, make_deck):
    engine.start_round(make_deck())
    pots = [engine.pot]
    for side, action in (
        (Side.PLAYER, Action.raise_to(60)),
        (Side.DEALER, Action.call()),
        (Side.PLAYER, Action.check()),
        (Side.DEALER, Action.raise_to(100)),
        (Side.PLAYER, Action.call()),
    ):
        engine.apply(side, action)
        pots.append(engine.pot)
        engine.check_invariants()
    assert pots == sorted(pots)
    assert pots[-1] == 320
