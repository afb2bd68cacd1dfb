import pytest

from holdem_dealer.adapters.random_dealer import RandomDealer
from holdem_dealer.cli import build_controller, build_parser, parse_action, resolve_config
from holdem_dealer.schemas import Action


@pytest.mark.parametrize(
    "text, expected",
    [
        ("fold", Action.fold()),
        ("x", Action.check()),
        ("call", Action.call()),
        ("raise 120", Action.raise_to(120)),
        ("all_in", Action.all_in()),
        ("raise", None),
        ("dance", None),
        ("", None),
    ],
)
def test_parse_action(text, expected):
    assert parse_action(text) == expected


def test_command_line_overrides_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("HOLDEM_DEALER", raising=False)
    path = tmp_path / "table.yaml"
    path.write_text("dealer: tag\nblinds:\n  sb: 5\n  bb: 10\n", encoding="utf-8")
    args = build_parser().parse_args(["play", "--config", str(path), "--dealer", "random", "--seed", "3"])
    config = resolve_config(args)
    assert config.dealer == "random"
    assert config.seed == 3
    assert config.big_blind == 10


def test_build_controller_writes_event_log(tmp_path):
    args = build_parser().parse_args(["serve", "--dealer", "random", "--log-dir", str(tmp_path), "--port", "9000"])
    config = resolve_config(args)
    controller = build_controller(config)
    assert isinstance(controller.dealer, RandomDealer)
    assert config.port == 9000
    controller.engine.start_round()
    assert (tmp_path / "events.ndjson").read_text(encoding="utf-8").count("\n") >= 3
