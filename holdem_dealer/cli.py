"""Command line interface for the heads-up Hold'em table."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import pathlib
import sys
from typing import Any, Dict, List, Optional

import uvicorn
from dotenv import load_dotenv

from .config import TableConfig
from .controller import GameController
from .engine import GameState, HoldemEngine, IllegalActionError
from .images import ImageProvider
from .logging_utils import NDJSONLogger
from .registry import make_dealer, make_judge
from .schemas import Action, ActionKind
from .web import create_app

logger = logging.getLogger(__name__)

EVENT_LOG_NAME = "events.ndjson"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play heads-up No-Limit Hold'em against the dealer")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Python logging level (e.g. INFO, WARNING). Use INFO to see adapter fallbacks.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (("serve", "Serve the table over HTTP"), ("play", "Play in the terminal")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--config", help="Path to a table config (YAML or JSON)")
        cmd.add_argument("--dealer", help="Dealer strategy (registered name or pkg.module:Class)")
        cmd.add_argument("--judge", help="Showdown oracle (registered name or pkg.module:Class)")
        cmd.add_argument("--seed", type=int, help="Seed for the shuffler")
        cmd.add_argument("--log-dir", help="Directory for the NDJSON event log")
        if name == "serve":
            cmd.add_argument("--host", help="HTTP host")
            cmd.add_argument("--port", type=int, help="HTTP port")
            cmd.add_argument("--images", action="store_true", help="Generate table artwork")
    return parser


def resolve_config(args: argparse.Namespace) -> TableConfig:
    base = TableConfig.from_file(args.config) if args.config else TableConfig()
    config = TableConfig.from_env(base)
    overrides: Dict[str, Any] = {}
    for arg_name, field_name in (
        ("dealer", "dealer"),
        ("judge", "judge"),
        ("seed", "seed"),
        ("log_dir", "log_dir"),
        ("host", "host"),
        ("port", "port"),
    ):
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[field_name] = value
    if getattr(args, "images", False):
        overrides["images_enabled"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)
        config.validate()
    return config


def build_controller(config: TableConfig) -> GameController:
    log_path = pathlib.Path(config.log_dir) / EVENT_LOG_NAME if config.log_dir else None
    events = NDJSONLogger(log_path)
    engine = HoldemEngine(config, logger=events)
    dealer_kwargs: Dict[str, Any] = {}
    if config.dealer == "tag":
        dealer_kwargs["big_blind"] = config.big_blind
    elif config.dealer == "random":
        dealer_kwargs["seed"] = config.seed
    dealer = make_dealer(config.dealer, **dealer_kwargs)
    judge = make_judge(config.judge)
    logger.info("Table ready: dealer=%s judge=%s", getattr(dealer, "name", dealer), getattr(judge, "name", judge))
    return GameController(
        engine,
        dealer,
        judge,
        decision_timeout=config.decision_timeout_s,
        runout_delay=config.runout_delay_s,
        logger=events,
    )


def serve(config: TableConfig) -> None:
    controller = build_controller(config)
    app = create_app(controller, ImageProvider(enabled=config.images_enabled))
    uvicorn.run(app, host=config.host, port=config.port)


def parse_action(text: str) -> Optional[Action]:
    parts = text.strip().lower().split()
    if not parts:
        return None
    aliases = {
        "f": "fold",
        "x": "check",
        "k": "check",
        "c": "call",
        "r": "raise_to",
        "raise": "raise_to",
        "a": "all_in",
        "allin": "all_in",
    }
    word = aliases.get(parts[0], parts[0])
    try:
        kind = ActionKind(word)
    except ValueError:
        return None
    if kind is ActionKind.RAISE_TO:
        if len(parts) < 2 or not parts[1].isdigit():
            return None
        return Action.raise_to(int(parts[1]))
    return Action(kind)


def _describe(snapshot: Dict[str, Any]) -> List[str]:
    lines = [
        f"-- round {snapshot['round_id']} · {snapshot['state']} · {snapshot['street'] or '-'}",
        f"   board:  {' '.join(snapshot['board']) or '(none)'}",
        f"   you:    {' '.join(snapshot['player_hole'])}   stack {snapshot['stacks']['PLAYER']}",
        f"   dealer: {' '.join(snapshot['dealer_hole']) or '?? ??'}   stack {snapshot['stacks']['DEALER']}",
        f"   pot {snapshot['pot']} · to call {snapshot['to_call']}",
    ]
    outcome = snapshot.get("outcome")
    if outcome:
        verdict = outcome.get("verdict")
        detail = ""
        if verdict:
            detail = f" ({verdict['winner']}: {verdict['winningHandName']}, {verdict['winningHandDescription']})"
        lines.append(f"   result: {outcome['reason']} {outcome['payouts']}{detail}")
    return lines


async def play(config: TableConfig) -> None:
    controller = build_controller(config)
    print("Commands: fold | check | call | raise <total> | all_in | quit")
    snapshot = await controller.start_round()
    while True:
        print("\n".join(_describe(snapshot)))
        state = controller.engine.state
        if state in (GameState.GAME_OVER, GameState.VICTORY):
            print("You are out of chips. Game over." if state is GameState.GAME_OVER else "The dealer is broke. You win!")
            return
        if state is GameState.ROUND_OVER:
            answer = await asyncio.to_thread(input, "Next round? [Y/n] ")
            if answer.strip().lower().startswith("n"):
                return
            snapshot = await controller.start_round()
            continue
        legal = ", ".join(snapshot["legal_actions"])
        bounds = snapshot["raise_bounds"]
        text = await asyncio.to_thread(input, f"[{legal}] raise {bounds['min']}-{bounds['max']} > ")
        if text.strip().lower() in {"q", "quit", "exit"}:
            return
        action = parse_action(text)
        if action is None:
            print("Unrecognised command.")
            continue
        try:
            snapshot = await controller.player_action(action)
        except IllegalActionError as exc:
            print(f"Illegal action: {exc}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    # The openai SDK and httpx log every request at INFO.
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("openai._base_client").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = resolve_config(args)
    except ValueError as exc:
        print(f"[CLI] Invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    if args.command == "serve":
        serve(config)
    else:
        try:
            asyncio.run(play(config))
        except (KeyboardInterrupt, EOFError):
            print()


if __name__ == "__main__":
    main()
