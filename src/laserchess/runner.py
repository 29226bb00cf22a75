"""CLI runner for Laser Chess agent matches.

Usage examples:
- Single game: ``python -m laserchess.runner --red heuristic --blue random --seed 42``
- Watch the board: ``python -m laserchess.runner --red heuristic --blue heuristic --verbose``
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .agents import Agent, HeuristicAgent, RandomAgent
from .config import RulesConfig
from .errors import LaserChessError
from .game_controller import MatchController
from .layouts import DEFAULT_LAYOUT, LAYOUTS
from .notation import location_to_an
from .record import dump_record
from .types import Player

logger = logging.getLogger(__name__)

AGENT_NAMES = ("random", "heuristic")


@dataclass
class GameSummary:
    winner: Optional[Player]
    turns: int
    finished: bool
    casualties: List[str] = field(default_factory=list)


def _build_agent(name: str, seed: Optional[int], config: RulesConfig) -> Agent:
    if name == "random":
        return RandomAgent(seed=seed)
    if name == "heuristic":
        return HeuristicAgent(seed=seed, config=config)
    raise ValueError(f"Unknown agent '{name}'")


def play_game(
    red_agent: Agent,
    blue_agent: Agent,
    layout: str = DEFAULT_LAYOUT,
    first: Optional[Player] = None,
    config: Optional[RulesConfig] = None,
    max_turns: int = 200,
    emit_moves: bool = False,
    show_board: bool = False,
    save_record_path: Optional[str] = None,
) -> GameSummary:
    controller = MatchController(
        board=layout, first=first, config=config, red_agent=red_agent, blue_agent=blue_agent
    )
    casualties: List[str] = []

    if show_board:
        print(controller.board.pretty())
        print()

    turns = 0
    while not controller.state.is_finished and turns < max_turns:
        player = controller.active_player
        result = controller.step_ai()
        turns += 1
        line = f"Turn {turns}: {player.name} {result.movement}"
        victim = result.laser.casualty_piece
        if victim is not None and result.casualty is not None:
            hit = f"{victim.owner.name} {victim.kind.name} at {location_to_an(result.casualty)}"
            casualties.append(hit)
            line += f" -> laser destroyed {hit}"
        if emit_moves:
            print(line)
        if show_board:
            print(controller.board.pretty())
            print()

    state = controller.state
    if not state.is_finished:
        logger.info("stopped after %d turns without a result", turns)

    if save_record_path is not None:
        comments = [
            f"# red_agent={red_agent.__class__.__name__}",
            f"# blue_agent={blue_agent.__class__.__name__}",
            f"# winner={state.winner.name if state.winner else 'None'}",
            f"# turns={turns}",
        ]
        with open(save_record_path, "w", encoding="utf-8") as f:
            f.write(dump_record(controller.to_record(comments)))

    return GameSummary(winner=state.winner, turns=turns, finished=state.is_finished, casualties=casualties)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Laser Chess runner")
    parser.add_argument("--red", choices=AGENT_NAMES, default="heuristic")
    parser.add_argument("--blue", choices=AGENT_NAMES, default="random")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--layout", type=str, default=DEFAULT_LAYOUT, help=f"Layout name ({', '.join(LAYOUTS)}) or setup notation"
    )
    parser.add_argument("--first", choices=["red", "blue"], default=None, help="Override the side to move first")
    parser.add_argument("--max-turns", type=int, default=200)
    parser.add_argument("--sphinx-strike-wins", action="store_true", help="A struck Sphinx loses the match")
    parser.add_argument("--pass-when-stuck", action="store_true", help="Pass instead of drawing with no legal moves")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--save-record", type=str, default=None, help="Path to save the match record")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = RulesConfig(
        sphinx_strike_wins=args.sphinx_strike_wins,
        draw_when_no_moves=not args.pass_when_stuck,
    )
    red_agent = _build_agent(args.red, seed=args.seed, config=config)
    blue_agent = _build_agent(args.blue, seed=None if args.seed is None else args.seed + 1, config=config)
    first = Player(args.first) if args.first else None

    try:
        summary = play_game(
            red_agent=red_agent,
            blue_agent=blue_agent,
            layout=args.layout,
            first=first,
            config=config,
            max_turns=args.max_turns,
            emit_moves=True,
            show_board=args.verbose,
            save_record_path=args.save_record,
        )
    except LaserChessError as exc:
        print(f"Invalid configuration: {exc}")
        raise SystemExit(1)

    if summary.winner is not None:
        print(f"Game winner: {summary.winner.name}")
    elif summary.finished:
        print("Game drawn")
    else:
        print(f"No result after {summary.turns} turns")


if __name__ == "__main__":
    main()
