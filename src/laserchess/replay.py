"""Replay Laser Chess match records and validate every ply."""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Tuple

from .config import RulesConfig
from .errors import NotationError
from .game_controller import MatchController
from .record import MatchRecord, parse_record
from .types import Player

logger = logging.getLogger(__name__)


def replay_record(
    record: MatchRecord, config: Optional[RulesConfig] = None, verbose: bool = False
) -> Tuple[MatchController, Optional[Player]]:
    """Replay a parsed record and return the final controller and winner (if any).

    ``config`` overrides the rules stored in the record.
    """

    controller = MatchController(board=record.setup, config=config or record.rules)

    for idx, (ply, player, movement) in enumerate(record.moves):
        if ply != idx + 1:
            raise NotationError(f"Ply numbering mismatch at move {idx + 1}: expected {idx + 1}, got {ply}")
        # Out-of-turn and illegal plies raise from the controller with the rule violated.
        result = controller.commit_move(movement, player)
        if verbose:
            casualty = ""
            if result.laser.casualty_piece is not None:
                victim = result.laser.casualty_piece
                casualty = f" laser destroyed {victim.owner.name} {victim.kind.name}"
            print(f"Ply {ply}: {player.name} {result.movement}{casualty}")
            print(controller.board.pretty())
            print()

    return controller, controller.state.winner


def replay_file(
    path: str, config: Optional[RulesConfig] = None, verbose: bool = False
) -> Tuple[MatchController, Optional[Player]]:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    record = parse_record(text)
    logger.debug("replaying %s (%d plies)", path, len(record.moves))
    return replay_record(record, config=config, verbose=verbose)


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Replay a Laser Chess match record")
    parser.add_argument("--file", required=True, help="Path to match record file")
    parser.add_argument("--verbose", action="store_true", help="Print each board during replay")
    parser.add_argument("--sphinx-strike-wins", action="store_true", help="Replay with Sphinx strikes enabled")
    parser.add_argument(
        "--pass-when-stuck", action="store_true", help="Replay with passing instead of drawing when stuck"
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = None
    # Without flags the rules recorded in the file apply.
    if args.sphinx_strike_wins or args.pass_when_stuck:
        config = RulesConfig(
            sphinx_strike_wins=args.sphinx_strike_wins,
            draw_when_no_moves=not args.pass_when_stuck,
        )
    controller, winner = replay_file(args.file, config=config, verbose=args.verbose)
    if winner:
        print(f"Winner: {winner.name}")
    elif controller.state.is_finished:
        print("Winner: None (draw)")
    else:
        print("Winner: None (game not terminal)")
    print("Final board:")
    print(controller.board.pretty())


if __name__ == "__main__":
    main()
