"""Match record parsing and serialization.

A record is plain text:

    # red_agent=HeuristicAgent
    # rules=sphinx_strike_wins
    L:xs,3,as,k,as,pse,2/... b
    1:B;j8~
    2:R;a1+

``#`` lines are comments except ``# rules=``, which names the variant switches in
play (``standard`` when none); the ``L:`` line holds the starting setup notation (with the
side to move), and every other line is one ply ``<ply>:<R|B>;<movement text>``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import RulesConfig, rules_from_flags, rules_to_flags
from .errors import NotationError
from .notation import movement_to_text, parse_movement_text
from .types import Movement, Player

Ply = Tuple[int, Player, Movement]

RULES_PREFIX = "# rules="
STANDARD_RULES = "standard"


@dataclass
class MatchRecord:
    setup: str
    moves: List[Ply] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)
    rules: Optional[RulesConfig] = None


def _parse_ply_line(line: str) -> Ply:
    if ":" not in line or ";" not in line:
        raise NotationError(f"Invalid ply line '{line}'")
    ply_str, rest = line.split(":", 1)
    color_str, move_part = rest.split(";", 1)
    try:
        ply = int(ply_str)
    except ValueError as exc:
        raise NotationError(f"Invalid ply number in '{line}'") from exc
    color = color_str.strip().upper()
    if color not in {"R", "B"}:
        raise NotationError(f"Invalid color '{color_str}' in '{line}'")
    player = Player.RED if color == "R" else Player.BLUE
    return ply, player, parse_movement_text(move_part)


def _parse_rules(text: str) -> RulesConfig:
    value = text.strip()
    if value == STANDARD_RULES:
        return RulesConfig()
    try:
        return rules_from_flags(value.split(","))
    except ValueError as exc:
        raise NotationError(f"Invalid rules line '{text}'") from exc


def parse_record(text: str) -> MatchRecord:
    """Parse record text into a structured ``MatchRecord``."""

    comments: List[str] = []
    setup: Optional[str] = None
    rules: Optional[RulesConfig] = None
    moves: List[Ply] = []

    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if not stripped:
            continue
        if stripped.startswith(RULES_PREFIX):
            rules = _parse_rules(stripped[len(RULES_PREFIX):])
            continue
        if stripped.startswith("#"):
            comments.append(stripped)
            continue
        if stripped.startswith("L:"):
            if setup is not None:
                raise NotationError("Record has more than one L: line")
            setup = stripped[2:].strip()
            continue
        moves.append(_parse_ply_line(stripped))

    if setup is None:
        raise NotationError("Missing L: setup line")
    return MatchRecord(setup=setup, moves=moves, comments=comments, rules=rules)


def dump_record(record: MatchRecord) -> str:
    """Serialize a ``MatchRecord`` to text."""

    lines: List[str] = list(record.comments)
    if record.rules is not None:
        flags = rules_to_flags(record.rules)
        lines.append(RULES_PREFIX + (",".join(flags) if flags else STANDARD_RULES))
    lines.append(f"L:{record.setup}")
    for ply, player, movement in record.moves:
        lines.append(f"{ply}:{player.letter};{movement_to_text(movement)}")
    return "\n".join(lines) + "\n"
