"""Rule switches for variant play."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class RulesConfig:
    """Variant rules.

    ``sphinx_strike_wins``: a beam hitting a Sphinx destroys it and wins for the firing
    side. When off, a Sphinx simply absorbs the beam.

    ``draw_when_no_moves``: end the match as a draw when the side to move has no legal
    movement. When off, that side passes instead.
    """

    sphinx_strike_wins: bool = False
    draw_when_no_moves: bool = True


DEFAULT_RULES = RulesConfig()


RULE_FLAGS = ("sphinx_strike_wins", "pass_when_stuck")


def rules_to_flags(config: RulesConfig) -> List[str]:
    """Names of the variant switches that differ from the standard rules."""

    flags: List[str] = []
    if config.sphinx_strike_wins:
        flags.append("sphinx_strike_wins")
    if not config.draw_when_no_moves:
        flags.append("pass_when_stuck")
    return flags


def rules_from_flags(flags: Iterable[str]) -> RulesConfig:
    names = {flag.strip().lower() for flag in flags if flag.strip()}
    unknown = names - set(RULE_FLAGS)
    if unknown:
        raise ValueError(f"Unknown rule flags: {', '.join(sorted(unknown))}")
    return RulesConfig(
        sphinx_strike_wins="sphinx_strike_wins" in names,
        draw_when_no_moves="pass_when_stuck" not in names,
    )
