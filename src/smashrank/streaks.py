"""
Win/loss streak tracking.

A streak is a signed count of consecutive same-outcome results:
positive for wins, negative for losses, 0 before the first decided match
(or right after a draw). ``best_streak`` is the longest win streak seen.

Streaks are derived state that cannot be inverted from a single match:
knowing that a deleted match was a win does not tell you what the streak
was before it. Undo therefore recomputes with ``recalculate_streak`` over
the remaining history instead of subtracting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    best_streak: int


def update_streak(current_streak: int, best_streak: int, won: bool) -> StreakResult:
    """
    Advance a streak by one decided match.

    Examples:
        update_streak(3, 3, True)    # -> (4, 4)
        update_streak(3, 5, False)   # -> (-1, 5), never 0
        update_streak(-2, 5, False)  # -> (-3, 5)
    """
    if won:
        new_streak = current_streak + 1 if current_streak > 0 else 1
        return StreakResult(current_streak=new_streak, best_streak=max(best_streak, new_streak))

    new_streak = current_streak - 1 if current_streak < 0 else -1
    return StreakResult(current_streak=new_streak, best_streak=best_streak)


def recalculate_streak(outcomes: Iterable[Optional[bool]]) -> StreakResult:
    """
    Rebuild a streak from a player's ordered results, starting from zero.

    Args:
        outcomes: Chronological results; True = win, False = loss,
                  None = draw (resets the current streak, keeps best)

    Returns:
        StreakResult after the last outcome
    """
    current = 0
    best = 0
    for won in outcomes:
        if won is None:
            current = 0
            continue
        result = update_streak(current, best, won)
        current, best = result.current_streak, result.best_streak
    return StreakResult(current_streak=current, best_streak=best)
