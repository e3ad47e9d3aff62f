"""
Ping-pong set score utilities.

Reporters enter scores from their own point of view ("11-7 9-11 11-5").
Everything downstream (achievement rules, stored match records) wants
them oriented from the match winner's side, so ``w`` is always the
winner's points in that set and ``l`` the loser's. For draws there is no
winner and the orientation is simply player A / player B.

A set is valid if it ends 11 to 9 or less, or goes to deuce and is won
by exactly two points (12-10, 15-13, ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

POINTS_TO_WIN_SET = 11


class InvalidSetScoreError(ValueError):
    """Raised when set scores are malformed or contradict the declared winner."""
    pass


@dataclass(frozen=True)
class SetScore:
    """
    One set, oriented from the match winner's side.

    Attributes:
        w: Points scored by the match winner in this set
        l: Points scored by the match loser in this set
    """
    w: int
    l: int

    def __post_init__(self) -> None:
        if self.w < 0 or self.l < 0:
            raise InvalidSetScoreError(f"set scores cannot be negative: {self.w}-{self.l}")

    @property
    def won_by_winner(self) -> bool:
        return self.w > self.l

    def __repr__(self) -> str:
        return f"{self.w}-{self.l}"


def is_valid_set_score(winner_points: int, loser_points: int) -> bool:
    """
    Check a single set from the set winner's side.

    Examples:
        is_valid_set_score(11, 9)   # True
        is_valid_set_score(11, 10)  # False, deuce needs a two point lead
        is_valid_set_score(12, 10)  # True
        is_valid_set_score(13, 10)  # False
    """
    if winner_points < POINTS_TO_WIN_SET or loser_points < 0:
        return False
    if winner_points == POINTS_TO_WIN_SET:
        return loser_points <= POINTS_TO_WIN_SET - 2
    return loser_points >= POINTS_TO_WIN_SET - 1 and winner_points - loser_points == 2


def orient_set_scores(
    reporter_scores: Iterable[tuple[int, int]],
    reporter_won: bool,
) -> list[SetScore]:
    """
    Turn (reporter, opponent) pairs into winner-oriented set scores.

    Args:
        reporter_scores: Sets as (reporter points, opponent points)
        reporter_won: Whether the reporter won the match

    Returns:
        List of SetScore with ``w`` = match winner's points
    """
    if reporter_won:
        return [SetScore(w=r, l=o) for r, o in reporter_scores]
    return [SetScore(w=o, l=r) for r, o in reporter_scores]


def count_sets(set_scores: Sequence[SetScore]) -> tuple[int, int]:
    """Return (sets won by the match winner, sets won by the match loser)."""
    winner_sets = sum(1 for s in set_scores if s.w > s.l)
    loser_sets = sum(1 for s in set_scores if s.l > s.w)
    return winner_sets, loser_sets


def validate_oriented(set_scores: Sequence[SetScore], allow_draw: bool = False) -> None:
    """
    Check that winner-oriented set scores are consistent.

    Every set must be a valid ping-pong set, and the declared winner must
    have taken more sets than the loser (or the same number when
    ``allow_draw`` is set, for tournament draws).

    Raises:
        InvalidSetScoreError: On the first violation found
    """
    for s in set_scores:
        high, low = max(s.w, s.l), min(s.w, s.l)
        if not is_valid_set_score(high, low):
            raise InvalidSetScoreError(f"invalid set score {s.w}-{s.l}")

    winner_sets, loser_sets = count_sets(set_scores)
    if winner_sets < loser_sets or (winner_sets == loser_sets and not allow_draw):
        raise InvalidSetScoreError(
            f"set scores are not oriented from the winner's side: "
            f"winner took {winner_sets} sets, loser took {loser_sets}"
        )
