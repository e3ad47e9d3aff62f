"""
ELO rating calculator for ping-pong matches.

Implements the classic ELO formula with integer ratings:
- Experience-based K-factor, chosen per player (winner and loser can differ)
- Draw variant for tournament matches that end level on sets
- Doubles variant that rates each pair by its mean rating
- A hard floor so no rating drops below ELO_FLOOR

The ELO formula:
  Expected score: E_A = 1 / (1 + 10^((R_B - R_A) / 400))
  New rating: R'_A = max(FLOOR, round(R_A + K_A * (actual - E_A)))

Where actual is 1 for a win, 0.5 for a draw and 0 for a loss.
"""

import math
from dataclasses import dataclass
from typing import Optional

from smashrank.elo.constants import DEFAULT_PARAMS, EloParams


@dataclass(frozen=True)
class EloResult:
    """
    Result of a singles ELO calculation.

    ``change`` is the winner's signed delta after rounding and flooring,
    which is what the match record stores and what the bot displays.
    """
    winner_new_rating: int
    loser_new_rating: int
    change: int


@dataclass(frozen=True)
class DrawEloResult:
    """Result of a draw: both players move toward each other."""
    player_a_new_rating: int
    player_b_new_rating: int
    player_a_change: int
    player_b_change: int


@dataclass(frozen=True)
class DoublesEloResult:
    """
    Result of a doubles ELO calculation.

    Both partners on a side receive the same delta, but the floor is
    applied per player, so their new ratings can differ in how much of
    the delta actually landed.
    """
    winner1_new_rating: int
    winner2_new_rating: int
    loser1_new_rating: int
    loser2_new_rating: int
    change: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (-2.5 -> -2, 2.5 -> 3)."""
    return math.floor(value + 0.5)


def get_k_factor(games_played: int, params: Optional[EloParams] = None) -> int:
    """
    K-factor for a player with ``games_played`` games before this match.

    Args:
        games_played: Completed games on the track being rated
        params: Optional custom parameters

    Returns:
        40 for fewer than 10 games, 24 up to 30 games, 16 after that
        (with the default schedule)

    Raises:
        ValueError: If games_played is negative
    """
    if games_played < 0:
        raise ValueError(f"games_played must be >= 0, got {games_played}")

    schedule = (params or DEFAULT_PARAMS).k_schedule
    for upper_bound, k in schedule:
        if upper_bound is None or games_played <= upper_bound:
            return k
    # A schedule without an open-ended last entry falls back to its last K
    return schedule[-1][1]


def expected_score(rating: float, other_rating: float, params: Optional[EloParams] = None) -> float:
    """
    Probability that a player rated ``rating`` beats one rated ``other_rating``.

    expected_score(a, b) + expected_score(b, a) == 1 for any pair.
    """
    spread = (params or DEFAULT_PARAMS).spread
    return 1.0 / (1.0 + 10.0 ** ((other_rating - rating) / spread))


def win_probability(rating: float, other_rating: float, params: Optional[EloParams] = None) -> float:
    """Expected score as a percentage (0-100), for display."""
    return expected_score(rating, other_rating, params) * 100.0


def team_rating(rating_1: float, rating_2: float) -> float:
    """
    Doubles team rating: the mean of both partners.

    Always derived on the fly from the partners' own ratings, never stored.
    """
    return (rating_1 + rating_2) / 2


def _new_rating(rating: int, k: int, actual: float, expected: float, floor: int) -> int:
    return max(floor, round_half_up(rating + k * (actual - expected)))


def calculate_elo(
    winner_rating: int,
    loser_rating: int,
    winner_games_played: int,
    loser_games_played: int,
    params: Optional[EloParams] = None,
) -> EloResult:
    """
    Calculate new ratings after a decided singles match.

    Each side uses its own K-factor, so a newcomer beating a veteran gains
    more than the veteran loses. Each side is rounded and then floored on
    its own.

    Args:
        winner_rating: Winner's rating before the match
        loser_rating: Loser's rating before the match
        winner_games_played: Winner's games before the match
        loser_games_played: Loser's games before the match
        params: Optional custom parameters

    Returns:
        EloResult with both new ratings and the winner's delta

    Example:
        # Two fresh players rated 1200: K=40, expected 0.5
        result = calculate_elo(1200, 1200, 0, 0)
        # result.winner_new_rating == 1220, result.loser_new_rating == 1180
    """
    params = params or DEFAULT_PARAMS

    winner_k = get_k_factor(winner_games_played, params)
    loser_k = get_k_factor(loser_games_played, params)

    winner_expected = expected_score(winner_rating, loser_rating, params)
    loser_expected = expected_score(loser_rating, winner_rating, params)

    winner_new = _new_rating(winner_rating, winner_k, 1.0, winner_expected, params.floor)
    loser_new = _new_rating(loser_rating, loser_k, 0.0, loser_expected, params.floor)

    return EloResult(
        winner_new_rating=winner_new,
        loser_new_rating=loser_new,
        change=winner_new - winner_rating,
    )


def calculate_draw_elo(
    player_a_rating: int,
    player_b_rating: int,
    player_a_games_played: int,
    player_b_games_played: int,
    params: Optional[EloParams] = None,
) -> DrawEloResult:
    """
    Calculate new ratings after a drawn match (actual score 0.5 each).

    Equal ratings produce no change. Otherwise the higher-rated player
    loses points and the lower-rated player gains them; the magnitudes
    only match when both players are on the same K-factor.
    """
    params = params or DEFAULT_PARAMS

    k_a = get_k_factor(player_a_games_played, params)
    k_b = get_k_factor(player_b_games_played, params)

    expected_a = expected_score(player_a_rating, player_b_rating, params)
    expected_b = expected_score(player_b_rating, player_a_rating, params)

    new_a = _new_rating(player_a_rating, k_a, 0.5, expected_a, params.floor)
    new_b = _new_rating(player_b_rating, k_b, 0.5, expected_b, params.floor)

    return DrawEloResult(
        player_a_new_rating=new_a,
        player_b_new_rating=new_b,
        player_a_change=new_a - player_a_rating,
        player_b_change=new_b - player_b_rating,
    )


def calculate_doubles_elo(
    winner1_rating: int,
    winner2_rating: int,
    loser1_rating: int,
    loser2_rating: int,
    winner1_games_played: int,
    winner2_games_played: int,
    loser1_games_played: int,
    loser2_games_played: int,
    params: Optional[EloParams] = None,
) -> DoublesEloResult:
    """
    Calculate new doubles ratings for all four players.

    Each team is rated by the mean of its partners. The team K-factor is
    the smaller of the two partners' K-factors, so pairing a veteran with
    a newcomer does not inflate the swing. The rounded per-side delta is
    applied to both partners, then the floor is enforced per player.
    """
    params = params or DEFAULT_PARAMS

    winner_avg = team_rating(winner1_rating, winner2_rating)
    loser_avg = team_rating(loser1_rating, loser2_rating)

    winner_k = min(
        get_k_factor(winner1_games_played, params),
        get_k_factor(winner2_games_played, params),
    )
    loser_k = min(
        get_k_factor(loser1_games_played, params),
        get_k_factor(loser2_games_played, params),
    )

    winner_expected = expected_score(winner_avg, loser_avg, params)
    loser_expected = expected_score(loser_avg, winner_avg, params)

    winner_change = round_half_up(winner_k * (1.0 - winner_expected))
    loser_change = round_half_up(loser_k * (0.0 - loser_expected))

    floor = params.floor
    return DoublesEloResult(
        winner1_new_rating=max(floor, winner1_rating + winner_change),
        winner2_new_rating=max(floor, winner2_rating + winner_change),
        loser1_new_rating=max(floor, loser1_rating + loser_change),
        loser2_new_rating=max(floor, loser2_rating + loser_change),
        change=winner_change,
    )
