"""
Unit tests for the ELO calculator.

Tests the core rating logic to ensure:
- K-factor follows the experience schedule
- Favorites winning gain less than underdogs winning
- No rating ever drops below the floor
- Draws pull ratings toward each other
- Rounding matches the stored integer ratings
"""

import pytest

from smashrank.elo.calculator import (
    calculate_draw_elo,
    calculate_elo,
    expected_score,
    get_k_factor,
    round_half_up,
    win_probability,
)
from smashrank.elo.constants import DEFAULT_ELO, ELO_FLOOR, EloParams


class TestKFactor:
    """Tests for the experience-based K-factor."""

    @pytest.mark.parametrize(
        "games_played,expected_k",
        [(0, 40), (9, 40), (10, 24), (30, 24), (31, 16), (500, 16)],
    )
    def test_schedule_boundaries(self, games_played, expected_k):
        assert get_k_factor(games_played) == expected_k

    def test_negative_games_rejected(self):
        with pytest.raises(ValueError):
            get_k_factor(-1)

    def test_custom_schedule(self):
        """A custom schedule is honoured, including its open-ended tail."""
        params = EloParams(k_schedule=((4, 50), (None, 10)))
        assert get_k_factor(4, params) == 50
        assert get_k_factor(5, params) == 10


class TestExpectedScore:
    """Tests for the expected-score formula."""

    def test_equal_ratings_are_even(self):
        assert expected_score(1200, 1200) == pytest.approx(0.5)

    def test_symmetric(self):
        """Both sides' expectations always add up to one."""
        for a, b in [(1200, 1000), (100, 2400), (1534, 1533)]:
            assert expected_score(a, b) + expected_score(b, a) == pytest.approx(1.0)

    def test_400_gap_is_ten_to_one(self):
        assert expected_score(1600, 1200) == pytest.approx(10 / 11)

    def test_win_probability_is_percentage(self):
        assert win_probability(1200, 1200) == pytest.approx(50.0)


class TestRounding:
    """Halves always round up, including negative values."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (2.4, 2), (-2.5, -2), (-2.6, -3), (0.0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestCalculateElo:
    """Tests for decided singles matches."""

    def test_equal_new_players(self):
        """
        Two fresh players at the baseline: K=40, expected 0.5.

        The winner gains exactly 20 and the loser drops exactly 20.
        """
        result = calculate_elo(DEFAULT_ELO, DEFAULT_ELO, 0, 0)

        assert result.winner_new_rating == 1220
        assert result.loser_new_rating == 1180
        assert result.change == 20

    def test_favorite_wins_less_than_underdog(self):
        """Beating a higher-rated player pays more than beating a lower one."""
        favorite = calculate_elo(1400, 1200, 40, 40)
        underdog = calculate_elo(1200, 1400, 40, 40)

        assert 0 < favorite.change < underdog.change

    def test_zero_sum_with_equal_k(self):
        """With both players on the same K, points are only moved, never created."""
        result = calculate_elo(1250, 1180, 12, 20)
        loser_change = result.loser_new_rating - 1180

        assert result.change + loser_change == 0

    def test_newcomer_gains_more_than_veteran_loses(self):
        """Each side uses its own K-factor."""
        result = calculate_elo(1200, 1200, 0, 50)

        assert result.change == 20
        assert result.loser_new_rating == 1192

    def test_floor_holds_for_huge_gap(self):
        """A 1500 beating a 100 cannot push the loser under the floor."""
        result = calculate_elo(1500, 100, 0, 0)

        assert result.loser_new_rating == ELO_FLOOR
        assert result.winner_new_rating >= 1500

    def test_floor_clamps_loser(self):
        """The rounded loss would be 90; the floor keeps it at 100."""
        result = calculate_elo(110, 110, 0, 0)

        assert result.winner_new_rating == 130
        assert result.loser_new_rating == ELO_FLOOR

    def test_custom_floor(self):
        params = EloParams(floor=500)
        result = calculate_elo(510, 510, 0, 0, params)

        assert result.loser_new_rating == 500


class TestCalculateDrawElo:
    """Tests for drawn matches (actual score 0.5)."""

    def test_equal_ratings_no_change(self):
        result = calculate_draw_elo(1200, 1200, 3, 8)

        assert result.player_a_new_rating == 1200
        assert result.player_b_new_rating == 1200
        assert result.player_a_change == 0
        assert result.player_b_change == 0

    def test_pulls_ratings_together(self):
        """
        1300 draws 1100, both new: E_a = 0.7597.

        The favorite drops about 10.4 and the underdog gains the same.
        """
        result = calculate_draw_elo(1300, 1100, 0, 0)

        assert result.player_a_new_rating == 1290
        assert result.player_b_new_rating == 1110
        assert result.player_a_change == -10
        assert result.player_b_change == 10

    def test_order_does_not_matter(self):
        forward = calculate_draw_elo(1350, 1120, 5, 40)
        backward = calculate_draw_elo(1120, 1350, 40, 5)

        assert forward.player_a_new_rating == backward.player_b_new_rating
        assert forward.player_b_new_rating == backward.player_a_new_rating

    def test_floor_applies_to_draws(self):
        result = calculate_draw_elo(100, 2000, 0, 0)

        assert result.player_a_new_rating > 100
        assert result.player_b_new_rating < 2000
        assert min(result.player_a_new_rating, result.player_b_new_rating) >= ELO_FLOOR
