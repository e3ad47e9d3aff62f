"""
Unit tests for round-robin tournaments.

Tests fixture generation, standings updates, the tie-break chain and
forced completion of unplayed fixtures.
"""

import pytest

from smashrank.achievements import evaluate_tournament_achievements
from smashrank.elo.live import RatingState
from smashrank.tournaments import (
    DRAW,
    LOSS,
    WIN,
    Fixture,
    FixtureResult,
    Standing,
    apply_fixture_result,
    build_h2h,
    draw_unplayed,
    force_complete,
    generate_fixtures,
    h2h_key,
    is_complete,
    new_standings,
    record_fixture_result,
    remaining_fixture_count,
    reset_standings,
    sort_standings,
    tournament_achievement_context,
    unplayed_fixtures,
)


class TestGenerateFixtures:
    """Tests for round-robin fixture generation."""

    def test_three_players(self):
        fixtures = generate_fixtures(["a", "b", "c"])

        assert [f.key for f in fixtures] == [("a", "b"), ("a", "c"), ("b", "c")]

    def test_twelve_players(self):
        """Every unordered pair exactly once: 12 * 11 / 2."""
        ids = [f"p{i:02d}" for i in range(12)]
        fixtures = generate_fixtures(ids)

        assert len(fixtures) == 66
        assert len({f.key for f in fixtures}) == 66
        assert all(f.player1_id != f.player2_id for f in fixtures)
        for pid in ids:
            assert sum(1 for f in fixtures if pid in (f.player1_id, f.player2_id)) == 11

    def test_two_players(self):
        assert generate_fixtures(["x", "y"]) == [Fixture("x", "y")]

    def test_single_participant_has_no_fixtures(self):
        assert generate_fixtures(["solo"]) == []

    @pytest.mark.parametrize("ids", [[], ["a", "b", "a"]])
    def test_invalid_participants(self, ids):
        with pytest.raises(ValueError):
            generate_fixtures(ids)

    def test_h2h_key_is_order_independent(self):
        assert h2h_key("b", "a") == h2h_key("a", "b") == ("a", "b")


class TestStandingUpdates:
    """Tests for applying results to standings."""

    def test_apply_win_draw_loss(self):
        standing = Standing("a")
        standing = apply_fixture_result(standing, WIN, 2, 1)
        standing = apply_fixture_result(standing, DRAW, 1, 1)
        standing = apply_fixture_result(standing, LOSS, 0, 2)

        assert standing.points == 4
        assert (standing.wins, standing.draws, standing.losses) == (1, 1, 1)
        assert (standing.sets_won, standing.sets_lost) == (3, 4)
        assert standing.set_difference == -1

    def test_unknown_result_rejected(self):
        with pytest.raises(ValueError):
            apply_fixture_result(Standing("a"), "forfeit", 0, 0)

    def test_record_fixture_result_updates_both(self):
        standings = new_standings({"a": 1200, "b": 1300})

        standings = record_fixture_result(standings, FixtureResult("a", "b", 1, 2))

        assert standings["b"].points == 3
        assert standings["b"].sets_won == 2
        assert standings["a"].losses == 1
        assert standings["a"].sets_lost == 2
        assert standings["a"].elo_rating == 1200

    def test_record_draw(self):
        standings = record_fixture_result(new_standings({"a": 1200, "b": 1200}), FixtureResult("a", "b", 1, 1))

        assert standings["a"].points == standings["b"].points == 1
        assert standings["a"].draws == standings["b"].draws == 1

    def test_reset_keeps_ratings(self):
        standings = record_fixture_result(new_standings({"a": 1250, "b": 1150}), FixtureResult("a", "b", 2, 0))

        reset = reset_standings(standings)

        assert reset["a"] == Standing("a", elo_rating=1250)
        assert reset["b"] == Standing("b", elo_rating=1150)


class TestSortStandings:
    """Tests for the tie-break chain."""

    def test_points_first(self):
        rows = [Standing("a", points=3), Standing("b", points=6), Standing("c", points=0)]
        assert [s.player_id for s in sort_standings(rows, {})] == ["b", "a", "c"]

    def test_head_to_head_beats_set_difference(self):
        """Tied on points: b beat a directly, so b ranks higher despite worse sets."""
        rows = [
            Standing("a", points=3, sets_won=5, sets_lost=1),
            Standing("b", points=3, sets_won=2, sets_lost=3),
        ]
        h2h = build_h2h([FixtureResult("a", "b", 0, 2)])

        assert [s.player_id for s in sort_standings(rows, h2h)] == ["b", "a"]

    def test_set_difference_after_drawn_h2h(self):
        rows = [
            Standing("a", points=4, sets_won=3, sets_lost=3),
            Standing("b", points=4, sets_won=4, sets_lost=2),
        ]
        h2h = build_h2h([FixtureResult("a", "b", 1, 1)])

        assert [s.player_id for s in sort_standings(rows, h2h)] == ["b", "a"]

    def test_rating_last(self):
        rows = [
            Standing("a", points=3, sets_won=2, sets_lost=1, elo_rating=1180),
            Standing("b", points=3, sets_won=2, sets_lost=1, elo_rating=1240),
        ]
        assert [s.player_id for s in sort_standings(rows, {})] == ["b", "a"]

    def test_does_not_mutate_input(self):
        rows = [Standing("a", points=0), Standing("b", points=3)]
        sort_standings(rows, {})
        assert [s.player_id for s in rows] == ["a", "b"]


class TestFixtureProgress:
    """Tests for played / unplayed fixture tracking."""

    @pytest.fixture
    def fixtures(self):
        return generate_fixtures(["a", "b", "c"])

    def test_unplayed_ignores_orientation(self, fixtures):
        results = [FixtureResult("b", "a", 2, 0)]

        assert unplayed_fixtures(fixtures, results) == [Fixture("a", "c"), Fixture("b", "c")]
        assert remaining_fixture_count(fixtures, results) == 2
        assert not is_complete(fixtures, results)

    def test_complete(self, fixtures):
        results = [FixtureResult(f.player1_id, f.player2_id, 2, 1) for f in fixtures]
        assert is_complete(fixtures, results)


class TestForceComplete:
    """Tests for closing a tournament with unplayed fixtures."""

    @pytest.fixture
    def tournament(self):
        """a beat b 2-0; a-c and b-c were never played."""
        fixtures = generate_fixtures(["a", "b", "c"])
        played = [FixtureResult("a", "b", 2, 0)]
        ratings = {
            "a": RatingState(rating=1220, games_played=1, wins=1, current_streak=1, best_streak=1),
            "b": RatingState(rating=1180, games_played=1, losses=1, current_streak=-1),
            "c": RatingState(rating=1200),
        }
        standings = new_standings({pid: s.rating for pid, s in ratings.items()})
        for result in played:
            standings = record_fixture_result(standings, result)
        return fixtures, played, ratings, standings

    def test_unplayed_become_draws(self, tournament):
        fixtures, played, ratings, standings = tournament

        completion = force_complete(standings, unplayed_fixtures(fixtures, played), ratings)

        assert [r.result for r in completion.resolutions] == [
            FixtureResult("a", "c", 0, 0, forced=True),
            FixtureResult("b", "c", 0, 0, forced=True),
        ]
        assert completion.standings["a"].points == 4
        assert completion.standings["b"].points == 1
        assert completion.standings["c"].points == 2
        assert completion.standings["c"].draws == 2

    def test_ratings_follow_draw_formula_in_order(self, tournament):
        """
        a (1220) draws c (1200): a -1, c +1.
        b (1180) then draws c (now 1201): b +1, c -1.
        """
        fixtures, played, ratings, standings = tournament

        completion = force_complete(standings, unplayed_fixtures(fixtures, played), ratings)

        assert completion.ratings["a"].rating == 1219
        assert completion.ratings["b"].rating == 1181
        assert completion.ratings["c"].rating == 1200
        assert completion.ratings["c"].games_played == 2
        assert completion.ratings["a"].current_streak == 0
        assert completion.ratings["a"].best_streak == 1
        assert completion.standings["a"].elo_rating == 1219

    def test_nothing_unplayed(self, tournament):
        _, _, ratings, standings = tournament

        completion = force_complete(standings, [], ratings)

        assert completion.resolutions == []
        assert completion.standings == standings

    def test_custom_policy(self, tournament):
        """A resolution policy can be swapped in without touching standings code."""
        fixtures, played, ratings, standings = tournament
        seen = []

        def record_only(fixture, p1, p2, params):
            seen.append(fixture)
            return draw_unplayed(fixture, p1, p2, params)

        force_complete(standings, unplayed_fixtures(fixtures, played), ratings, resolve=record_only)

        assert seen == [Fixture("a", "c"), Fixture("b", "c")]

    def test_achievement_context_after_forced_completion(self, tournament):
        """Forced draws are stored as real matches and count like any other result."""
        fixtures, played, ratings, standings = tournament
        completion = force_complete(standings, unplayed_fixtures(fixtures, played), ratings)
        results = played + [r.result for r in completion.resolutions]

        ctx = tournament_achievement_context(["a", "b", "c"], completion.standings, results)

        assert ctx.winner_id == "a"
        assert ctx.total_fixtures_per_player == 2
        assert ctx.fixtures_played == {"a": 2, "b": 2, "c": 2}
        assert ctx.draw_counts == {"a": 1, "b": 1, "c": 2}

        unlocks = {(u.achievement_id, u.player_id) for u in evaluate_tournament_achievements(ctx)}
        assert {("tournament_ironman", "a"), ("tournament_ironman", "b"), ("tournament_ironman", "c")} <= unlocks

    def test_achievement_context_can_skip_forced_results(self, tournament):
        fixtures, played, ratings, standings = tournament
        completion = force_complete(standings, unplayed_fixtures(fixtures, played), ratings)
        results = played + [r.result for r in completion.resolutions]

        ctx = tournament_achievement_context(
            ["a", "b", "c"], completion.standings, results, count_forced=False,
        )

        assert ctx.winner_id == "a"
        assert ctx.fixtures_played == {"a": 1, "b": 1}
        assert ctx.draw_counts == {}
