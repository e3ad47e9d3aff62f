"""
Round-robin tournaments: fixtures, standings and tie-breaks.

A tournament is a single round robin. Fixtures are generated once when
it starts; whether a fixture has been played is derived from the match
records, never stored here. Standings accumulate as results come in:

    win  = 3 points
    draw = 1 point
    loss = 0 points

Standings are ordered by a tie-break chain where each stage only breaks
ties left by the previous one:

1. Points (desc)
2. Head-to-head result between the two tied players
3. Set differential (desc)
4. Rating (desc)

When a tournament is closed before every fixture was played, each
unplayed fixture is resolved by a policy function. The default policy
scores it as a 0-0 draw through the draw rating formula, so nobody is
penalised or rewarded beyond the natural draw pull.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Callable, Iterable, Mapping, Optional, Sequence

from smashrank.achievements import TournamentAchievementContext
from smashrank.elo.constants import DEFAULT_PARAMS, EloParams
from smashrank.elo.live import RatingState, record_draw

logger = logging.getLogger(__name__)

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1
POINTS_FOR_LOSS = 0

WIN = "win"
DRAW = "draw"
LOSS = "loss"

_POINTS = {WIN: POINTS_FOR_WIN, DRAW: POINTS_FOR_DRAW, LOSS: POINTS_FOR_LOSS}


@dataclass(frozen=True)
class Standing:
    player_id: str
    points: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    elo_rating: int = 0

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost


@dataclass(frozen=True)
class Fixture:
    """An unordered pairing; player order carries no meaning."""
    player1_id: str
    player2_id: str

    @property
    def key(self) -> tuple[str, str]:
        return h2h_key(self.player1_id, self.player2_id)


@dataclass(frozen=True)
class FixtureResult:
    """
    Outcome of one fixture.

    ``forced`` marks results produced by forced completion rather than
    a match the players actually played.
    """
    player1_id: str
    player2_id: str
    player1_sets: int
    player2_sets: int
    forced: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return h2h_key(self.player1_id, self.player2_id)

    @property
    def is_draw(self) -> bool:
        return self.player1_sets == self.player2_sets

    @property
    def winner_id(self) -> Optional[str]:
        if self.player1_sets > self.player2_sets:
            return self.player1_id
        if self.player2_sets > self.player1_sets:
            return self.player2_id
        return None


def h2h_key(player_a: str, player_b: str) -> tuple[str, str]:
    """Head-to-head lookup key: the pair sorted, so (a, b) and (b, a) match."""
    return (player_a, player_b) if player_a < player_b else (player_b, player_a)


def generate_fixtures(participant_ids: Sequence[str]) -> list[Fixture]:
    """
    Generate every unordered pair exactly once: n * (n - 1) / 2 fixtures.

    Order follows the input order and is stable, but carries no meaning.
    A single participant has nobody to play and gets no fixtures.

    Raises:
        ValueError: For an empty list or duplicate ids
    """
    if not participant_ids:
        raise ValueError("a round robin needs at least one participant")
    if len(set(participant_ids)) != len(participant_ids):
        raise ValueError("participant ids must be unique")

    fixtures = []
    for i, player1_id in enumerate(participant_ids):
        for player2_id in participant_ids[i + 1:]:
            fixtures.append(Fixture(player1_id=player1_id, player2_id=player2_id))
    return fixtures


def sort_standings(
    standings: Iterable[Standing],
    h2h: Mapping[tuple[str, str], Optional[str]],
) -> list[Standing]:
    """
    Order standings by points, head-to-head, set differential, then rating.

    Args:
        standings: One row per participant
        h2h: Head-to-head winners keyed by ``h2h_key``; a None value (draw)
             or a missing pair falls through to the next stage

    Returns:
        A new list, best first
    """
    def compare(a: Standing, b: Standing) -> int:
        if a.points != b.points:
            return b.points - a.points

        winner = h2h.get(h2h_key(a.player_id, b.player_id))
        if winner == a.player_id:
            return -1
        if winner == b.player_id:
            return 1

        if a.set_difference != b.set_difference:
            return b.set_difference - a.set_difference

        return b.elo_rating - a.elo_rating

    return sorted(standings, key=cmp_to_key(compare))


def build_h2h(results: Iterable[FixtureResult]) -> dict[tuple[str, str], Optional[str]]:
    """Head-to-head map from fixture results (None for draws)."""
    return {r.key: r.winner_id for r in results}


def new_standings(ratings: Mapping[str, int]) -> dict[str, Standing]:
    """Zeroed standings for every participant, carrying their current rating."""
    return {pid: Standing(player_id=pid, elo_rating=rating) for pid, rating in ratings.items()}


def reset_standings(standings: Mapping[str, Standing]) -> dict[str, Standing]:
    """Full tournament reset: zero every row, keep ratings."""
    return {pid: Standing(player_id=pid, elo_rating=s.elo_rating) for pid, s in standings.items()}


def apply_fixture_result(standing: Standing, result: str, sets_won: int, sets_lost: int) -> Standing:
    """
    Add one result to a standing. Standings only ever grow.

    Raises:
        ValueError: For an unknown result or negative set counts
    """
    if result not in _POINTS:
        raise ValueError(f"result must be one of {tuple(_POINTS)}, got '{result}'")
    if sets_won < 0 or sets_lost < 0:
        raise ValueError("set counts cannot be negative")

    return replace(
        standing,
        points=standing.points + _POINTS[result],
        wins=standing.wins + (1 if result == WIN else 0),
        draws=standing.draws + (1 if result == DRAW else 0),
        losses=standing.losses + (1 if result == LOSS else 0),
        sets_won=standing.sets_won + sets_won,
        sets_lost=standing.sets_lost + sets_lost,
    )


def record_fixture_result(standings: Mapping[str, Standing], result: FixtureResult) -> dict[str, Standing]:
    """Apply a fixture result to both players, returning new standings."""
    if result.is_draw:
        outcome1 = outcome2 = DRAW
    elif result.winner_id == result.player1_id:
        outcome1, outcome2 = WIN, LOSS
    else:
        outcome1, outcome2 = LOSS, WIN

    updated = dict(standings)
    updated[result.player1_id] = apply_fixture_result(
        standings[result.player1_id], outcome1, result.player1_sets, result.player2_sets,
    )
    updated[result.player2_id] = apply_fixture_result(
        standings[result.player2_id], outcome2, result.player2_sets, result.player1_sets,
    )
    return updated


def unplayed_fixtures(fixtures: Iterable[Fixture], results: Iterable[FixtureResult]) -> list[Fixture]:
    """Fixtures with no result yet."""
    played = {r.key for r in results}
    return [f for f in fixtures if f.key not in played]


def remaining_fixture_count(fixtures: Sequence[Fixture], results: Sequence[FixtureResult]) -> int:
    return len(unplayed_fixtures(fixtures, results))


def is_complete(fixtures: Sequence[Fixture], results: Sequence[FixtureResult]) -> bool:
    return remaining_fixture_count(fixtures, results) == 0


@dataclass(frozen=True)
class UnplayedResolution:
    """How forced completion settled one unplayed fixture."""
    fixture: Fixture
    result: FixtureResult
    player1_state: RatingState
    player2_state: RatingState
    elo_change: int


ResolutionPolicy = Callable[[Fixture, RatingState, RatingState, EloParams], UnplayedResolution]


def draw_unplayed(
    fixture: Fixture,
    player1: RatingState,
    player2: RatingState,
    params: EloParams,
) -> UnplayedResolution:
    """Default policy: score the fixture as a 0-0 draw."""
    update = record_draw(player1, player2, params)
    return UnplayedResolution(
        fixture=fixture,
        result=FixtureResult(fixture.player1_id, fixture.player2_id, 0, 0, forced=True),
        player1_state=update.player_a,
        player2_state=update.player_b,
        elo_change=update.elo.player_a_change,
    )


@dataclass(frozen=True)
class ForcedCompletion:
    standings: dict[str, Standing]
    ratings: dict[str, RatingState]
    resolutions: list[UnplayedResolution]


def force_complete(
    standings: Mapping[str, Standing],
    unplayed: Sequence[Fixture],
    ratings: Mapping[str, RatingState],
    resolve: ResolutionPolicy = draw_unplayed,
    params: Optional[EloParams] = None,
) -> ForcedCompletion:
    """
    Settle every unplayed fixture so the tournament can be closed.

    Fixtures are resolved one after another, each seeing the ratings left
    by the previous one. Standings are updated with each forced result and
    carry the players' new ratings.

    The caller then marks the tournament completed and runs the
    completion evaluator once against the returned standings.

    Args:
        standings: Current standings by player id
        unplayed: Fixtures still without a result
        ratings: Singles rating state by player id
        resolve: Policy for one unplayed fixture
        params: Optional custom rating parameters

    Raises:
        KeyError: If a fixture names a player with no standing or rating
    """
    params = params or DEFAULT_PARAMS
    new_standings_by_id = dict(standings)
    new_ratings = dict(ratings)
    resolutions: list[UnplayedResolution] = []

    for fixture in unplayed:
        resolution = resolve(
            fixture,
            new_ratings[fixture.player1_id],
            new_ratings[fixture.player2_id],
            params,
        )
        new_ratings[fixture.player1_id] = resolution.player1_state
        new_ratings[fixture.player2_id] = resolution.player2_state
        new_standings_by_id = record_fixture_result(new_standings_by_id, resolution.result)
        resolutions.append(resolution)

    for player_id, state in new_ratings.items():
        if player_id in new_standings_by_id:
            new_standings_by_id[player_id] = replace(new_standings_by_id[player_id], elo_rating=state.rating)

    logger.info("Forced completion resolved %d unplayed fixtures", len(resolutions))
    return ForcedCompletion(standings=new_standings_by_id, ratings=new_ratings, resolutions=resolutions)


def tournament_achievement_context(
    participant_ids: Sequence[str],
    standings: Mapping[str, Standing],
    results: Sequence[FixtureResult],
    existing: Optional[Mapping[str, frozenset[str]]] = None,
    count_forced: bool = True,
) -> TournamentAchievementContext:
    """
    Build the completion evaluator's input from final tournament state.

    The champion is first place after ``sort_standings`` with the
    head-to-head map built from every result.

    Forced 0-0 draws are stored as real tournament matches, so by default
    they count toward fixtures played and draws like any other result.
    Pass ``count_forced=False`` to count only fixtures actually played.
    """
    ordered = sort_standings(standings.values(), build_h2h(results))

    draw_counts: dict[str, int] = {}
    fixtures_played: dict[str, int] = {}
    for r in results:
        if r.forced and not count_forced:
            continue
        for pid in (r.player1_id, r.player2_id):
            fixtures_played[pid] = fixtures_played.get(pid, 0) + 1
            if r.is_draw:
                draw_counts[pid] = draw_counts.get(pid, 0) + 1

    return TournamentAchievementContext(
        participant_ids=list(participant_ids),
        standings=dict(standings),
        draw_counts=draw_counts,
        fixtures_played=fixtures_played,
        total_fixtures_per_player=len(participant_ids) - 1,
        winner_id=ordered[0].player_id if ordered else None,
        existing=dict(existing or {}),
    )
