"""
Achievement rules and evaluators.

Achievements are unlocked by the match that was just resolved. The caller
builds an ``AchievementContext`` with post-match counters already
incremented (games played, wins, streaks) and pre-match ratings, then
asks ``evaluate_achievements`` what is newly unlocked.

The rules live in a table (``MATCH_RULES``): each entry is an id, the
players it can be granted to, and a pure predicate over the context. The
evaluator folds over the table once, so adding a rule never touches the
control flow.

Evaluation is idempotent: grants already owned (``winner_existing`` /
``loser_existing``) are skipped, and a single call never returns the same
(player, achievement) pair twice. Running it again during a replay or a
retry never double-grants.

Tournament grants are evaluated separately, once, when a tournament
completes (``evaluate_tournament_achievements``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence

from smashrank.elo.constants import UPSET_GAP
from smashrank.scores import SetScore

WINNER = "winner"
LOSER = "loser"


@dataclass(frozen=True)
class AchievementDefinition:
    """Catalog entry shown by the bot and the dashboard."""
    id: str
    name: str
    description: str
    category: str  # milestone, shame, tournament, season


ACHIEVEMENTS: dict[str, AchievementDefinition] = {
    a.id: a
    for a in (
        AchievementDefinition("first_blood", "First Blood", "Win your first match", "milestone"),
        AchievementDefinition("on_fire", "On Fire", "Win 5 matches in a row", "milestone"),
        AchievementDefinition("unstoppable", "Unstoppable", "Win 10 matches in a row", "milestone"),
        AchievementDefinition("giant_killer", "Giant Killer", "Beat a player rated 200+ above you", "milestone"),
        AchievementDefinition("iron_man", "Iron Man", "Play 50 matches", "milestone"),
        AchievementDefinition("centurion", "Centurion", "Play 100 matches", "milestone"),
        AchievementDefinition("comeback_kid", "Comeback Kid", "Win after losing 3+ in a row", "milestone"),
        AchievementDefinition("top_dog", "Top Dog", "Reach #1 in the group", "milestone"),
        AchievementDefinition("perfect_game", "Perfect Game", "Win a set 11-0", "milestone"),
        AchievementDefinition("heartbreaker", "Heartbreaker", "Win a 3+ set match after losing the first set", "milestone"),
        AchievementDefinition("rivalry", "Rivalry", "Play the same opponent 10 times", "milestone"),
        AchievementDefinition("newcomer_threat", "Newcomer Threat", "Win 5 of your first 10 games", "milestone"),
        AchievementDefinition("free_fall", "Free Fall", "Lose 5 in a row", "shame"),
        AchievementDefinition("rock_bottom", "Rock Bottom", "Lose 10 in a row", "shame"),
        AchievementDefinition("punching_bag", "Punching Bag", "Lose to a player rated 200+ below you", "shame"),
        AchievementDefinition("humbled", "Humbled", "Lose a set 0-11", "shame"),
        AchievementDefinition("bottled_it", "Bottled It", "Lose a 3+ set match after winning the first set", "shame"),
        AchievementDefinition("glass_cannon", "Glass Cannon", "Get blanked in a set you otherwise scored around", "shame"),
        AchievementDefinition("doormat", "Doormat", "Lose to the same opponent 5 times in a row", "shame"),
        AchievementDefinition("tournament_champion", "Champion", "Win a tournament", "tournament"),
        AchievementDefinition("tournament_undefeated", "Undefeated", "Finish a tournament without a loss", "tournament"),
        AchievementDefinition("tournament_ironman", "Tournament Ironman", "Play every fixture of a tournament", "tournament"),
        AchievementDefinition("draw_master", "Draw Master", "Draw 3+ matches in one tournament", "tournament"),
        AchievementDefinition("party_worker", "Party Worker", "Play the most sets in a season", "season"),
    )
}


@dataclass(frozen=True)
class AchievementUnlock:
    achievement_id: str
    player_id: str


@dataclass(frozen=True)
class AchievementContext:
    """
    Everything the match rules look at, for one resolved match.

    Ratings are from before the match; games played, wins and streaks are
    after it (already incremented by the caller). ``winner_streak_before``
    is the only pre-match streak, for comeback_kid.
    """
    winner_id: str
    loser_id: str
    winner_streak: int
    winner_streak_before: int
    winner_elo: int
    loser_elo: int
    winner_games_played: int
    loser_games_played: int
    winner_wins: int
    set_scores: Optional[Sequence[SetScore]] = None
    # Matches between these two players, including this one
    matches_between: int = 1
    # Winner's 1-based rank in the group after this match, None if unranked
    winner_rank: Optional[int] = None
    winner_existing: frozenset[str] = frozenset()
    loser_existing: frozenset[str] = frozenset()
    loser_streak: int = 0
    loser_consecutive_losses_vs_winner: int = 0

    def player_id(self, role: str) -> str:
        return self.winner_id if role == WINNER else self.loser_id

    def games_played(self, role: str) -> int:
        return self.winner_games_played if role == WINNER else self.loser_games_played

    def existing(self, role: str) -> frozenset[str]:
        return self.winner_existing if role == WINNER else self.loser_existing


Predicate = Callable[[AchievementContext, str], bool]


@dataclass(frozen=True)
class AchievementRule:
    """
    One row of the rule table.

    The predicate is called once per recipient role with the context and
    the role ("winner" or "loser"); rules that only depend on the match
    ignore the role.
    """
    achievement_id: str
    recipients: tuple[str, ...]
    predicate: Predicate


def _sets(ctx: AchievementContext) -> Sequence[SetScore]:
    return ctx.set_scores or ()


def _has_bagel(ctx: AchievementContext, _role: str) -> bool:
    return any(s.w >= 11 and s.l == 0 for s in _sets(ctx))


def _first_set_lost_by_winner(ctx: AchievementContext, _role: str) -> bool:
    sets = _sets(ctx)
    return len(sets) >= 3 and sets[0].w < sets[0].l


def _loser_blanked_but_scored_elsewhere(ctx: AchievementContext, _role: str) -> bool:
    sets = _sets(ctx)
    if not any(s.l == 0 for s in sets):
        return False
    # The blanked set has l == 0, so any set with l > 0 is a different one
    return any(s.l > 0 for s in sets)


MATCH_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_blood", (WINNER,), lambda c, _: c.winner_wins == 1),
    AchievementRule("on_fire", (WINNER,), lambda c, _: c.winner_streak >= 5),
    AchievementRule("unstoppable", (WINNER,), lambda c, _: c.winner_streak >= 10),
    AchievementRule("giant_killer", (WINNER,), lambda c, _: c.loser_elo - c.winner_elo >= UPSET_GAP),
    AchievementRule("iron_man", (WINNER, LOSER), lambda c, role: c.games_played(role) >= 50),
    AchievementRule("centurion", (WINNER, LOSER), lambda c, role: c.games_played(role) >= 100),
    AchievementRule("comeback_kid", (WINNER,), lambda c, _: c.winner_streak_before <= -3),
    AchievementRule("top_dog", (WINNER,), lambda c, _: c.winner_rank == 1),
    AchievementRule("perfect_game", (WINNER,), _has_bagel),
    AchievementRule("heartbreaker", (WINNER,), _first_set_lost_by_winner),
    AchievementRule("rivalry", (WINNER, LOSER), lambda c, _: c.matches_between >= 10),
    AchievementRule(
        "newcomer_threat", (WINNER,),
        lambda c, _: c.winner_games_played <= 10 and c.winner_wins >= 5,
    ),
    # Shame
    AchievementRule("free_fall", (LOSER,), lambda c, _: c.loser_streak <= -5),
    AchievementRule("rock_bottom", (LOSER,), lambda c, _: c.loser_streak <= -10),
    AchievementRule("punching_bag", (LOSER,), lambda c, _: c.loser_elo - c.winner_elo >= UPSET_GAP),
    AchievementRule("humbled", (LOSER,), _has_bagel),
    AchievementRule("bottled_it", (LOSER,), _first_set_lost_by_winner),
    AchievementRule("glass_cannon", (LOSER,), _loser_blanked_but_scored_elsewhere),
    AchievementRule("doormat", (LOSER,), lambda c, _: c.loser_consecutive_losses_vs_winner >= 5),
)


class _Grants:
    """Collects unlocks, skipping owned and already-collected pairs."""

    def __init__(self, existing: Callable[[str], frozenset[str] | set[str] | Sequence[str]]):
        self._existing = existing
        self._seen: set[tuple[str, str]] = set()
        self.unlocks: list[AchievementUnlock] = []

    def grant(self, achievement_id: str, player_id: str) -> None:
        key = (achievement_id, player_id)
        if key in self._seen or achievement_id in self._existing(player_id):
            return
        self._seen.add(key)
        self.unlocks.append(AchievementUnlock(achievement_id=achievement_id, player_id=player_id))


def evaluate_achievements(
    ctx: AchievementContext,
    rules: Sequence[AchievementRule] = MATCH_RULES,
) -> list[AchievementUnlock]:
    """
    Return the achievements newly unlocked by one resolved match.

    Args:
        ctx: Post-match context for the match
        rules: Rule table to evaluate, in grant order

    Returns:
        Unlocks in rule-table order, none of them already owned
    """
    if ctx.winner_id == ctx.loser_id:
        raise ValueError("winner and loser must be different players")

    roles = {ctx.winner_id: WINNER, ctx.loser_id: LOSER}
    grants = _Grants(lambda player_id: ctx.existing(roles[player_id]))

    for rule in rules:
        for role in rule.recipients:
            if rule.predicate(ctx, role):
                grants.grant(rule.achievement_id, ctx.player_id(role))
    return grants.unlocks


@dataclass(frozen=True)
class TournamentAchievementContext:
    """
    Final state of a completed tournament.

    ``draw_counts`` and ``fixtures_played`` count every fixture with a
    result, including forced 0-0 draws, unless the builder was told to
    skip them.
    """
    participant_ids: Sequence[str]
    # player_id -> object with wins / draws / losses (e.g. tournaments.Standing)
    standings: Mapping[str, object]
    draw_counts: Mapping[str, int]
    fixtures_played: Mapping[str, int]
    total_fixtures_per_player: int
    # First place after the tie-break sort, None for an empty tournament
    winner_id: Optional[str]
    existing: Mapping[str, frozenset[str]] = field(default_factory=dict)


def evaluate_tournament_achievements(ctx: TournamentAchievementContext) -> list[AchievementUnlock]:
    """Return tournament achievements unlocked at completion, skipping owned ones."""
    grants = _Grants(lambda player_id: ctx.existing.get(player_id, frozenset()))

    if ctx.winner_id:
        grants.grant("tournament_champion", ctx.winner_id)

    for player_id in ctx.participant_ids:
        standing = ctx.standings.get(player_id)
        if standing is not None and standing.losses == 0:
            grants.grant("tournament_undefeated", player_id)

    for player_id in ctx.participant_ids:
        if ctx.fixtures_played.get(player_id, 0) >= ctx.total_fixtures_per_player:
            grants.grant("tournament_ironman", player_id)

    for player_id in ctx.participant_ids:
        if ctx.draw_counts.get(player_id, 0) >= 3:
            grants.grant("draw_master", player_id)

    return grants.unlocks
