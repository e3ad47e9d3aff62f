"""
Season windows and season rollover planning.

Seasons are fixed calendar windows. Each calendar year has four, starting
on Jan 1, Mar 1, Jun 1 and Sep 1; a season ends the day before the next
one starts. A season's identity is its date range, so the same date
always maps to the same season.

When the active season has expired, the rollover collaborator:

1. Snapshots every member's final standing
2. Deactivates the season
3. Resets every member's singles state to the baseline
4. Opens a new season for the current date

``plan_season_rollover`` computes all of that as plain data; writing it
back is the caller's job.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Optional, Sequence

from smashrank.achievements import AchievementUnlock
from smashrank.elo.constants import DEFAULT_PARAMS, EloParams
from smashrank.elo.live import RatingState

logger = logging.getLogger(__name__)

# (start month, end month) per season, in calendar order
SEASON_QUARTERS = ((1, 2), (3, 5), (6, 8), (9, 12))

# Last representable instant of the end date; later than this is expired
_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class SeasonInfo:
    name: str
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def season_for_date(day: date | datetime) -> SeasonInfo:
    """
    Map a calendar date to the season it belongs to.

    Args:
        day: Any date or datetime; datetimes use their own calendar date

    Returns:
        SeasonInfo named like "S2 2025 (Mar-May)"

    Example:
        >>> season_for_date(date(2024, 2, 10)).end_date
        datetime.date(2024, 2, 29)
    """
    if isinstance(day, datetime):
        day = day.date()

    # Latest boundary on or before the date
    index = max(i for i, (start_month, _) in enumerate(SEASON_QUARTERS) if day.month >= start_month)
    start_month, end_month = SEASON_QUARTERS[index]
    number = index + 1

    last_day = calendar.monthrange(day.year, end_month)[1]
    start = date(day.year, start_month, 1)
    end = date(day.year, end_month, last_day)
    name = (
        f"S{number} {day.year} "
        f"({calendar.month_abbr[start_month]}-{calendar.month_abbr[end_month]})"
    )
    return SeasonInfo(name=name, start_date=start, end_date=end)


def is_season_expired(end_date: date, now: Optional[datetime] = None) -> bool:
    """
    True once ``now`` is strictly after 23:59:59.999 UTC on ``end_date``.

    Naive ``now`` values are treated as UTC.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = datetime.combine(end_date, _END_OF_DAY, tzinfo=timezone.utc)
    return now > cutoff


@dataclass(frozen=True)
class SeasonMember:
    """A group member's singles state at the end of a season."""
    player_id: str
    state: RatingState
    # Sets played in the closing season, for party_worker
    sets_played: int = 0
    existing: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SeasonSnapshot:
    season_name: str
    player_id: str
    final_elo: int
    final_rank: int
    games_played: int
    wins: int
    losses: int
    draws: int


@dataclass
class SeasonRollover:
    closed: SeasonInfo
    opened: SeasonInfo
    snapshots: list[SeasonSnapshot] = field(default_factory=list)
    resets: dict[str, RatingState] = field(default_factory=dict)
    unlocks: list[AchievementUnlock] = field(default_factory=list)


def plan_season_rollover(
    season: SeasonInfo,
    members: Sequence[SeasonMember],
    now: Optional[datetime] = None,
    baseline: Optional[EloParams] = None,
) -> Optional[SeasonRollover]:
    """
    Plan the rollover of an expired season.

    Members who played no games get no snapshot row but are still reset.
    Snapshot ranks follow rating, highest first; equal ratings keep the
    order ``members`` was given in.

    Args:
        season: The currently active season
        members: Every member of the group
        now: Current time (defaults to now, UTC)
        baseline: Rating parameters whose initial rating members reset to

    Returns:
        None while the season is still active, otherwise the full plan
    """
    now = now or datetime.now(timezone.utc)
    if not is_season_expired(season.end_date, now):
        return None

    params = baseline or DEFAULT_PARAMS
    opened = season_for_date(now)
    rollover = SeasonRollover(closed=season, opened=opened)

    active = [m for m in members if m.state.games_played > 0]
    ranked = sorted(active, key=lambda m: m.state.rating, reverse=True)
    for rank, member in enumerate(ranked, start=1):
        rollover.snapshots.append(SeasonSnapshot(
            season_name=season.name,
            player_id=member.player_id,
            final_elo=member.state.rating,
            final_rank=rank,
            games_played=member.state.games_played,
            wins=member.state.wins,
            losses=member.state.losses,
            draws=member.state.draws,
        ))

    # Awarded before the reset, from closing-season sets
    busiest = max(members, key=lambda m: m.sets_played, default=None)
    if busiest is not None and busiest.sets_played > 0 and "party_worker" not in busiest.existing:
        rollover.unlocks.append(AchievementUnlock(achievement_id="party_worker", player_id=busiest.player_id))

    for member in members:
        rollover.resets[member.player_id] = RatingState.initial(params)

    logger.info(
        "Season %s expired: %d snapshots, %d members reset, opening %s",
        season.name, len(rollover.snapshots), len(rollover.resets), opened.name,
    )
    return rollover
