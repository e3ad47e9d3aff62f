"""Rating tiers shown next to a player's rating, and promotion/demotion detection."""

from __future__ import annotations

from dataclasses import dataclass

from smashrank.elo.constants import TIER_TABLE


@dataclass(frozen=True)
class RatingTier:
    id: str
    name: str
    min_elo: int


TIERS: tuple[RatingTier, ...] = tuple(
    RatingTier(id=tier_id, name=name, min_elo=min_elo)
    for tier_id, name, min_elo in TIER_TABLE
)


@dataclass(frozen=True)
class TierChange:
    promoted: bool
    demoted: bool
    tier: RatingTier


def get_tier(elo: int) -> RatingTier:
    """Return the highest tier whose threshold ``elo`` reaches."""
    for tier in TIERS:
        if elo >= tier.min_elo:
            return tier
    return TIERS[-1]


def get_tier_change(elo_before: int, elo_after: int) -> TierChange | None:
    """Describe a tier crossing between two ratings, or None if the tier is unchanged."""
    before = get_tier(elo_before)
    after = get_tier(elo_after)
    if before.id == after.id:
        return None
    return TierChange(
        promoted=elo_after > elo_before,
        demoted=elo_after < elo_before,
        tier=after,
    )
