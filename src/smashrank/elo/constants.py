"""
ELO rating system constants.

SmashRank uses classic ELO with small integer adjustments. Ratings are
whole numbers, never drop below a floor, and move faster for players who
have not played much yet.

K factor: maximum points a single match can move a rating.
  - New players (<10 games) move quickly toward their true level
  - Regulars (10..30 games) settle down
  - Veterans (>30 games) are stable

Spread: how a rating difference maps to win probability. 400 is the
classic chess value: a 400 point gap means roughly 10:1 odds.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from smashrank.config import Settings

# Nobody goes below this, whatever the math says
ELO_FLOOR = 100

# Starting rating for new group members and after a season reset
DEFAULT_ELO = 1200

# Logistic spread used by the expected-score formula
ELO_SPREAD = 400

# K-factor schedule as (games_played upper bound inclusive, K).
# The last entry has no upper bound.
K_FACTOR_SCHEDULE: tuple[tuple[int | None, int], ...] = (
    (9, 40),
    (30, 24),
    (None, 16),
)

# Points gap that counts as an upset for giant_killer / punching_bag
UPSET_GAP = 200

# Rating tiers, ordered highest first: (id, name, min rating)
TIER_TABLE: tuple[tuple[str, str, int], ...] = (
    ("diamond", "Diamond", 1500),
    ("platinum", "Platinum", 1300),
    ("gold", "Gold", 1100),
    ("silver", "Silver", 900),
    ("bronze", "Bronze", 0),
)


@dataclass(frozen=True)
class EloParams:
    """
    Parameters for every rating calculation.

    The calculator functions take an optional ``EloParams`` so callers
    running with non-default settings (or tests) can pass their own,
    while the common path stays argument-free.
    """
    initial_rating: int = DEFAULT_ELO
    floor: int = ELO_FLOOR
    spread: int = ELO_SPREAD
    k_schedule: tuple[tuple[int | None, int], ...] = K_FACTOR_SCHEDULE

    @classmethod
    def from_settings(cls, settings: Optional["Settings"] = None) -> "EloParams":
        """Build params from application settings (defaults to the cached ones)."""
        if settings is None:
            from smashrank.config import get_settings

            settings = get_settings()
        return cls(initial_rating=settings.initial_rating, floor=settings.elo_floor)


DEFAULT_PARAMS = EloParams()
