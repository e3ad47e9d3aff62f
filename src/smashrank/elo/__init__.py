"""
ELO rating system module.

Implements ping-pong ELO with:
- Experience-based K-factor (40 / 24 / 16)
- Draw and doubles (team-mean) variants
- A hard rating floor
- Rating tiers
- Deterministic full-history replay
"""

from smashrank.elo.calculator import (
    DoublesEloResult,
    DrawEloResult,
    EloResult,
    calculate_doubles_elo,
    calculate_draw_elo,
    calculate_elo,
    expected_score,
    get_k_factor,
    team_rating,
    win_probability,
)
from smashrank.elo.constants import DEFAULT_ELO, ELO_FLOOR, EloParams
from smashrank.elo.live import RatingState, record_doubles, record_draw, record_singles
from smashrank.elo.pipeline import MatchRecord, MatchSnapshot, ReplayEngine, ReplayResult, replay_without
from smashrank.elo.tiers import get_tier, get_tier_change

__all__ = [
    "DEFAULT_ELO",
    "ELO_FLOOR",
    "EloParams",
    "EloResult",
    "DrawEloResult",
    "DoublesEloResult",
    "calculate_elo",
    "calculate_draw_elo",
    "calculate_doubles_elo",
    "expected_score",
    "get_k_factor",
    "team_rating",
    "win_probability",
    "RatingState",
    "record_singles",
    "record_draw",
    "record_doubles",
    "MatchRecord",
    "MatchSnapshot",
    "ReplayEngine",
    "ReplayResult",
    "replay_without",
    "get_tier",
    "get_tier_change",
]
