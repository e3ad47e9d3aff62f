"""
Incremental per-match state transitions.

A reporting collaborator reads both players' current ``RatingState``,
calls one of the ``record_*`` functions and writes the returned states
back inside a single transaction. The replay engine folds the same
functions over the whole history, so live state and replayed state go
through one code path.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from smashrank.elo.calculator import (
    DoublesEloResult,
    DrawEloResult,
    EloResult,
    calculate_doubles_elo,
    calculate_draw_elo,
    calculate_elo,
)
from smashrank.elo.constants import DEFAULT_PARAMS, EloParams
from smashrank.streaks import update_streak


@dataclass(frozen=True)
class RatingState:
    """One player's state on one track (singles or doubles)."""
    rating: int
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    current_streak: int = 0
    best_streak: int = 0

    @classmethod
    def initial(cls, params: Optional[EloParams] = None) -> "RatingState":
        """Fresh state at the baseline rating."""
        return cls(rating=(params or DEFAULT_PARAMS).initial_rating)

    def _after(self, new_rating: int, won: Optional[bool]) -> "RatingState":
        if won is None:
            return replace(
                self,
                rating=new_rating,
                games_played=self.games_played + 1,
                draws=self.draws + 1,
                current_streak=0,
            )
        streak = update_streak(self.current_streak, self.best_streak, won)
        return replace(
            self,
            rating=new_rating,
            games_played=self.games_played + 1,
            wins=self.wins + (1 if won else 0),
            losses=self.losses + (0 if won else 1),
            current_streak=streak.current_streak,
            best_streak=streak.best_streak,
        )


@dataclass(frozen=True)
class SinglesUpdate:
    winner: RatingState
    loser: RatingState
    elo: EloResult


@dataclass(frozen=True)
class DrawUpdate:
    player_a: RatingState
    player_b: RatingState
    elo: DrawEloResult


@dataclass(frozen=True)
class DoublesUpdate:
    winner1: RatingState
    winner2: Optional[RatingState]
    loser1: RatingState
    loser2: Optional[RatingState]
    elo: DoublesEloResult


def record_singles(
    winner: RatingState,
    loser: RatingState,
    params: Optional[EloParams] = None,
) -> SinglesUpdate:
    """Apply a decided singles (or tournament) match to both players."""
    result = calculate_elo(
        winner.rating,
        loser.rating,
        winner.games_played,
        loser.games_played,
        params,
    )
    return SinglesUpdate(
        winner=winner._after(result.winner_new_rating, True),
        loser=loser._after(result.loser_new_rating, False),
        elo=result,
    )


def record_draw(
    player_a: RatingState,
    player_b: RatingState,
    params: Optional[EloParams] = None,
) -> DrawUpdate:
    """
    Apply a draw to both players.

    Draws count as a game played but neither extend nor break a streak
    in either direction: both current streaks go back to 0.
    """
    result = calculate_draw_elo(
        player_a.rating,
        player_b.rating,
        player_a.games_played,
        player_b.games_played,
        params,
    )
    return DrawUpdate(
        player_a=player_a._after(result.player_a_new_rating, None),
        player_b=player_b._after(result.player_b_new_rating, None),
        elo=result,
    )


def record_doubles(
    winner1: RatingState,
    winner2: Optional[RatingState],
    loser1: RatingState,
    loser2: Optional[RatingState],
    params: Optional[EloParams] = None,
) -> DoublesUpdate:
    """
    Apply a doubles match to all players on the doubles track.

    A missing partner (legacy records) is modelled as the player
    partnering themselves: team rating and team K collapse to their own.
    """
    w2 = winner2 or winner1
    l2 = loser2 or loser1
    result = calculate_doubles_elo(
        winner1.rating,
        w2.rating,
        loser1.rating,
        l2.rating,
        winner1.games_played,
        w2.games_played,
        loser1.games_played,
        l2.games_played,
        params,
    )
    return DoublesUpdate(
        winner1=winner1._after(result.winner1_new_rating, True),
        winner2=winner2._after(result.winner2_new_rating, True) if winner2 else None,
        loser1=loser1._after(result.loser1_new_rating, False),
        loser2=loser2._after(result.loser2_new_rating, False) if loser2 else None,
        elo=result,
    )
