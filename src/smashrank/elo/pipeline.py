"""
Replay engine - rebuilds a group's rating state from its full match history.

Live state is maintained incrementally, one match at a time. Some edits
(undo, a retroactively deleted match, a bug fix in a past calculation)
cannot be applied as a delta because derived fields like streaks are not
invertible. The replay engine is the backstop: start every player from
the baseline and fold every match, in chronological order, through the
same transitions the live path uses.

Two independent tracks are rebuilt:

1. **singles**: singles matches and tournament matches (wins and draws)
2. **doubles**: doubles matches, using the team-mean formula

The result holds final per-player state for both tracks and, for every
match, the rating each player had immediately before it. Writing both back
(in one exclusive transaction, done by the caller) makes live state and
replayed state identical.

Usage:
    engine = ReplayEngine(EloParams.from_settings())
    result = engine.run(matches)
    for snapshot in result.snapshots:
        ...  # rewrite elo_before_* / elo_change on each match
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from smashrank.elo.constants import DEFAULT_PARAMS, EloParams
from smashrank.elo.live import RatingState, record_doubles, record_draw, record_singles

logger = logging.getLogger(__name__)

SINGLES = "singles"
DOUBLES = "doubles"
TOURNAMENT = "tournament"

MATCH_TYPES = (SINGLES, DOUBLES, TOURNAMENT)


@dataclass(frozen=True)
class MatchRecord:
    """
    One persisted match, as the replay engine needs it.

    For draws (equal set counts) ``winner_id`` / ``loser_id`` are just
    player A / player B as reported. The optional ``elo_before_*`` fields
    carry what is currently stored on the match, so stale snapshots can be
    detected; they are never read by the replay itself.
    """
    id: str
    match_type: str
    winner_id: str
    loser_id: str
    winner_score: int
    loser_score: int
    played_at: datetime
    winner_partner_id: Optional[str] = None
    loser_partner_id: Optional[str] = None
    elo_before_winner: Optional[int] = None
    elo_before_loser: Optional[int] = None
    elo_before_winner_partner: Optional[int] = None
    elo_before_loser_partner: Optional[int] = None
    elo_change: Optional[int] = None

    def __post_init__(self) -> None:
        if self.match_type not in MATCH_TYPES:
            raise ValueError(f"match_type must be one of {MATCH_TYPES}, got '{self.match_type}'")
        players = [
            pid
            for pid in (self.winner_id, self.winner_partner_id, self.loser_id, self.loser_partner_id)
            if pid is not None
        ]
        if len(set(players)) != len(players):
            raise ValueError(f"match {self.id}: the same player appears more than once")

    @property
    def is_draw(self) -> bool:
        return self.match_type != DOUBLES and self.winner_score == self.loser_score

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchRecord":
        """Build a record from an exported row (``played_at`` as ISO string or datetime)."""
        played_at = data["played_at"]
        if isinstance(played_at, str):
            played_at = datetime.fromisoformat(played_at.replace("Z", "+00:00"))
        known = {f for f in cls.__dataclass_fields__}
        payload = {k: v for k, v in data.items() if k in known}
        payload["played_at"] = played_at
        payload["id"] = str(payload["id"])
        return cls(**payload)


@dataclass(frozen=True)
class MatchSnapshot:
    """Ratings immediately before a match, as the replay computed them."""
    match_id: str
    elo_before_winner: int
    elo_before_loser: int
    elo_before_winner_partner: Optional[int]
    elo_before_loser_partner: Optional[int]
    elo_change: int

    def differs_from(self, match: MatchRecord) -> bool:
        """True if the stored values on ``match`` disagree with this snapshot."""
        return (
            match.elo_before_winner != self.elo_before_winner
            or match.elo_before_loser != self.elo_before_loser
            or match.elo_before_winner_partner != self.elo_before_winner_partner
            or match.elo_before_loser_partner != self.elo_before_loser_partner
            or match.elo_change != self.elo_change
        )


@dataclass(frozen=True)
class StateDiscrepancy:
    """A player whose live state disagrees with the replay."""
    player_id: str
    track: str
    live: RatingState
    replayed: RatingState


@dataclass
class ReplayResult:
    """Final per-player state on both tracks plus one snapshot per match."""
    params: EloParams
    singles: dict[str, RatingState] = field(default_factory=dict)
    doubles: dict[str, RatingState] = field(default_factory=dict)
    snapshots: list[MatchSnapshot] = field(default_factory=list)

    def state_for(self, player_id: str, track: str = SINGLES) -> RatingState:
        """
        Replayed state for a player; players with no matches on the track
        are at the baseline.
        """
        states = self.doubles if track == DOUBLES else self.singles
        return states.get(player_id) or RatingState.initial(self.params)

    def snapshot_for(self, match_id: str) -> MatchSnapshot:
        for snapshot in self.snapshots:
            if snapshot.match_id == match_id:
                return snapshot
        raise KeyError(match_id)

    def stale_snapshots(self, matches: Sequence[MatchRecord]) -> list[MatchSnapshot]:
        """Snapshots whose values differ from what is stored on the matches."""
        by_id = {m.id: m for m in matches}
        return [s for s in self.snapshots if s.differs_from(by_id[s.match_id])]

    def diff(
        self,
        live_singles: dict[str, RatingState],
        live_doubles: Optional[dict[str, RatingState]] = None,
    ) -> list[StateDiscrepancy]:
        """
        Compare caller-held live state against the replay.

        An empty list means live and replayed state are equivalent. Members
        present in live state but absent from the history are compared
        against the baseline, since a replay resets everyone.
        """
        discrepancies: list[StateDiscrepancy] = []
        tracks = [(SINGLES, live_singles)]
        if live_doubles is not None:
            tracks.append((DOUBLES, live_doubles))

        for track, live_states in tracks:
            replayed_states = self.doubles if track == DOUBLES else self.singles
            for player_id in sorted(set(live_states) | set(replayed_states)):
                replayed = self.state_for(player_id, track)
                live = live_states.get(player_id) or RatingState.initial(self.params)
                if live != replayed:
                    discrepancies.append(
                        StateDiscrepancy(player_id=player_id, track=track, live=live, replayed=replayed)
                    )
        return discrepancies


class ReplayEngine:
    """
    Deterministic full-history replay for one group.

    The engine holds no state between runs; each ``run`` starts from the
    baseline. It is meant for offline maintenance passes and for undo,
    with the caller holding an exclusive lock on the group's rows.
    """

    def __init__(self, params: Optional[EloParams] = None):
        self.params = params or DEFAULT_PARAMS

    def run(self, matches: Iterable[MatchRecord]) -> ReplayResult:
        """
        Replay ``matches`` in the given order.

        Args:
            matches: The group's full history, oldest first

        Returns:
            ReplayResult with final states and per-match snapshots

        Raises:
            ValueError: If the history is not in chronological order
        """
        result = ReplayResult(params=self.params)
        previous: Optional[MatchRecord] = None
        count = 0

        for match in matches:
            if previous is not None and match.played_at < previous.played_at:
                raise ValueError(
                    f"match history out of order: {match.id} played at {match.played_at} "
                    f"comes after {previous.id} played at {previous.played_at}"
                )
            previous = match
            count += 1

            if match.match_type == DOUBLES:
                snapshot = self._replay_doubles(match, result.doubles)
            elif match.is_draw:
                snapshot = self._replay_draw(match, result.singles)
            else:
                snapshot = self._replay_singles(match, result.singles)
            result.snapshots.append(snapshot)

        logger.info(
            "Replayed %d matches: %d singles players, %d doubles players",
            count, len(result.singles), len(result.doubles),
        )
        return result

    def _state(self, states: dict[str, RatingState], player_id: str) -> RatingState:
        state = states.get(player_id)
        if state is None:
            state = RatingState.initial(self.params)
            states[player_id] = state
        return state

    def _replay_singles(self, match: MatchRecord, states: dict[str, RatingState]) -> MatchSnapshot:
        winner = self._state(states, match.winner_id)
        loser = self._state(states, match.loser_id)

        update = record_singles(winner, loser, self.params)
        states[match.winner_id] = update.winner
        states[match.loser_id] = update.loser

        return MatchSnapshot(
            match_id=match.id,
            elo_before_winner=winner.rating,
            elo_before_loser=loser.rating,
            elo_before_winner_partner=None,
            elo_before_loser_partner=None,
            elo_change=update.elo.change,
        )

    def _replay_draw(self, match: MatchRecord, states: dict[str, RatingState]) -> MatchSnapshot:
        player_a = self._state(states, match.winner_id)
        player_b = self._state(states, match.loser_id)

        update = record_draw(player_a, player_b, self.params)
        states[match.winner_id] = update.player_a
        states[match.loser_id] = update.player_b

        return MatchSnapshot(
            match_id=match.id,
            elo_before_winner=player_a.rating,
            elo_before_loser=player_b.rating,
            elo_before_winner_partner=None,
            elo_before_loser_partner=None,
            elo_change=update.elo.player_a_change,
        )

    def _replay_doubles(self, match: MatchRecord, states: dict[str, RatingState]) -> MatchSnapshot:
        winner1 = self._state(states, match.winner_id)
        loser1 = self._state(states, match.loser_id)
        winner2 = self._state(states, match.winner_partner_id) if match.winner_partner_id else None
        loser2 = self._state(states, match.loser_partner_id) if match.loser_partner_id else None

        update = record_doubles(winner1, winner2, loser1, loser2, self.params)
        states[match.winner_id] = update.winner1
        states[match.loser_id] = update.loser1
        if match.winner_partner_id:
            states[match.winner_partner_id] = update.winner2
        if match.loser_partner_id:
            states[match.loser_partner_id] = update.loser2

        return MatchSnapshot(
            match_id=match.id,
            elo_before_winner=winner1.rating,
            elo_before_loser=loser1.rating,
            elo_before_winner_partner=winner2.rating if winner2 else None,
            elo_before_loser_partner=loser2.rating if loser2 else None,
            elo_change=update.elo.change,
        )


def replay_without(
    matches: Sequence[MatchRecord],
    match_id: str,
    params: Optional[EloParams] = None,
) -> ReplayResult:
    """
    Replay a history with one match removed (the undo path).

    Raises:
        KeyError: If no match in the history has ``match_id``
    """
    remaining = [m for m in matches if m.id != match_id]
    if len(remaining) == len(matches):
        raise KeyError(match_id)
    logger.debug("Replaying %d matches without %s", len(remaining), match_id)
    return ReplayEngine(params).run(remaining)
