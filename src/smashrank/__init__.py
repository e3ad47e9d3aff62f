"""
SmashRank - ping-pong ratings for groups of players.

The rating and competition-integrity engine behind the SmashRank bot,
API and dashboard. Everything here is pure computation over plain data:
callers load state, call into the core, and persist what comes back.

Main components:
- elo: rating calculator (singles, draws, doubles), tiers, live
  transitions and the full-history replay engine
- streaks: win/loss streak tracking
- seasons: quarter-like season windows and rollover planning
- achievements: rule table and evaluators for match and tournament grants
- tournaments: round-robin fixtures, standings and tie-breaks
- scores: winner-oriented set scores
"""

__version__ = "1.0.0"
