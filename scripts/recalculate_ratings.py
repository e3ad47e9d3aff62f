#!/usr/bin/env python3
"""
Recalculate a group's ratings by replaying its full match history.

Input is a JSON export of the group:

    {
        "matches": [{"id": ..., "match_type": "singles", "winner_id": ...,
                     "loser_id": ..., "winner_score": 2, "loser_score": 1,
                     "played_at": "2025-03-02T18:30:00Z", ...}, ...],
        "live": {"singles": {"<player_id>": {"rating": 1220, ...}},
                 "doubles": {...}}
    }

``live`` is optional; when present it is compared against the replay.

Normal usage (replay and write the rebuilt state):
    python scripts/recalculate_ratings.py --input group.json --output rebuilt.json

Check only (exit 1 if live state or stored snapshots disagree):
    python scripts/recalculate_ratings.py --input group.json --check

Undo a match (replay without it):
    python scripts/recalculate_ratings.py --input group.json --without <match_id> --output rebuilt.json

Dry run (report what would change without writing anything):
    python scripts/recalculate_ratings.py --input group.json --output rebuilt.json --dry-run
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from time import perf_counter

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from smashrank.config import get_settings
from smashrank.elo.constants import EloParams
from smashrank.elo.live import RatingState
from smashrank.elo.pipeline import MatchRecord, ReplayEngine, replay_without

logger = logging.getLogger("recalculate_ratings")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rebuild ratings, streaks and per-match snapshots from match history.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--input", required=True, help="JSON export of the group's history.")
    parser.add_argument("--output", default=None, help="Write the rebuilt state to this path.")
    parser.add_argument(
        "--without",
        default=None,
        help="Match id to drop before replaying (undo).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if live state or stored snapshots disagree with the replay.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Replay and report, but do not write --output.",
    )
    return parser


def _load_states(raw: dict) -> dict[str, RatingState]:
    return {player_id: RatingState(**state) for player_id, state in raw.items()}


def main() -> int:
    args = _build_parser().parse_args()
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=settings.log_format)

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error("Input file not found: %s", input_path)
        return 1

    payload = json.loads(input_path.read_text(encoding="utf-8"))
    matches = [MatchRecord.from_dict(row) for row in payload.get("matches", [])]
    matches.sort(key=lambda m: m.played_at)
    params = EloParams.from_settings(settings)

    logger.info("Replaying %d matches from %s (dry_run=%s)", len(matches), input_path, args.dry_run)
    t_start = perf_counter()

    if args.without:
        try:
            result = replay_without(matches, args.without, params)
        except KeyError:
            logger.error("Match %s is not in the history", args.without)
            return 1
        matches = [m for m in matches if m.id != args.without]
    else:
        result = ReplayEngine(params).run(matches)

    elapsed = perf_counter() - t_start
    stale = result.stale_snapshots(matches)

    discrepancies = []
    live = payload.get("live")
    if live:
        discrepancies = result.diff(
            _load_states(live.get("singles", {})),
            _load_states(live["doubles"]) if "doubles" in live else None,
        )
    for d in discrepancies:
        logger.warning(
            "%s %s: live rating %d, replayed %d", d.track, d.player_id, d.live.rating, d.replayed.rating,
        )

    print("-" * 60)
    print(f"Matches replayed:       {len(result.snapshots)}")
    print(f"Singles players:        {len(result.singles)}")
    print(f"Doubles players:        {len(result.doubles)}")
    print(f"Stale snapshots:        {len(stale)}")
    print(f"State discrepancies:    {len(discrepancies)}")
    print(f"Elapsed:                {elapsed:.2f}s")

    if args.output and not args.dry_run:
        rebuilt = {
            "singles": {pid: asdict(state) for pid, state in sorted(result.singles.items())},
            "doubles": {pid: asdict(state) for pid, state in sorted(result.doubles.items())},
            "snapshots": [asdict(s) for s in result.snapshots],
        }
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(rebuilt, indent=2) + "\n", encoding="utf-8")
        logger.info("Wrote rebuilt state to %s", output_path)
    elif args.output:
        print("(dry run - nothing written)")

    if args.check and (stale or discrepancies):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
