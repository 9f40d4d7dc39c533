from __future__ import annotations

import argparse
import json
import logging

from teamforge.config import get_settings
from teamforge.db.session import init_schema
from teamforge.exam_store import exam_store
from teamforge.team_layout import layout_from_result
from teamforge.team_matching import MatchingMode, TeamMatchingError, match_teams
from teamforge.team_store import team_store


logger = logging.getLogger("match_teams")


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Match submitted exam attempts into teams.")
    parser.add_argument("--team-size", type=int, default=settings.default_team_size)
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in MatchingMode],
        default=settings.default_matching_mode,
    )
    parser.add_argument("--save", action="store_true", help="Replace the saved team layout with the result")
    return parser.parse_args()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args()
    init_schema()
    mode = MatchingMode(args.mode)
    attempts = exam_store.graded_attempts()
    try:
        result = match_teams(attempts, args.team_size, mode)
    except TeamMatchingError as exc:
        logger.error("Team matching failed: %s", exc)
        return 1

    scores = {attempt.attempt_id: attempt.score for attempt in attempts}
    layout = layout_from_result(result, mode=mode, team_size=args.team_size, scores=scores)
    if args.save:
        layout = team_store.save_layout(layout)
        logger.info("Saved layout with %d teams", layout.team_count)
    print(json.dumps(layout.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
