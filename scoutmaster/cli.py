from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Tuple

import requests
from dotenv import load_dotenv

from .config import DEFAULT_MATCH_LIMIT, MAX_MATCH_LIMIT
from .errors import TeamNotFoundError
from .grid_ingest import RawTeamData, load_raw, save_raw
from .normalize import normalize_series_states
from .render import render_text
from .report import to_plain
from .report_pdf import build_pdf
from .service import ScoutingService, ScoutRequest, report_from_raw

logger = logging.getLogger(__name__)


def _write_json(path: str, obj: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)


def _bounded(value: str, lo: int, hi: int) -> int:
    n = int(value)
    if not lo <= n <= hi:
        raise argparse.ArgumentTypeError(f"must be between {lo} and {hi}")
    return n


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Opponent scouting report generator")
    parser.add_argument("--team", default=None, help="Opponent team name")
    parser.add_argument("--our-team", default=None, help="Our team name (enables matchup mode)")
    parser.add_argument(
        "--limit",
        type=lambda v: _bounded(v, 1, MAX_MATCH_LIMIT),
        default=DEFAULT_MATCH_LIMIT,
        help="Recent series to fetch per team",
    )
    parser.add_argument(
        "--timeframe-days",
        type=lambda v: _bounded(v, 1, 365),
        default=None,
        help="Only keep matches from the last N days",
    )
    parser.add_argument("--game", choices=["lol", "valorant"], default=None, help="Game title filter")
    parser.add_argument("--from-raw", default=None, help="Load raw JSON instead of querying GRID")
    parser.add_argument("--save-raw", default=None, help="Path to save raw series JSON")
    parser.add_argument("--save-normalized", default=None, help="Path to save normalized matches JSON")
    parser.add_argument("--output", default=None, help="Path to output report JSON/text")
    parser.add_argument(
        "--output-format", choices=["json", "text"], default="json", help="Output format"
    )
    parser.add_argument("--pdf", default=None, help="Also write the report as PDF to this path")
    parser.add_argument(
        "--no-transparency",
        dest="transparency",
        action="store_false",
        help="Omit the scored candidate list",
    )
    parser.add_argument("--cache", action="store_true", help="Enable on-disk cache")
    parser.add_argument("--debug", action="store_true", help="Print debug logs")
    args = parser.parse_args(argv)
    if not args.team and not args.from_raw:
        parser.error("--team is required unless --from-raw is given")
    return args


def _fetch(args: argparse.Namespace) -> Tuple[RawTeamData, Optional[RawTeamData]]:
    if not os.environ.get("GRID_API_KEY"):
        raise SystemExit("GRID_API_KEY not found. Set it in your shell or .env file before running.")
    service = ScoutingService()
    request = ScoutRequest(
        team_name=args.team,
        our_team_name=args.our_team,
        limit=args.limit,
        game=args.game,
    )
    try:
        return service.fetch(request)
    except TeamNotFoundError as exc:
        hint = f" Did you mean: {', '.join(exc.suggestions)}?" if exc.suggestions else ""
        raise SystemExit(f"{exc}.{hint}")
    except (RuntimeError, requests.RequestException) as exc:
        logger.debug("GRID fetch failed", exc_info=True)
        raise SystemExit(f"Could not fetch GRID data: {exc}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cache:
        os.environ["GRID_CACHE"] = "1"

    if args.from_raw:
        opponent, our = load_raw(Path(args.from_raw))
        logger.debug("Loaded %d opponent series from %s", len(opponent.series_states), args.from_raw)
    else:
        opponent, our = _fetch(args)

    if args.save_raw:
        save_raw(Path(args.save_raw), opponent, our)

    if args.save_normalized:
        _write_json(args.save_normalized, to_plain(normalize_series_states(opponent.series_states)))

    report = report_from_raw(
        opponent,
        our,
        timeframe_days=args.timeframe_days,
        include_transparency=args.transparency,
    )

    if args.output_format == "json":
        output_text = json.dumps(report, indent=2)
    else:
        output_text = render_text(report)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output_text)
    else:
        print(output_text)

    if args.pdf:
        build_pdf(report, args.pdf)
        logger.info("Wrote PDF to %s", args.pdf)


if __name__ == "__main__":
    main()
