"""Fetch, normalize and report: the orchestration shared by the CLI and the API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from .aggregate import filter_by_timeframe
from .config import DEFAULT_ENGINE_CONFIG, DEFAULT_MATCH_LIMIT, EngineConfig, grid_config_from_env
from .grid_client import GridGraphQLClient
from .grid_ingest import (
    RawTeamData,
    fetch_team_data,
    fetch_team_series_states,
    search_teams,
)
from .models import Match
from .normalize import (
    normalize_composition_stats,
    normalize_draft_stats,
    normalize_map_plans,
    normalize_player_draft_picks,
    normalize_series_states,
)
from .report import build_demo_report, build_matchup_report, build_scouting_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoutRequest:
    team_name: str
    our_team_name: Optional[str] = None
    limit: int = DEFAULT_MATCH_LIMIT
    timeframe_days: Optional[int] = None
    game: Optional[str] = None
    transparency: bool = True


def _prepare(
    raw: RawTeamData, timeframe_days: Optional[int]
) -> Tuple[List[Match], List[Dict[str, Any]]]:
    matches = filter_by_timeframe(normalize_series_states(raw.series_states), timeframe_days)
    kept = {m.series_id for m in matches}
    states = [s for s in raw.series_states if str(s.get("id") or "") in kept]
    return matches, states


def report_from_raw(
    opponent: RawTeamData,
    our: Optional[RawTeamData] = None,
    timeframe_days: Optional[int] = None,
    include_transparency: bool = True,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Dict[str, Any]:
    """Build a single-team or matchup report from already fetched series states."""
    matches, states = _prepare(opponent, timeframe_days)
    extras: Dict[str, Any] = {
        "top_picks_by_player": normalize_player_draft_picks(states, opponent.team_id),
        "map_plans": normalize_map_plans(states, opponent.team_id),
        "draft_stats": normalize_draft_stats(states, opponent.team_id),
        "composition_stats": normalize_composition_stats(states, opponent.team_id),
    }
    if our is None:
        return build_scouting_report(
            matches,
            opponent.team_id,
            opponent.team_name,
            include_transparency=include_transparency,
            config=config,
            **extras,
        )

    our_matches, _ = _prepare(our, timeframe_days)
    return build_matchup_report(
        our_matches,
        our.team_id,
        our.team_name,
        matches,
        opponent.team_id,
        opponent.team_name,
        config=config,
        **extras,
    )


class ScoutingService:
    def __init__(
        self,
        client: Optional[GridGraphQLClient] = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        if client is None:
            grid = grid_config_from_env()
            client = GridGraphQLClient(grid.api_key, timeout_s=grid.timeout_s, cache=grid.cache)
        self.client = client
        self.config = config

    def search_teams(self, query: str, game: Optional[str] = None) -> List[Dict[str, str]]:
        return search_teams(self.client, query, game=game)

    def fetch(self, request: ScoutRequest) -> Tuple[RawTeamData, Optional[RawTeamData]]:
        our: Optional[RawTeamData] = None
        if request.our_team_name:
            our = fetch_team_data(
                self.client, request.our_team_name, request.limit, which="our", game=request.game
            )
        opponent = fetch_team_data(
            self.client, request.team_name, request.limit, which="opponent", game=request.game
        )
        return opponent, our

    def generate_report(self, request: ScoutRequest) -> Dict[str, Any]:
        """Live report, or a demo report flagged ``is_mock`` when GRID is unavailable.

        Team-not-found is not an upstream failure and propagates to the caller.
        """
        try:
            opponent, our = self.fetch(request)
        except (RuntimeError, requests.RequestException) as exc:
            logger.warning("GRID fetch failed for '%s', serving demo report: %s", request.team_name, exc)
            return build_demo_report(
                request.team_name,
                reason=f"Live data unavailable: {exc}",
                include_transparency=request.transparency,
                config=self.config,
            )
        logger.info(
            "Building report for %s (%d series)%s",
            opponent.team_name,
            len(opponent.series_states),
            f" vs {our.team_name}" if our else "",
        )
        return report_from_raw(
            opponent,
            our,
            timeframe_days=request.timeframe_days,
            include_transparency=request.transparency,
            config=self.config,
        )

    def generate_report_by_id(
        self, team_id: str, limit: int = DEFAULT_MATCH_LIMIT, transparency: bool = True
    ) -> Dict[str, Any]:
        try:
            states = fetch_team_series_states(self.client, team_id, limit)
        except (RuntimeError, requests.RequestException) as exc:
            logger.warning("GRID fetch failed for team %s, serving demo report: %s", team_id, exc)
            return build_demo_report(
                team_id,
                reason=f"Live data unavailable: {exc}",
                include_transparency=transparency,
                config=self.config,
            )
        raw = RawTeamData(team_id=team_id, team_name=team_id, series_states=states)
        return report_from_raw(raw, include_transparency=transparency, config=self.config)
