from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


CENTRAL_DATA_URLS = [
    "https://api-op.grid.gg/central-data/graphql",
    "https://api.grid.gg/central-data/graphql",
]

SERIES_STATE_URLS = [
    "https://api-op.grid.gg/live-data-feed/series-state/graphql",
    "https://api.grid.gg/live-data-feed/series-state/graphql",
]

DEFAULT_MATCH_LIMIT = 10
MAX_MATCH_LIMIT = 50


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool
    base_dir: Path
    ttl_s: int = 300


@dataclass(frozen=True)
class GridConfig:
    api_key: str
    timeout_s: int
    cache: CacheConfig


def cache_config_from_env() -> CacheConfig:
    enabled = os.environ.get("GRID_CACHE", "0").lower() in {"1", "true", "yes"}
    base_dir = Path(os.environ.get("GRID_CACHE_DIR", ".cache/grid"))
    ttl_s = int(os.environ.get("GRID_CACHE_TTL_S", "300") or 300)
    return CacheConfig(enabled=enabled, base_dir=base_dir, ttl_s=ttl_s)


def grid_config_from_env() -> GridConfig:
    return GridConfig(
        api_key=os.environ.get("GRID_API_KEY", ""),
        timeout_s=int(os.environ.get("GRID_TIMEOUT_S", "30") or 30),
        cache=cache_config_from_env(),
    )


def _confidence_factors() -> Mapping[str, float]:
    return MappingProxyType({"High": 1.0, "Medium": 0.7, "Low": 0.4})


@dataclass(frozen=True)
class EngineConfig:
    """Every heuristic threshold the engine uses.

    Values are tuned for round-based shooters (scores around 13). Titles with
    other score ranges should pass their own instance rather than patching
    the rules.
    """

    # aggression profile, on average score
    aggression_high_above: int = 12
    aggression_medium_above: int = 8

    # scoring
    confidence_factors: Mapping[str, float] = field(default_factory=_confidence_factors)
    max_selected: int = 5

    # sample-size buckets (overall matches)
    overall_high_min: int = 8
    overall_medium_min: int = 4

    # map weakness rule
    weak_map_below: float = 0.45
    map_high_min: int = 4
    map_medium_min: int = 3
    map_exploit_full_at: int = 6
    map_low_sample_below: int = 3
    map_guardrail_severity: float = 0.35
    map_guardrail_exploitability: float = 0.4

    # momentum rule, win rate in percent
    cold_below_pct: int = 40
    hot_above_pct: int = 70
    cold_exploitability: float = 0.8
    hot_severity: float = 0.35
    hot_exploitability: float = 0.6

    # playstyle rule
    playstyle_severity: float = 0.6
    playstyle_exploitability: float = 0.7

    # map pool breadth rule
    narrow_pool_below: int = 3
    narrow_pool_min_matches: int = 3
    narrow_pool_severity: float = 0.55
    narrow_pool_exploitability: float = 0.7

    # data scarcity rule
    scarce_below: int = 3
    scarce_severity: float = 0.4
    scarce_exploitability: float = 0.6

    # fallback
    fallback_severity: float = 0.35
    fallback_exploitability: float = 0.5

    # roster stability
    roster_max_matches: int = 10
    roster_core_share: float = 0.8
    roster_high_min: int = 5
    roster_medium_min: int = 3

    # close matches / clutch. Margins assume round-based scores and should be
    # revisited per title.
    close_low_score_max: int = 5
    close_margin_low_score: int = 1
    close_margin: int = 2
    clutch_min_close: int = 2
    clutch_high_min_close: int = 3
    clutch_high_win_rate: float = 0.66
    clutch_medium_win_rate: float = 0.5
    top_picks_cap: int = 5

    # win-rate trend
    trend_min_matches: int = 4
    trend_window: int = 5
    trend_min_window: int = 2
    trend_flat_band_pp: int = 5

    # raw inputs digest
    raw_inputs_limit: int = 20

    # matchup rules
    matchup_advantage: float = 0.15
    matchup_high_min: int = 4
    matchup_medium_min: int = 2
    matchup_sample_weight: int = 4
    matchup_low_penalty: int = 6
    matchup_avoid_penalty: int = 2
    matchup_steer_base: int = 58
    matchup_steer_wr_weight: int = 15
    matchup_avoid_base: int = 55
    matchup_avoid_wr_weight: int = 10
    matchup_played_weight: int = 3
    matchup_anti_rush_score: int = 55
    matchup_tempo_score: int = 52
    matchup_narrow_pool_max: int = 2
    matchup_wide_pool_min: int = 4
    matchup_extend_score: int = 45
    matchup_default_score: int = 10
    matchup_max_results: int = 5

    # win probability
    win_probability_prior_matches: int = 4
    win_probability_floor: int = 5
    win_probability_ceiling: int = 95


DEFAULT_ENGINE_CONFIG = EngineConfig()
