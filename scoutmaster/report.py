from __future__ import annotations

from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .aggregate import (
    aggression_profile,
    average_score,
    build_raw_inputs,
    find_team,
    map_stats,
    maps_played,
    newest_first,
    player_tendencies,
    recent_roster,
    roster_stability,
    round_half_up,
    time_window,
    win_rate,
    win_rate_confidence,
    win_rate_trend,
)
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .how_to_win import generate_how_to_win_engine
from .matchup import generate_matchup_candidates, map_pool_deltas
from .models import (
    CompositionStat,
    DraftStat,
    MapPlan,
    Match,
    Player,
    PlayerDraftPick,
    TeamResult,
    TrendDirection,
)


def _enum_values(items: List[Any]) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in items}


def to_plain(obj: Any) -> Any:
    """Dataclasses (and lists of them) to JSON-ready dicts with enum values unwrapped."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj, dict_factory=_enum_values)
    if isinstance(obj, (list, tuple)):
        return [to_plain(o) for o in obj]
    if isinstance(obj, Enum):
        return obj.value
    return obj


def resolve_team_name(matches: Sequence[Match], team_ref: str, fallback: str) -> str:
    for m in newest_first(matches):
        team = find_team(m, team_ref)
        if team and team.team_name:
            return team.team_name
    return fallback


def _clamp_probability(value: int, config: EngineConfig) -> int:
    return max(config.win_probability_floor, min(config.win_probability_ceiling, value))


def win_probability(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> int:
    """Our chance against the scouted team, shrunk toward 50 for small samples."""
    n = len(matches)
    if n == 0:
        return 50
    opponent_wr = win_rate(matches, team_ref)
    weight = n / (n + config.win_probability_prior_matches)
    return _clamp_probability(round_half_up(50 + (50 - opponent_wr) * weight), config)


def matchup_win_probability(
    our_matches: Sequence[Match],
    our_team_ref: str,
    opponent_matches: Sequence[Match],
    opponent_team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> int:
    if not our_matches or not opponent_matches:
        return 50
    ours = win_rate(our_matches, our_team_ref)
    theirs = win_rate(opponent_matches, opponent_team_ref)
    return _clamp_probability(round_half_up(50 + (ours - theirs) / 2), config)


def build_evidence(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Dict[str, Any]:
    start, end = time_window(matches)
    series_ids = list(dict.fromkeys(m.series_id for m in newest_first(matches) if m.series_id))
    trend = win_rate_trend(matches, team_ref, config=config)
    return {
        "start_time": start,
        "end_time": end,
        "matches_analyzed": len(matches),
        "maps_played": maps_played(matches),
        "series_ids": series_ids,
        "win_rate_confidence": win_rate_confidence(matches, config).value,
        "win_rate_trend": to_plain(trend) if trend else None,
    }


def key_insights(
    matches: Sequence[Match],
    team_ref: str,
    team_name: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> List[str]:
    if not matches:
        return [f"No recent matches found for {team_name}."]

    n = len(matches)
    lines = [
        f"{team_name} won {win_rate(matches, team_ref)}% of their last {n} matches "
        f"({win_rate_confidence(matches, config).value.lower()} confidence)."
    ]

    stats = map_stats(matches, team_ref)
    if stats:
        best = sorted(stats, key=lambda s: (-s.win_rate, -s.matches_played))[0]
        worst = sorted(stats, key=lambda s: (s.win_rate, -s.matches_played))[0]
        lines.append(
            f"Strongest map: {best.map_name} ({round_half_up(best.win_rate * 100)}% over "
            f"{best.matches_played})."
        )
        if worst.map_name != best.map_name and worst.win_rate < best.win_rate:
            lines.append(
                f"Weakest map: {worst.map_name} ({round_half_up(worst.win_rate * 100)}% over "
                f"{worst.matches_played})."
            )

    aggression = aggression_profile(matches, team_ref, config)
    lines.append(
        f"{aggression.value} aggression profile, averaging {average_score(matches, team_ref)} "
        "points per map."
    )

    trend = win_rate_trend(matches, team_ref, config=config)
    if trend and trend.direction != TrendDirection.FLAT:
        word = "up" if trend.direction == TrendDirection.UP else "down"
        lines.append(
            f"Form is trending {word}: {trend.delta_pct_points:+d} points over the last "
            f"{trend.recent_matches} matches."
        )

    stability = roster_stability(matches, team_ref, config=config)
    if stability:
        lines.append(
            f"{len(stability.core_players)} core players across the last "
            f"{stability.matches_considered} matches ({stability.unique_players_seen} seen, "
            f"{stability.confidence.value.lower()} roster stability)."
        )
    return lines


def _default_map_plans(matches: Sequence[Match], team_ref: str) -> List[MapPlan]:
    return [
        MapPlan(map_name=s.map_name, matches_played=s.matches_played, win_rate=s.win_rate)
        for s in map_stats(matches, team_ref)
    ]


def build_scouting_report(
    matches: Sequence[Match],
    team_ref: str,
    team_name: str,
    *,
    top_picks_by_player: Optional[Dict[str, List[PlayerDraftPick]]] = None,
    map_plans: Optional[List[MapPlan]] = None,
    draft_stats: Optional[List[DraftStat]] = None,
    composition_stats: Optional[List[CompositionStat]] = None,
    include_transparency: bool = True,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Dict[str, Any]:
    """Single-team scouting report.

    ``team_ref`` is the id (or exact name) used to find the team inside each
    match; ``team_name`` is only a display fallback when the matches do not
    carry a name.
    """
    name = resolve_team_name(matches, team_ref, team_name)
    engine = generate_how_to_win_engine(matches, team_ref, config)
    tendencies = player_tendencies(matches, team_ref, top_picks_by_player, config)
    stability = roster_stability(matches, team_ref, config=config)

    report: Dict[str, Any] = {
        "opponent_name": name,
        "win_probability": win_probability(matches, team_ref, config),
        "evidence": build_evidence(matches, team_ref, config),
        "key_insights": key_insights(matches, team_ref, name, config),
        "how_to_win": to_plain(engine.selected),
        "map_stats": to_plain(map_stats(matches, team_ref)),
        "map_plans": to_plain(
            map_plans if map_plans is not None else _default_map_plans(matches, team_ref)
        ),
        "draft_stats": to_plain(draft_stats) if draft_stats else None,
        "composition_stats": to_plain(composition_stats) if composition_stats else None,
        "roster": to_plain(recent_roster(matches, team_ref)),
        "roster_stability": to_plain(stability) if stability else None,
        "player_tendencies": to_plain(tendencies) if tendencies else None,
        "aggression": aggression_profile(matches, team_ref, config).value,
        "average_score": average_score(matches, team_ref),
        "matches_analyzed": len(matches),
        "raw_inputs": to_plain(build_raw_inputs(matches, team_ref, config=config)),
        "is_mock": False,
    }
    if include_transparency:
        report["how_to_win_engine"] = to_plain(engine)
    return report


def _matchup_side(
    matches: Sequence[Match], team_ref: str, team_name: str, config: EngineConfig
) -> Dict[str, Any]:
    return {
        "team_name": team_name,
        "matches_analyzed": len(matches),
        "win_rate": win_rate(matches, team_ref),
        "win_rate_confidence": win_rate_confidence(matches, config).value,
        "map_stats": to_plain(map_stats(matches, team_ref)),
        "aggression": aggression_profile(matches, team_ref, config).value,
        "average_score": average_score(matches, team_ref),
    }


def build_matchup_report(
    our_matches: Sequence[Match],
    our_team_ref: str,
    our_team_name: str,
    opponent_matches: Sequence[Match],
    opponent_team_ref: str,
    opponent_team_name: str,
    *,
    top_picks_by_player: Optional[Dict[str, List[PlayerDraftPick]]] = None,
    map_plans: Optional[List[MapPlan]] = None,
    draft_stats: Optional[List[DraftStat]] = None,
    composition_stats: Optional[List[CompositionStat]] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Dict[str, Any]:
    """Opponent report whose recommendations are tailored to our own recent form.

    The opponent-only engine result moves under ``matchup`` and the top-level
    ``how_to_win`` is replaced by the matchup list.
    """
    report = build_scouting_report(
        opponent_matches,
        opponent_team_ref,
        opponent_team_name,
        top_picks_by_player=top_picks_by_player,
        map_plans=map_plans,
        draft_stats=draft_stats,
        composition_stats=composition_stats,
        include_transparency=True,
        config=config,
    )
    opponent_engine = report.pop("how_to_win_engine")
    our_name = resolve_team_name(our_matches, our_team_ref, our_team_name)

    candidates = generate_matchup_candidates(
        our_matches, our_team_ref, opponent_matches, opponent_team_ref, config
    )
    if candidates:
        report["how_to_win"] = [to_plain(c.as_insight()) for c in candidates]
    if our_matches and opponent_matches:
        report["win_probability"] = matchup_win_probability(
            our_matches, our_team_ref, opponent_matches, opponent_team_ref, config
        )
    report["our_team_name"] = our_name
    report["matchup"] = {
        "our": _matchup_side(our_matches, our_team_ref, our_name, config),
        "opponent": _matchup_side(
            opponent_matches, opponent_team_ref, report["opponent_name"], config
        ),
        "deltas": {
            "map_pool": map_pool_deltas(
                our_matches, our_team_ref, opponent_matches, opponent_team_ref
            ),
        },
        "how_to_win_transparency": {
            "kind": "MatchupHeuristics",
            "based_on": {
                "our_matches_analyzed": len(our_matches),
                "opponent_matches_analyzed": len(opponent_matches),
            },
            "candidates": to_plain(candidates),
        },
        "opponent_how_to_win_engine": opponent_engine,
    }
    return report


# Demo data

_DEMO_TEAM_ID = "demo-team"
_DEMO_ROSTER = ["Astra", "Blitz", "Cinder", "Drift", "Echo"]
_DEMO_RESULTS = [
    ("2025-01-10T18:00:00Z", "Ascent", 13, 9),
    ("2025-01-08T18:00:00Z", "Bind", 8, 13),
    ("2025-01-06T18:00:00Z", "Ascent", 13, 11),
    ("2025-01-04T18:00:00Z", "Haven", 10, 13),
    ("2025-01-02T18:00:00Z", "Bind", 9, 13),
    ("2024-12-30T18:00:00Z", "Ascent", 13, 7),
    ("2024-12-28T18:00:00Z", "Haven", 13, 10),
    ("2024-12-26T18:00:00Z", "Bind", 11, 13),
]


def demo_matches(team_name: str) -> List[Match]:
    """Fixed, deterministic match history used when live data is unavailable."""
    players = [
        Player(id=f"demo-p{i}", name=name, team_id=_DEMO_TEAM_ID)
        for i, name in enumerate(_DEMO_ROSTER, start=1)
    ]
    matches: List[Match] = []
    for idx, (start, map_name, ours, theirs) in enumerate(_DEMO_RESULTS, start=1):
        matches.append(
            Match(
                id=f"demo-m{idx}",
                series_id=f"demo-s{idx}",
                start_time=start,
                map_name=map_name,
                teams=[
                    TeamResult(
                        team_id=_DEMO_TEAM_ID,
                        team_name=team_name,
                        score=ours,
                        is_winner=ours > theirs,
                        players=players,
                    ),
                    TeamResult(
                        team_id=f"demo-opp{idx}",
                        team_name=f"Sparring Partner {idx}",
                        score=theirs,
                        is_winner=theirs > ours,
                    ),
                ],
            )
        )
    return matches


def build_demo_report(
    team_name: str,
    reason: str,
    include_transparency: bool = True,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Dict[str, Any]:
    report = build_scouting_report(
        demo_matches(team_name),
        _DEMO_TEAM_ID,
        team_name,
        include_transparency=include_transparency,
        config=config,
    )
    report["is_mock"] = True
    report["mock_reason"] = reason
    return report
