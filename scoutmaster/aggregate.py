"""Summary statistics over normalized matches.

Every function here is total: empty lists, missing scores, missing rosters
and malformed timestamps all produce a fallback value instead of an error.
A team is located inside a match by exact id or case-insensitive exact name,
never by partial matching.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .models import (
    Aggression,
    ClutchIndicator,
    Confidence,
    MapStat,
    Match,
    Player,
    PlayerDraftPick,
    PlayerTendency,
    RawInputs,
    RawMatchRow,
    RosterStability,
    TeamResult,
    TrendDirection,
    WinRateTrend,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_start_time(ts: Optional[str]) -> Optional[datetime]:
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _sort_key(match: Match) -> float:
    dt = parse_start_time(match.start_time)
    return dt.timestamp() if dt else float("-inf")


def newest_first(matches: Iterable[Match]) -> List[Match]:
    # unparsable timestamps sort as the oldest entries
    return sorted(matches, key=_sort_key, reverse=True)


def oldest_first(matches: Iterable[Match]) -> List[Match]:
    return sorted(matches, key=_sort_key)


def find_team(match: Match, team_ref: str) -> Optional[TeamResult]:
    ref_lc = (team_ref or "").lower()
    for team in match.teams:
        if team.team_id == team_ref or (team.team_name or "").lower() == ref_lc:
            return team
    return None


def find_opponent(match: Match, team: TeamResult) -> Optional[TeamResult]:
    return next((t for t in match.teams if t is not team), None)


def _won(match: Match, team_ref: str) -> bool:
    team = find_team(match, team_ref)
    return bool(team and team.is_winner is True)


def win_rate(matches: Sequence[Match], team_ref: str) -> int:
    """Overall win rate as an integer percentage."""
    if not matches:
        return 0
    wins = sum(1 for m in matches if _won(m, team_ref))
    return round_half_up(100.0 * wins / len(matches))


def map_stats(matches: Sequence[Match], team_ref: str) -> List[MapStat]:
    played: Dict[str, int] = {}
    wins: Dict[str, int] = defaultdict(int)
    for m in matches:
        team = find_team(m, team_ref)
        if not team:
            continue
        played[m.map_name] = played.get(m.map_name, 0) + 1
        if team.is_winner is True:
            wins[m.map_name] += 1

    rows = [
        MapStat(map_name=name, matches_played=n, win_rate=(wins[name] / n) if n else 0.0)
        for name, n in played.items()
    ]
    rows.sort(key=lambda r: r.matches_played, reverse=True)
    return rows


def maps_played(matches: Sequence[Match]) -> int:
    return len({m.map_name for m in matches})


def average_score(matches: Sequence[Match], team_ref: str) -> int:
    if not matches:
        return 0
    total = 0.0
    for m in matches:
        team = find_team(m, team_ref)
        total += (team.score or 0) if team else 0
    return round_half_up(total / len(matches))


def aggression_profile(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Aggression:
    avg = average_score(matches, team_ref)
    if avg > config.aggression_high_above:
        return Aggression.HIGH
    if avg > config.aggression_medium_above:
        return Aggression.MEDIUM
    return Aggression.LOW


def sample_confidence(n: int, high_min: int, medium_min: int) -> Confidence:
    if n >= high_min:
        return Confidence.HIGH
    if n >= medium_min:
        return Confidence.MEDIUM
    return Confidence.LOW


def win_rate_confidence(
    matches: Sequence[Match], config: EngineConfig = DEFAULT_ENGINE_CONFIG
) -> Confidence:
    return sample_confidence(len(matches), config.overall_high_min, config.overall_medium_min)


def recent_roster(matches: Sequence[Match], team_ref: str) -> List[Player]:
    if not matches:
        return []
    latest = newest_first(matches)[0]
    team = find_team(latest, team_ref)
    return list(team.players) if team and team.players else []


def _unique_players(players: Iterable[Player]) -> Dict[str, Player]:
    out: Dict[str, Player] = {}
    for p in players:
        if p.id and p.id not in out:
            out[p.id] = p
    return out


def roster_stability(
    matches: Sequence[Match],
    team_ref: str,
    max_matches: Optional[int] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Optional[RosterStability]:
    limit = max_matches if max_matches is not None else config.roster_max_matches

    rosters: List[Dict[str, Player]] = []
    for m in newest_first(matches):
        if len(rosters) >= limit:
            break
        team = find_team(m, team_ref)
        if not team or not team.players:
            continue
        roster = _unique_players(team.players)
        if roster:
            rosters.append(roster)

    if not rosters:
        return None

    appearances: Counter = Counter()
    latest: Dict[str, Player] = {}
    for roster in rosters:
        for pid, p in roster.items():
            appearances[pid] += 1
            # newest match comes first, so the first sighting carries the current name
            latest.setdefault(pid, p)

    considered = len(rosters)
    threshold = math.ceil(considered * config.roster_core_share)
    core = [latest[pid] for pid, n in appearances.items() if n >= threshold]
    core.sort(key=lambda p: (p.name or "", p.id))

    unique_seen = len(appearances)
    typical_size = max(len(r) for r in rosters)
    churn_ok = unique_seen <= typical_size + 1

    if considered >= config.roster_high_min and churn_ok:
        confidence = Confidence.HIGH
    elif considered >= config.roster_medium_min and churn_ok:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.LOW

    return RosterStability(
        confidence=confidence,
        matches_considered=considered,
        core_players=core,
        unique_players_seen=unique_seen,
    )


def is_close_match(
    team_score: float, opponent_score: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG
) -> bool:
    if max(team_score, opponent_score) <= config.close_low_score_max:
        margin = config.close_margin_low_score
    else:
        margin = config.close_margin
    return abs(team_score - opponent_score) <= margin


def _clutch(close_played: int, close_wins: int, config: EngineConfig) -> Optional[ClutchIndicator]:
    if close_played < config.clutch_min_close:
        return None
    rate = close_wins / close_played
    if close_played >= config.clutch_high_min_close and rate >= config.clutch_high_win_rate:
        rating = Confidence.HIGH
    elif rate >= config.clutch_medium_win_rate:
        rating = Confidence.MEDIUM
    else:
        rating = Confidence.LOW
    return ClutchIndicator(close_matches_played=close_played, win_rate=rate, rating=rating)


@dataclass
class _PlayerTally:
    name: str
    matches: int = 0
    wins: int = 0
    close: int = 0
    close_wins: int = 0
    maps: Dict[str, List[int]] = field(default_factory=dict)


def player_tendencies(
    matches: Sequence[Match],
    team_ref: str,
    top_picks_by_player: Optional[Dict[str, List[PlayerDraftPick]]] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> List[PlayerTendency]:
    tallies: Dict[str, _PlayerTally] = {}

    for m in oldest_first(matches):
        team = find_team(m, team_ref)
        if not team or not team.players:
            continue
        won = team.is_winner is True
        opponent = find_opponent(m, team)
        close = opponent is not None and is_close_match(
            team.score or 0, opponent.score or 0, config
        )

        for pid, p in _unique_players(team.players).items():
            tally = tallies.get(pid)
            if tally is None:
                tally = tallies[pid] = _PlayerTally(name=p.name)
            else:
                tally.name = p.name or tally.name
            tally.matches += 1
            tally.wins += 1 if won else 0
            per_map = tally.maps.setdefault(m.map_name, [0, 0])
            per_map[0] += 1
            per_map[1] += 1 if won else 0
            if close:
                tally.close += 1
                tally.close_wins += 1 if won else 0

    picks = top_picks_by_player or {}
    out: List[PlayerTendency] = []
    for pid, t in tallies.items():
        performance = [
            MapStat(map_name=name, matches_played=n, win_rate=w / n)
            for name, (n, w) in t.maps.items()
        ]
        performance.sort(key=lambda s: s.matches_played, reverse=True)
        top = list(picks.get(pid) or [])[: config.top_picks_cap]
        out.append(
            PlayerTendency(
                player_id=pid,
                player_name=t.name,
                matches_played=t.matches,
                win_rate=t.wins / t.matches,
                map_performance=performance,
                top_picks=top or None,
                clutch=_clutch(t.close, t.close_wins, config),
            )
        )

    out.sort(key=lambda pt: (-pt.matches_played, pt.player_name or "", pt.player_id))
    return out


def win_rate_trend(
    matches: Sequence[Match],
    team_ref: str,
    window: Optional[int] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Optional[WinRateTrend]:
    if len(matches) < config.trend_min_matches:
        return None
    size = window if window is not None else config.trend_window
    if size <= 0:
        return None

    ordered = newest_first(matches)
    recent = ordered[:size]
    previous = ordered[size : size * 2]
    if len(recent) < config.trend_min_window or len(previous) < config.trend_min_window:
        return None

    recent_rate = sum(1 for m in recent if _won(m, team_ref)) / len(recent)
    previous_rate = sum(1 for m in previous if _won(m, team_ref)) / len(previous)
    delta = round_half_up((recent_rate - previous_rate) * 100)

    if delta >= config.trend_flat_band_pp:
        direction = TrendDirection.UP
    elif delta <= -config.trend_flat_band_pp:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.FLAT

    return WinRateTrend(
        direction=direction,
        delta_pct_points=delta,
        recent_win_rate=recent_rate,
        previous_win_rate=previous_rate,
        recent_matches=len(recent),
        previous_matches=len(previous),
    )


def filter_by_timeframe(
    matches: Sequence[Match],
    timeframe_days: Optional[float],
    now: Optional[datetime] = None,
) -> List[Match]:
    """Keep matches inside the trailing window; unparsable timestamps are kept."""
    if not timeframe_days or not math.isfinite(timeframe_days) or timeframe_days <= 0:
        return list(matches)
    ref = now or datetime.now(timezone.utc)
    if ref.tzinfo is None:
        ref = ref.replace(tzinfo=timezone.utc)
    try:
        cutoff = ref - timedelta(days=timeframe_days)
    except (OverflowError, ValueError):
        # window reaches past datetime.min
        return list(matches)

    kept: List[Match] = []
    for m in matches:
        dt = parse_start_time(m.start_time)
        if dt is None or dt >= cutoff:
            kept.append(m)
    return kept


def _result_letter(team: Optional[TeamResult]) -> str:
    if team is None or team.is_winner is None:
        return "?"
    return "W" if team.is_winner else "L"


def build_raw_inputs(
    matches: Sequence[Match],
    team_ref: str,
    limit: Optional[int] = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> RawInputs:
    cap = limit if limit is not None else config.raw_inputs_limit
    ordered = newest_first(matches)
    shown = ordered[: max(0, cap)]

    rows: List[RawMatchRow] = []
    for m in shown:
        team = find_team(m, team_ref)
        opponent = find_opponent(m, team) if team else None
        rows.append(
            RawMatchRow(
                match_id=m.id,
                series_id=m.series_id,
                start_time=m.start_time,
                map_name=m.map_name,
                opponent_name=opponent.team_name if opponent else "Unknown",
                team_score=(team.score or 0) if team else 0,
                opponent_score=(opponent.score or 0) if opponent else 0,
                result=_result_letter(team),
            )
        )

    return RawInputs(
        kind="NormalizedMatches",
        total_matches=len(ordered),
        shown_matches=len(rows),
        truncated=len(ordered) > len(rows),
        matches=rows,
    )


def time_window(matches: Sequence[Match]) -> Tuple[str, str]:
    """Earliest and latest parsable start times, as given in the input."""
    stamped = [(parse_start_time(m.start_time), m.start_time) for m in matches]
    stamped = [(dt, raw) for dt, raw in stamped if dt is not None]
    if not stamped:
        return "", ""
    stamped.sort(key=lambda x: x[0])
    return stamped[0][1], stamped[-1][1]


@dataclass(frozen=True)
class TeamSnapshot:
    """Read-only bundle of aggregates the rule engines consume."""

    team_ref: str
    matches: int
    win_rate: int
    map_stats: Tuple[MapStat, ...]
    average_score: int
    aggression: Aggression
    overall_confidence: Confidence


def summarize(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> TeamSnapshot:
    return TeamSnapshot(
        team_ref=team_ref,
        matches=len(matches),
        win_rate=win_rate(matches, team_ref),
        map_stats=tuple(map_stats(matches, team_ref)),
        average_score=average_score(matches, team_ref),
        aggression=aggression_profile(matches, team_ref, config),
        overall_confidence=win_rate_confidence(matches, config),
    )
