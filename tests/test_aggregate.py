from datetime import datetime, timezone
from typing import List, Optional

from scoutmaster.aggregate import (
    aggression_profile,
    average_score,
    build_raw_inputs,
    filter_by_timeframe,
    is_close_match,
    map_stats,
    player_tendencies,
    roster_stability,
    time_window,
    win_rate,
    win_rate_trend,
)
from scoutmaster.models import Aggression, Confidence, Match, Player, TeamResult, TrendDirection


def _match(
    mid: str,
    map_name: str,
    won: Optional[bool],
    day: int = 1,
    score: float = 13,
    opp_score: float = 7,
    players: Optional[List[str]] = None,
) -> Match:
    roster = [Player(id=p, name=p.upper(), team_id="t1") for p in players or []]
    return Match(
        id=mid,
        series_id=f"s-{mid}",
        start_time=f"2025-01-{day:02d}T12:00:00Z",
        map_name=map_name,
        teams=[
            TeamResult(team_id="t1", team_name="Sentinels", score=score, is_winner=won, players=roster),
            TeamResult(
                team_id="t2",
                team_name="Fnatic",
                score=opp_score,
                is_winner=None if won is None else not won,
            ),
        ],
    )


def test_win_rate_handles_empty_and_rounds_half_up() -> None:
    assert win_rate([], "t1") == 0
    matches = [_match("a", "Ascent", True), _match("b", "Bind", True), _match("c", "Haven", False)]
    assert win_rate(matches, "t1") == 67
    assert win_rate(matches, "t2") == 33


def test_team_lookup_is_by_id_or_exact_name() -> None:
    matches = [_match("a", "Ascent", True)]
    assert win_rate(matches, "sentinels") == 100
    assert win_rate(matches, "Sentinel") == 0


def test_map_stats_counts_and_order() -> None:
    matches = [
        _match("a", "Ascent", True),
        _match("b", "Bind", False),
        _match("c", "Bind", True),
        _match("d", "Bind", False),
    ]
    stats = map_stats(matches, "t1")
    assert [s.map_name for s in stats] == ["Bind", "Ascent"]
    assert sum(s.matches_played for s in stats) == 4
    assert stats[0].win_rate == 1 / 3
    assert map_stats(matches, "unknown-team") == []


def test_average_score_and_aggression() -> None:
    high = [_match("a", "Ascent", True, score=13), _match("b", "Bind", True, score=14)]
    low = [_match("c", "Ascent", False, score=4)]
    assert average_score(high, "t1") == 14
    assert aggression_profile(high, "t1") == Aggression.HIGH
    assert aggression_profile([_match("d", "Ascent", True, score=10)], "t1") == Aggression.MEDIUM
    assert aggression_profile(low, "t1") == Aggression.LOW
    assert average_score([], "t1") == 0


def test_win_rate_trend_needs_enough_matches() -> None:
    three = [_match(str(i), "Ascent", True, day=i) for i in range(1, 4)]
    assert win_rate_trend(three, "t1") is None
    four = [_match(str(i), "Ascent", True, day=i) for i in range(1, 5)]
    assert win_rate_trend(four, "t1", window=1) is None


def test_win_rate_trend_detects_upswing() -> None:
    matches = [_match(f"l{i}", "Ascent", False, day=i) for i in range(1, 6)]
    matches += [_match(f"w{i}", "Ascent", True, day=i) for i in range(6, 11)]
    trend = win_rate_trend(matches, "t1")
    assert trend is not None
    assert trend.direction == TrendDirection.UP
    assert trend.delta_pct_points == 100
    assert trend.recent_matches == 5
    assert trend.previous_matches == 5


def test_roster_stability_core_threshold() -> None:
    matches = [
        _match("a", "Ascent", True, day=1, players=["p1", "p2"]),
        _match("b", "Ascent", True, day=2, players=["p1", "p2"]),
        _match("c", "Ascent", True, day=3, players=["p1"]),
    ]
    stability = roster_stability(matches, "t1")
    assert stability is not None
    assert stability.matches_considered == 3
    assert [p.id for p in stability.core_players] == ["p1"]
    assert stability.unique_players_seen == 2
    assert stability.confidence == Confidence.MEDIUM


def test_roster_stability_without_rosters() -> None:
    assert roster_stability([_match("a", "Ascent", True)], "t1") is None


def test_close_match_margins() -> None:
    assert is_close_match(13, 11)
    assert not is_close_match(13, 10)
    assert is_close_match(2, 1)
    assert not is_close_match(3, 1)


def test_player_tendencies_with_clutch() -> None:
    matches = [
        _match("a", "Ascent", True, day=1, score=13, opp_score=11, players=["p1"]),
        _match("b", "Bind", True, day=2, score=13, opp_score=12, players=["p1"]),
        _match("c", "Bind", False, day=3, score=5, opp_score=13, players=["p1", "p2"]),
    ]
    tendencies = player_tendencies(matches, "t1")
    assert [t.player_id for t in tendencies] == ["p1", "p2"]
    p1 = tendencies[0]
    assert p1.matches_played == 3
    assert p1.win_rate == 2 / 3
    assert p1.map_performance[0].map_name == "Bind"
    assert p1.clutch is not None
    assert p1.clutch.close_matches_played == 2
    assert p1.clutch.rating == Confidence.MEDIUM
    assert tendencies[1].clutch is None
    assert p1.top_picks is None


def test_filter_by_timeframe_keeps_unparsable() -> None:
    now = datetime(2025, 1, 20, tzinfo=timezone.utc)
    old = _match("old", "Ascent", True, day=1)
    recent = _match("new", "Ascent", True, day=18)
    broken = Match(id="x", series_id="x", start_time="not-a-date", map_name="Bind", teams=[])
    kept = filter_by_timeframe([old, recent, broken], 7, now=now)
    assert [m.id for m in kept] == ["new", "x"]
    assert len(filter_by_timeframe([old, recent], None)) == 2


def test_filter_by_timeframe_tolerates_huge_or_non_finite_windows() -> None:
    now = datetime(2025, 1, 20, tzinfo=timezone.utc)
    matches = [_match("old", "Ascent", True, day=1), _match("new", "Bind", False, day=18)]
    for days in (10**6, float("nan"), float("inf")):
        kept = filter_by_timeframe(matches, days, now=now)
        assert [m.id for m in kept] == ["old", "new"]


def test_raw_inputs_truncates_newest_first() -> None:
    matches = [_match(str(i), "Ascent", i % 2 == 0, day=i) for i in range(1, 6)]
    raw = build_raw_inputs(matches, "t1", limit=3)
    assert raw.total_matches == 5
    assert raw.shown_matches == 3
    assert raw.truncated
    assert [r.match_id for r in raw.matches] == ["5", "4", "3"]
    assert raw.matches[0].opponent_name == "Fnatic"
    assert raw.matches[0].result == "L"
    assert raw.matches[1].result == "W"


def test_time_window_skips_bad_timestamps() -> None:
    matches = [
        _match("a", "Ascent", True, day=3),
        _match("b", "Ascent", True, day=1),
        Match(id="x", series_id="x", start_time="", map_name="Bind", teams=[]),
    ]
    assert time_window(matches) == ("2025-01-01T12:00:00Z", "2025-01-03T12:00:00Z")
    assert time_window([]) == ("", "")
