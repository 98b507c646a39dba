import json
from typing import List

from scoutmaster.models import Match, Player, TeamResult
from scoutmaster.report import (
    build_demo_report,
    build_evidence,
    build_matchup_report,
    build_scouting_report,
    matchup_win_probability,
    win_probability,
)


def _match(
    mid: str,
    team_id: str,
    map_name: str,
    won: bool,
    day: int = 1,
    series_id: str = "",
    name: str = "",
) -> Match:
    return Match(
        id=mid,
        series_id=series_id or f"s-{mid}",
        start_time=f"2025-01-{day:02d}T20:00:00Z",
        map_name=map_name,
        teams=[
            TeamResult(
                team_id=team_id,
                team_name=name or team_id.title(),
                score=13 if won else 9,
                is_winner=won,
                players=[Player(id=f"{team_id}-p1", name="Aspas", team_id=team_id)],
            ),
            TeamResult(team_id="x", team_name="Rival", score=9 if won else 13, is_winner=not won),
        ],
    )


def _history(team_id: str, results: List[bool], name: str = "") -> List[Match]:
    return [
        _match(f"{team_id}{i}", team_id, "Ascent" if i % 2 else "Bind", won, day=i + 1, name=name)
        for i, won in enumerate(results)
    ]


def test_win_probability_shrinks_toward_even() -> None:
    assert win_probability([], "t") == 50
    matches = _history("t", [True, True, False])
    assert win_probability(matches, "t") == 43


def test_matchup_win_probability_is_clamped() -> None:
    ours = _history("us", [True] * 4)
    theirs = _history("them", [False] * 4)
    assert matchup_win_probability(ours, "us", theirs, "them") == 95
    assert matchup_win_probability([], "us", theirs, "them") == 50


def test_evidence_dedupes_series_newest_first() -> None:
    matches = [
        _match("g1", "t", "Ascent", True, day=1, series_id="s1"),
        _match("g2", "t", "Bind", True, day=1, series_id="s1"),
        _match("g3", "t", "Bind", False, day=4, series_id="s2"),
    ]
    evidence = build_evidence(matches, "t")
    assert evidence["series_ids"] == ["s2", "s1"]
    assert evidence["matches_analyzed"] == 3
    assert evidence["maps_played"] == 2
    assert evidence["start_time"] == "2025-01-01T20:00:00Z"
    assert evidence["win_rate_trend"] is None


def test_report_uses_name_from_matches() -> None:
    matches = _history("t1", [True, False, True], name="MIBR")
    report = build_scouting_report(matches, "t1", "mibr-typed-by-user")
    assert report["opponent_name"] == "MIBR"
    assert report["matches_analyzed"] == 3
    assert report["is_mock"] is False
    assert "how_to_win_engine" in report
    assert report["roster"][0]["name"] == "Aspas"
    assert report["key_insights"][0].startswith("MIBR won 67%")
    json.dumps(report)


def test_report_without_matches() -> None:
    report = build_scouting_report([], "t1", "Paper Rex", include_transparency=False)
    assert report["opponent_name"] == "Paper Rex"
    assert report["key_insights"] == ["No recent matches found for Paper Rex."]
    assert report["how_to_win"] == [{"insight": "Gather more data", "evidence": "0 matches found"}]
    assert report["win_probability"] == 50
    assert report["roster_stability"] is None
    assert report["player_tendencies"] is None
    assert report["draft_stats"] is None
    assert report["composition_stats"] is None
    assert "how_to_win_engine" not in report


def test_engine_statuses_are_plain_strings() -> None:
    report = build_scouting_report(_history("t1", [False, False]), "t1", "T1")
    statuses = {c["status"] for c in report["how_to_win_engine"]["candidates"]}
    assert all(isinstance(s, str) for s in statuses)
    assert report["aggression"] in ("High", "Medium", "Low")


def test_matchup_report_shape() -> None:
    ours = _history("us", [True, True, True, False])
    theirs = _history("them", [False, False, True, False])
    report = build_matchup_report(ours, "us", "Us", theirs, "them", "Them")

    assert "how_to_win_engine" not in report
    assert report["our_team_name"] == "Us"
    matchup = report["matchup"]
    assert matchup["our"]["win_rate"] == 75
    assert matchup["opponent"]["win_rate"] == 25
    assert matchup["how_to_win_transparency"]["kind"] == "MatchupHeuristics"
    assert matchup["how_to_win_transparency"]["based_on"] == {
        "our_matches_analyzed": 4,
        "opponent_matches_analyzed": 4,
    }
    assert matchup["opponent_how_to_win_engine"]["candidates"]
    assert [r["map_name"] for r in matchup["deltas"]["map_pool"]] == ["Bind", "Ascent"]
    assert report["win_probability"] == 75
    assert report["how_to_win"][0]["insight"]
    json.dumps(report)


def test_demo_report_is_flagged() -> None:
    report = build_demo_report("Cloud9", reason="Live data unavailable: timeout")
    assert report["is_mock"] is True
    assert report["mock_reason"] == "Live data unavailable: timeout"
    assert report["opponent_name"] == "Cloud9"
    assert report["matches_analyzed"] == 8
    assert report["evidence"]["win_rate_confidence"] == "High"
    assert build_demo_report("Cloud9", "x") == build_demo_report("Cloud9", "x")
