import json
from pathlib import Path
from typing import Any, Dict

from scoutmaster.normalize import (
    normalize_composition_stats,
    normalize_draft_stats,
    normalize_map_plans,
    normalize_player_draft_picks,
    normalize_series_state,
    normalize_series_states,
)

FIXTURE = Path(__file__).parent / "fixtures" / "series_state_sample.json"


def _state() -> Dict[str, Any]:
    return json.loads(FIXTURE.read_text(encoding="utf-8"))["seriesState"]


def test_normalize_emits_one_match_per_game() -> None:
    matches = normalize_series_state(_state())
    assert [m.id for m in matches] == ["g1", "g2", "2819663-3"]
    assert [m.map_name for m in matches] == ["Ascent", "Bind", "Ascent"]
    assert all(m.series_id == "2819663" for m in matches)
    assert all(m.start_time == "2025-01-05T17:00:00Z" for m in matches)

    first = matches[0]
    sentinels = first.teams[0]
    assert sentinels.team_id == "t1"
    assert sentinels.is_winner is True
    assert sentinels.score == 13
    assert [p.name for p in sentinels.players] == ["TenZ", "Zekken"]
    assert matches[1].teams[0].is_winner is False


def test_series_without_games_is_one_match() -> None:
    state = _state()
    state.pop("games")
    matches = normalize_series_state(state)
    assert len(matches) == 1
    assert matches[0].id == "2819663"
    assert matches[0].map_name == "Unknown"


def test_partial_payloads_do_not_raise() -> None:
    assert normalize_series_state({"id": "x"}) == []
    matches = normalize_series_states([{}, {"id": "y", "games": [{"teams": [{"id": "a"}]}]}])
    assert len(matches) == 1
    assert matches[0].id == "y-1"
    assert matches[0].map_name == "Unknown"
    assert matches[0].teams[0].score is None
    assert matches[0].teams[0].is_winner is None


def test_draft_stats_only_count_own_actions() -> None:
    stats = normalize_draft_stats([_state()], "t1")
    by_name = {s.hero_or_map_name: s for s in stats}
    assert set(by_name) == {"Haven", "Ascent", "Jett", "Sova"}
    assert by_name["Haven"].ban_count == 1
    assert by_name["Haven"].pick_count == 0
    assert by_name["Haven"].win_rate == 0.0
    assert by_name["Jett"].pick_count == 1
    assert by_name["Jett"].win_rate == 1.0

    loud = {s.hero_or_map_name for s in normalize_draft_stats([_state()], "t2")}
    assert loud == {"Viper", "Omen"}


def test_player_draft_picks_keyed_by_player() -> None:
    picks = normalize_player_draft_picks([_state(), _state()], "t1")
    assert set(picks) == {"p1", "p2"}
    jett = picks["p1"][0]
    assert jett.name == "Jett"
    assert jett.type == "AGENT"
    assert jett.pick_count == 2
    assert jett.win_rate == 1.0


def test_composition_stats_skip_map_picks() -> None:
    comps = normalize_composition_stats([_state()], "t1")
    assert len(comps) == 1
    assert comps[0].kind == "AGENT"
    assert comps[0].members == ["Jett", "Sova"]
    assert comps[0].pick_count == 1


def test_map_plans() -> None:
    plans = normalize_map_plans([_state()], "t1")
    assert [p.map_name for p in plans] == ["Ascent", "Bind", "Haven"]

    ascent, bind, haven = plans
    assert ascent.matches_played == 2
    assert ascent.win_rate == 1.0
    assert ascent.map_pick_count == 1
    assert ascent.map_ban_count == 0
    assert ascent.common_compositions is not None
    assert ascent.common_compositions[0].pick_count == 2
    assert ascent.site_tendencies_available is False

    assert bind.win_rate == 0.0
    assert bind.common_compositions is not None
    assert bind.common_compositions[0].win_rate == 0.0

    assert haven.matches_played == 0
    assert haven.map_ban_count == 1
    assert haven.common_compositions is None


def test_map_plans_without_map_actions() -> None:
    state = _state()
    state["draftActions"] = [
        a for a in state["draftActions"] if a["draftable"]["type"] != "MAP"
    ]
    plans = normalize_map_plans([state], "t1")
    assert all(p.map_pick_count is None and p.map_ban_count is None for p in plans)
