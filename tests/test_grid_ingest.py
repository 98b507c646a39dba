import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from scoutmaster.config import CacheConfig
from scoutmaster.errors import GridRateLimitError, TeamNotFoundError
from scoutmaster.grid_client import GridGraphQLClient
from scoutmaster.grid_ingest import (
    RawTeamData,
    fetch_team_data,
    find_teams_by_name,
    load_raw,
    normalize_game,
    resolve_team,
    save_raw,
    search_teams,
    suggest_team_names,
)

FIXTURE = Path(__file__).parent / "fixtures" / "series_state_sample.json"


class _StubClient:
    """Answers GRID queries from canned data, dispatching on the query text."""

    def __init__(
        self,
        teams: List[Dict[str, Any]],
        series: Optional[List[Dict[str, Any]]] = None,
        states: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.teams = teams
        self.series = series or []
        self.states = states or {}
        self.calls: List[str] = []

    def query(self, url: str, gql: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        variables = variables or {}
        if "seriesState" in gql:
            self.calls.append("seriesState")
            state = self.states.get(variables["id"])
            if isinstance(state, Exception):
                raise state
            return {"seriesState": state}
        if "allSeries" in gql:
            self.calls.append("allSeries")
            return {"allSeries": {"edges": [{"node": s} for s in self.series]}}
        self.calls.append("teams")
        return {"teams": {"edges": [{"node": t} for t in self.teams]}}


_TEAMS = [
    {"id": "1", "name": "Cloud9", "title": {"name": "League of Legends"}},
    {"id": "2", "name": "Cloud9 Blue", "titles": [{"name": "VALORANT Champions Tour"}]},
    {"id": "3", "name": "Cloud9 White", "title": {"name": "VCT EMEA"}},
]


def test_normalize_game() -> None:
    assert normalize_game("lol") == "LOL"
    assert normalize_game(" Valorant ") == "VALORANT"
    assert normalize_game("dota") is None
    assert normalize_game(None) is None


def test_game_filter_matches_title_variants() -> None:
    client = _StubClient(_TEAMS)
    valorant = find_teams_by_name(client, "Cloud9", game="valorant")
    assert [t["id"] for t in valorant] == ["2", "3"]
    lol = find_teams_by_name(client, "Cloud9", game="lol")
    assert [t["id"] for t in lol] == ["1"]


def test_game_filter_falls_back_when_it_removes_everything() -> None:
    client = _StubClient([{"id": "9", "name": "Fnatic"}])
    assert [t["id"] for t in find_teams_by_name(client, "Fnatic", game="valorant")] == ["9"]


def test_search_teams_shape() -> None:
    client = _StubClient(_TEAMS + [{"id": None, "name": "Ghost"}])
    results = search_teams(client, "  Cloud9 ")
    assert results[0] == {"id": "1", "name": "Cloud9"}
    assert len(results) == 3


def test_resolve_prefers_exact_name() -> None:
    client = _StubClient(_TEAMS)
    assert resolve_team(client, "cloud9") == ("1", "Cloud9")


def test_resolve_accepts_single_candidate() -> None:
    client = _StubClient([{"id": "7", "name": "Team Liquid Honda"}])
    assert resolve_team(client, "Liquid") == ("7", "Team Liquid Honda")


def test_resolve_ambiguous_raises_with_suggestions() -> None:
    client = _StubClient(_TEAMS[1:])
    with pytest.raises(TeamNotFoundError) as excinfo:
        resolve_team(client, "Cloud", which="our")
    err = excinfo.value
    assert err.which == "our"
    assert err.query == "Cloud"
    assert set(err.suggestions) == {"Cloud9 Blue", "Cloud9 White"}
    assert "Your team not found" in str(err)


def test_resolve_nothing_found() -> None:
    with pytest.raises(TeamNotFoundError) as excinfo:
        resolve_team(_StubClient([]), "Nobody")
    assert excinfo.value.suggestions == []


def test_suggest_team_names_ranks_closest_first() -> None:
    names = ["Fnatic", "FNATIC Rising", "G2 Esports", "Fnatic"]
    assert suggest_team_names("fnatik", names, limit=2)[0] == "Fnatic"


def test_fetch_team_data_skips_failed_series() -> None:
    state = json.loads(FIXTURE.read_text(encoding="utf-8"))["seriesState"]
    state.pop("startedAt")
    client = _StubClient(
        [{"id": "t1", "name": "Sentinels"}],
        series=[
            {"id": "2819663", "startTimeScheduled": "2025-01-05T16:00:00Z"},
            {"id": "broken"},
        ],
        states={"2819663": state, "broken": RuntimeError("boom")},
    )
    raw = fetch_team_data(client, "Sentinels", limit=5)
    assert raw.team_id == "t1"
    assert raw.team_name == "Sentinels"
    assert len(raw.series_states) == 1
    assert raw.series_states[0]["startedAt"] == "2025-01-05T16:00:00Z"


def test_rate_limit_is_not_swallowed() -> None:
    client = _StubClient(
        [{"id": "t1", "name": "Sentinels"}],
        series=[{"id": "s1"}],
        states={"s1": GridRateLimitError("slow down", retry_after_s=2)},
    )
    with pytest.raises(GridRateLimitError):
        fetch_team_data(client, "Sentinels", limit=5)


def test_save_and_load_raw(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "raw.json"
    opponent = RawTeamData("t1", "Sentinels", [{"id": "s1"}])
    save_raw(path, opponent)
    loaded, our = load_raw(path)
    assert loaded == opponent
    assert our is None

    save_raw(path, opponent, RawTeamData("t2", "LOUD"))
    _, our = load_raw(path)
    assert our is not None
    assert our.team_name == "LOUD"


def test_client_requires_api_key(tmp_path: Path) -> None:
    client = GridGraphQLClient("", cache=CacheConfig(enabled=False, base_dir=tmp_path))
    with pytest.raises(RuntimeError):
        client.query("https://example.invalid/graphql", "query { x }")
