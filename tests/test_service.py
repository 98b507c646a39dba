import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from scoutmaster.errors import TeamNotFoundError
from scoutmaster.grid_ingest import RawTeamData
from scoutmaster.service import ScoutingService, ScoutRequest, report_from_raw

FIXTURE = Path(__file__).parent / "fixtures" / "series_state_sample.json"


def _raw(team_id: str = "t1", name: str = "Sentinels") -> RawTeamData:
    state = json.loads(FIXTURE.read_text(encoding="utf-8"))["seriesState"]
    return RawTeamData(team_id=team_id, team_name=name, series_states=[state])


class _DownClient:
    def query(self, url: str, gql: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        raise RuntimeError("GRID unreachable")


class _EmptyClient:
    def query(self, url: str, gql: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {"teams": {"edges": []}}


def test_report_from_raw_single_team() -> None:
    report = report_from_raw(_raw())
    assert report["opponent_name"] == "Sentinels"
    assert report["matches_analyzed"] == 3
    assert [p["map_name"] for p in report["map_plans"]] == ["Ascent", "Bind", "Haven"]
    assert report["draft_stats"]
    assert report["composition_stats"] == [
        {"kind": "AGENT", "members": ["Jett", "Sova"], "pick_count": 1, "win_rate": 1.0}
    ]
    tenz = next(p for p in report["player_tendencies"] if p["player_id"] == "p1")
    assert tenz["top_picks"][0]["name"] == "Jett"


def test_report_from_raw_matchup() -> None:
    report = report_from_raw(_raw("t1", "Sentinels"), our=_raw("t2", "LOUD"))
    assert report["our_team_name"] == "LOUD"
    assert report["matchup"]["our"]["matches_analyzed"] == 3


def test_timeframe_drops_old_series() -> None:
    report = report_from_raw(_raw(), timeframe_days=1)
    assert report["matches_analyzed"] == 0
    assert report["map_plans"] == []
    assert report["draft_stats"] is None
    assert report["composition_stats"] is None


def test_generate_report_falls_back_to_demo() -> None:
    service = ScoutingService(client=_DownClient())
    report = service.generate_report(ScoutRequest(team_name="Sentinels", transparency=False))
    assert report["is_mock"] is True
    assert "GRID unreachable" in report["mock_reason"]
    assert "how_to_win_engine" not in report


def test_generate_report_by_id_falls_back_to_demo() -> None:
    report = ScoutingService(client=_DownClient()).generate_report_by_id("123", limit=5)
    assert report["is_mock"] is True
    assert report["opponent_name"] == "123"


def test_team_not_found_propagates() -> None:
    service = ScoutingService(client=_EmptyClient())
    with pytest.raises(TeamNotFoundError):
        service.generate_report(ScoutRequest(team_name="Nobody"))
