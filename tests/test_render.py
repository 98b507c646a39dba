import json
from pathlib import Path

import pytest
import requests

from scoutmaster import cli
from scoutmaster.cli import main
from scoutmaster.grid_ingest import RawTeamData, save_raw
from scoutmaster.render import render_text
from scoutmaster.report import build_demo_report, build_scouting_report
from scoutmaster.report_pdf import render_pdf_bytes

FIXTURE = Path(__file__).parent / "fixtures" / "series_state_sample.json"


def test_render_text_demo_report() -> None:
    text = render_text(build_demo_report("Cloud9", reason="no key"))
    assert text.startswith("SCOUTING REPORT")
    assert "Opponent: Cloud9" in text
    assert "DEMO DATA: no key" in text
    assert "How to Win" in text
    assert "1. " in text
    assert "Candidates (impact = weaknessSeverity" in text


def test_render_text_empty_report() -> None:
    text = render_text(build_scouting_report([], "t", "Nobody", include_transparency=False))
    assert "Matches: 0" in text
    assert "Gather more data" in text
    assert "Candidates" not in text


def test_pdf_bytes() -> None:
    pdf = render_pdf_bytes(build_demo_report("Team <Heretics>", reason="offline"))
    assert pdf.startswith(b"%PDF")


def test_cli_from_raw_text_output(tmp_path: Path) -> None:
    state = json.loads(FIXTURE.read_text(encoding="utf-8"))["seriesState"]
    raw_path = tmp_path / "raw.json"
    save_raw(raw_path, RawTeamData("t1", "Sentinels", [state]))
    out = tmp_path / "report.txt"
    normalized = tmp_path / "normalized.json"

    main(
        [
            "--from-raw",
            str(raw_path),
            "--output-format",
            "text",
            "--output",
            str(out),
            "--save-normalized",
            str(normalized),
            "--no-transparency",
        ]
    )

    text = out.read_text(encoding="utf-8")
    assert "Opponent: Sentinels" in text
    assert "Candidates" not in text
    assert "- Jett, Sova (AGENT): 1x, 100% won" in text
    assert len(json.loads(normalized.read_text(encoding="utf-8"))) == 3


def test_cli_json_output(tmp_path: Path, capsys) -> None:
    state = json.loads(FIXTURE.read_text(encoding="utf-8"))["seriesState"]
    raw_path = tmp_path / "raw.json"
    save_raw(raw_path, RawTeamData("t1", "Sentinels", [state]), RawTeamData("t2", "LOUD", [state]))

    main(["--from-raw", str(raw_path)])

    report = json.loads(capsys.readouterr().out)
    assert report["opponent_name"] == "Sentinels"
    assert report["our_team_name"] == "LOUD"


@pytest.mark.parametrize(
    "error",
    [RuntimeError("All GRID endpoints failed."), requests.ConnectionError("connection refused")],
)
def test_cli_upstream_failure_exits_cleanly(monkeypatch, error: Exception) -> None:
    def _fail(self, request):
        raise error

    monkeypatch.setenv("GRID_API_KEY", "secret")
    monkeypatch.setattr(cli.ScoutingService, "fetch", _fail)
    with pytest.raises(SystemExit) as exc_info:
        main(["--team", "Cloud9"])
    assert str(exc_info.value) == f"Could not fetch GRID data: {error}"
