"""REST API routes for team search and scouting reports."""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field, field_validator

from scoutmaster.config import DEFAULT_MATCH_LIMIT, MAX_MATCH_LIMIT
from scoutmaster.service import ScoutRequest

from ..transformers.report_transformer import transform_report_to_frontend
from ...application.ports.report_renderer import ReportRendererPort
from ...application.ports.scouting_service import ScoutingDataPort
from ...application.use_cases.generate_report import (
    GenerateReportResult,
    GenerateReportUseCase,
    RenderPdfUseCase,
    SearchTeamsUseCase,
)
from ...infrastructure.adapters.grid_scouting_adapter import (
    GridScoutingAdapter,
    PdfReportRendererAdapter,
)

router = APIRouter(prefix="/api", tags=["scouting"])

TEAM_NAME_MIN = 2
TEAM_NAME_MAX = 80
_TEAM_NAME_RE = re.compile(r"^[\w .'\-]+$")
_GAMES = ("lol", "valorant")

# curated examples for the guided demo, Cloud9 first
DEMO_TEAMS: Dict[str, List[Dict[str, str]]] = {
    "valorant": [
        {"id": "valorant:cloud9", "name": "Cloud9"},
        {"id": "valorant:sentinels", "name": "Sentinels"},
        {"id": "valorant:g2-esports", "name": "G2 Esports"},
        {"id": "valorant:evil-geniuses", "name": "Evil Geniuses"},
        {"id": "valorant:edward-gaming", "name": "EDward Gaming"},
        {"id": "valorant:team-heretics", "name": "Team Heretics"},
    ],
    "lol": [
        {"id": "lol:cloud9-kia", "name": "Cloud9 Kia"},
        {"id": "lol:fnatic", "name": "Fnatic"},
        {"id": "lol:g2-esports", "name": "G2 Esports"},
        {"id": "lol:t1", "name": "T1"},
        {"id": "lol:geng-esports", "name": "Gen.G Esports"},
    ],
}


def get_scouting_port() -> ScoutingDataPort:
    return GridScoutingAdapter()


def get_report_renderer() -> ReportRendererPort:
    return PdfReportRendererAdapter()


def clean_team_name(value: Optional[str]) -> Optional[str]:
    """Return the stripped name, or None when it is not an acceptable team name."""
    if value is None:
        return None
    name = value.strip()
    if not TEAM_NAME_MIN <= len(name) <= TEAM_NAME_MAX:
        return None
    if not _TEAM_NAME_RE.match(name):
        return None
    return name


def _require_team_name(value: str) -> str:
    name = clean_team_name(value)
    if name is None:
        raise ValueError(
            f"team name must be {TEAM_NAME_MIN}-{TEAM_NAME_MAX} characters of "
            "letters, digits, spaces or ._-'"
        )
    return name


def clean_game(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    game = value.strip().lower()
    return game if game in _GAMES else None


def _error(
    status_code: int, code: str, message: str, details: Optional[dict] = None
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
    )


def _raise_for_result(result: GenerateReportResult) -> Dict[str, Any]:
    if result.success and result.report is not None:
        return result.report
    if result.error_code == "TEAM_NOT_FOUND":
        raise _error(404, "TEAM_NOT_FOUND", result.error or "Team not found", result.details)
    raise _error(
        500,
        "INTERNAL_ERROR",
        f"Error generating report: {result.error}",
    )


class ScoutBody(BaseModel):
    """Request body for a scouting report."""

    team_name: str = Field(..., alias="teamName", description="Opponent team to scout")
    our_team_name: Optional[str] = Field(
        default=None,
        alias="ourTeamName",
        description="Your team; switches the report to matchup mode",
    )
    limit: int = Field(default=DEFAULT_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT)
    timeframe_days: Optional[int] = Field(default=None, alias="timeframeDays", ge=1, le=365)
    game: Optional[str] = Field(default=None, description="lol or valorant")
    transparency: bool = True

    class Config:
        populate_by_name = True

    @field_validator("team_name")
    @classmethod
    def _check_team_name(cls, v: str) -> str:
        return _require_team_name(v)

    @field_validator("our_team_name")
    @classmethod
    def _check_our_team_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return _require_team_name(v)

    @field_validator("game", mode="before")
    @classmethod
    def _check_game(cls, v: Any) -> Optional[str]:
        return clean_game(v) if isinstance(v, str) else None

    def to_request(self) -> ScoutRequest:
        return ScoutRequest(
            team_name=self.team_name,
            our_team_name=self.our_team_name,
            limit=self.limit,
            timeframe_days=self.timeframe_days,
            game=self.game,
            transparency=self.transparency,
        )


@router.get("/teams/search")
async def search_teams(
    q: str = Query("", description="Team name fragment"),
    game: Optional[str] = Query(None, description="lol or valorant"),
    port: ScoutingDataPort = Depends(get_scouting_port),
) -> List[Dict[str, str]]:
    """Search GRID teams by name.

    Queries shorter than two or longer than eighty characters return an
    empty list rather than an error, so the frontend can search as the user
    types.
    """
    query = q.strip()
    if not TEAM_NAME_MIN <= len(query) <= TEAM_NAME_MAX:
        return []
    return await SearchTeamsUseCase(port).execute(query, clean_game(game))


@router.get("/demo-teams")
async def demo_teams(
    game: Optional[str] = Query(None, description="lol or valorant"),
) -> Dict[str, Any]:
    """Example teams for the guided demo; every title when ``game`` is absent or unknown."""
    title = clean_game(game)
    games = [title] if title else ["valorant", "lol"]
    teams = [dict(t) for g in games for t in DEMO_TEAMS[g]]
    return {"game": title, "teams": teams}


@router.post("/scout")
async def scout(
    body: ScoutBody,
    port: ScoutingDataPort = Depends(get_scouting_port),
):
    """Generate a scouting report.

    With ``ourTeamName`` the report carries a ``matchup`` section comparing
    both teams and its How to Win list comes from the matchup heuristics.

    Returns:
        Report with camelCase keys
    """
    result = await GenerateReportUseCase(port).execute(body.to_request())
    return transform_report_to_frontend(_raise_for_result(result))


@router.get("/scout/{team_id}")
async def scout_by_id(
    team_id: str,
    limit: int = Query(DEFAULT_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT),
    transparency: bool = Query(True),
    port: ScoutingDataPort = Depends(get_scouting_port),
):
    """Generate a single-team report for a GRID team id."""
    result = await GenerateReportUseCase(port).execute_by_id(team_id, limit, transparency)
    return transform_report_to_frontend(_raise_for_result(result))


@router.get("/scout/name/{team_name}/pdf")
async def scout_pdf(
    team_name: str,
    limit: int = Query(DEFAULT_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT),
    port: ScoutingDataPort = Depends(get_scouting_port),
    renderer: ReportRendererPort = Depends(get_report_renderer),
):
    """Download a scouting report as a PDF."""
    name = clean_team_name(team_name)
    if name is None:
        raise _error(
            400,
            "INVALID_REQUEST",
            "Invalid team name",
            {"teamName": team_name},
        )

    result = await GenerateReportUseCase(port).execute(ScoutRequest(team_name=name, limit=limit))
    report = _raise_for_result(result)
    pdf = await RenderPdfUseCase(renderer).execute(report)

    filename = "scouting-report-" + re.sub(r"\s+", "-", name) + ".pdf"
    ascii_name = filename.encode("ascii", "ignore").decode("ascii")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": (
                f"attachment; filename=\"{ascii_name}\"; "
                f"filename*=UTF-8''{quote(filename)}"
            )
        },
    )
