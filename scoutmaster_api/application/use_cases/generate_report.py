"""Use cases for searching teams and generating scouting reports."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, List, Optional

from scoutmaster.errors import TeamNotFoundError
from scoutmaster.service import ScoutRequest

from ..ports.report_renderer import ReportRendererPort
from ..ports.scouting_service import ScoutingDataPort

logger = logging.getLogger(__name__)

# Thread pool for running blocking GRID I/O and report building
_executor = ThreadPoolExecutor(max_workers=4)


@dataclass
class GenerateReportResult:
    """Result of report generation."""

    success: bool
    report: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


def _not_found(exc: TeamNotFoundError) -> GenerateReportResult:
    return GenerateReportResult(
        success=False,
        error=str(exc),
        error_code="TEAM_NOT_FOUND",
        details={"which": exc.which, "query": exc.query, "suggestions": exc.suggestions},
    )


class GenerateReportUseCase:
    """Use case for generating scouting reports.

    The scouting port does the blocking work (GRID fetch, normalization,
    report building); it runs on a thread pool so the event loop stays free.
    """

    def __init__(self, scouting_service: ScoutingDataPort):
        self._scouting_service = scouting_service

    async def _run(self, func) -> GenerateReportResult:
        loop = asyncio.get_event_loop()
        try:
            report = await loop.run_in_executor(_executor, func)
        except TeamNotFoundError as exc:
            return _not_found(exc)
        except Exception as e:
            logger.exception("Report generation failed")
            return GenerateReportResult(
                success=False,
                error=str(e),
                error_code="INTERNAL_ERROR",
            )
        return GenerateReportResult(success=True, report=report)

    async def execute(self, request: ScoutRequest) -> GenerateReportResult:
        """Generate a report for a team name, in matchup mode when ``our_team_name`` is set."""
        return await self._run(partial(self._scouting_service.generate_report, request))

    async def execute_by_id(
        self, team_id: str, limit: int, transparency: bool = True
    ) -> GenerateReportResult:
        return await self._run(
            partial(
                self._scouting_service.generate_report_by_id,
                team_id,
                limit,
                transparency,
            )
        )


class SearchTeamsUseCase:
    def __init__(self, scouting_service: ScoutingDataPort):
        self._scouting_service = scouting_service

    async def execute(self, query: str, game: Optional[str] = None) -> List[Dict[str, str]]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            _executor, partial(self._scouting_service.search_teams, query, game)
        )


class RenderPdfUseCase:
    def __init__(self, renderer: ReportRendererPort):
        self._renderer = renderer

    async def execute(self, report: Dict[str, Any]) -> bytes:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, partial(self._renderer.render_pdf, report))
