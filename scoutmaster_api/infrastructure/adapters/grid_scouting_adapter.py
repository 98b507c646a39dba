"""Adapters wrapping the scoutmaster package."""

from typing import Any, Dict, List, Optional

from scoutmaster.grid_client import GridGraphQLClient
from scoutmaster.report_pdf import render_pdf_bytes
from scoutmaster.service import ScoutingService, ScoutRequest

from ...application.ports.report_renderer import ReportRendererPort
from ...application.ports.scouting_service import ScoutingDataPort


class GridScoutingAdapter(ScoutingDataPort):
    """Adapter producing reports from GRID data, with demo fallback."""

    def __init__(self, client: Optional[GridGraphQLClient] = None):
        """Initialize with an optional client.

        Args:
            client: GRID client. If None, one is built from the environment.
        """
        self._service = ScoutingService(client)

    def search_teams(self, query: str, game: Optional[str] = None) -> List[Dict[str, str]]:
        return self._service.search_teams(query, game)

    def generate_report(self, request: ScoutRequest) -> Dict[str, Any]:
        return self._service.generate_report(request)

    def generate_report_by_id(
        self, team_id: str, limit: int, transparency: bool = True
    ) -> Dict[str, Any]:
        return self._service.generate_report_by_id(team_id, limit, transparency)


class PdfReportRendererAdapter(ReportRendererPort):
    """Adapter rendering reports with reportlab."""

    def render_pdf(self, report: Dict[str, Any]) -> bytes:
        return render_pdf_bytes(report)
