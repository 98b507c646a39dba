"""Port (interface) for scouting data and report generation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from scoutmaster.service import ScoutRequest


class ScoutingDataPort(ABC):
    """Port for searching teams and producing scouting reports."""

    @abstractmethod
    def search_teams(self, query: str, game: Optional[str] = None) -> List[Dict[str, str]]:
        """Search teams by (partial) name.

        Args:
            query: Name fragment, already validated
            game: Optional game filter ("lol" or "valorant")

        Returns:
            List of {"id", "name"} dicts
        """
        ...

    @abstractmethod
    def generate_report(self, request: ScoutRequest) -> Dict[str, Any]:
        """Generate a single-team or matchup report by team name.

        Raises:
            TeamNotFoundError: When a team name cannot be resolved
        """
        ...

    @abstractmethod
    def generate_report_by_id(
        self, team_id: str, limit: int, transparency: bool = True
    ) -> Dict[str, Any]:
        """Generate a single-team report for a GRID team id."""
        ...
