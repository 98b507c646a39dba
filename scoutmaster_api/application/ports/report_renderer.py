"""Port (interface) for rendering reports into documents."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class ReportRendererPort(ABC):
    """Port for turning a report dictionary into a downloadable document."""

    @abstractmethod
    def render_pdf(self, report: Dict[str, Any]) -> bytes:
        """Render the internal (snake_case) report as PDF bytes."""
        ...
