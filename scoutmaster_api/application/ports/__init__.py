"""Application ports (interfaces)."""

from .report_renderer import ReportRendererPort
from .scouting_service import ScoutingDataPort

__all__ = [
    "ReportRendererPort",
    "ScoutingDataPort",
]
