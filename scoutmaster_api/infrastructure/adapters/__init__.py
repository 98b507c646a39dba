"""Infrastructure adapters."""

from .grid_scouting_adapter import GridScoutingAdapter, PdfReportRendererAdapter

__all__ = [
    "GridScoutingAdapter",
    "PdfReportRendererAdapter",
]
