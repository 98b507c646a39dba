"""Opponent scouting statistics and "How to Win" recommendations."""

__all__ = [
    "config",
    "models",
    "errors",
    "aggregate",
    "how_to_win",
    "matchup",
    "grid_client",
    "grid_queries",
    "grid_ingest",
    "normalize",
    "report",
    "service",
    "render",
    "report_pdf",
]
