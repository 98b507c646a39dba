"""Application use cases."""

from .generate_report import (
    GenerateReportResult,
    GenerateReportUseCase,
    RenderPdfUseCase,
    SearchTeamsUseCase,
)

__all__ = [
    "GenerateReportResult",
    "GenerateReportUseCase",
    "RenderPdfUseCase",
    "SearchTeamsUseCase",
]
