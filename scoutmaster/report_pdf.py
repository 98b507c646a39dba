from __future__ import annotations

import argparse
import io
import json
import os
import tempfile
from typing import Any, BinaryIO, Dict, List, Optional, Union
from xml.sax.saxutils import escape

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from reportlab.lib import colors  # noqa: E402
from reportlab.lib.pagesizes import letter  # noqa: E402
from reportlab.lib.styles import getSampleStyleSheet  # noqa: E402
from reportlab.lib.units import inch  # noqa: E402
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle  # noqa: E402


def _load_report(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _save_plot(fig, path: str) -> str:
    fig.tight_layout()
    fig.savefig(path, dpi=160)
    plt.close(fig)
    return path


def _plot_map_win_rates(report: Dict[str, Any], out_path: str) -> Optional[str]:
    stats = report.get("map_stats") or []
    if not stats:
        return None
    top = stats[:10]
    labels = [s.get("map_name") for s in top]
    values = [float(s.get("win_rate") or 0.0) for s in top]
    played = [int(s.get("matches_played") or 0) for s in top]

    fig, ax = plt.subplots(figsize=(6.5, 3.5))
    bars = ax.barh(labels[::-1], values[::-1], color="#4a7ebb")
    for bar, n in zip(bars, played[::-1]):
        ax.text(bar.get_width() + 0.01, bar.get_y() + bar.get_height() / 2, f"n={n}", va="center", fontsize=7)
    ax.set_xlim(0, 1.1)
    ax.set_title("Opponent Win Rate by Map")
    ax.set_xlabel("Win rate")
    return _save_plot(fig, out_path)


def _table(rows: List[List[str]], col_widths: List[float]) -> Table:
    table = Table(rows, colWidths=[w * inch for w in col_widths])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("FONT", (0, 0), (-1, -1), "Helvetica", 8),
            ]
        )
    )
    return table


def _map_table(report: Dict[str, Any]) -> Table:
    rows = [["Map", "Played", "Win rate"]]
    for s in report.get("map_stats") or []:
        rows.append(
            [str(s.get("map_name")), str(s.get("matches_played", 0)), f"{float(s.get('win_rate') or 0):.0%}"]
        )
    if len(rows) == 1:
        rows.append(["-", "-", "-"])
    return _table(rows, [3.0, 1.0, 1.0])


def _candidate_table(engine: Dict[str, Any]) -> Table:
    rows = [["Status", "Impact", "Recommendation"]]
    for c in engine.get("candidates") or []:
        rows.append(
            [
                str(c.get("status")),
                str((c.get("breakdown") or {}).get("impact", 0)),
                Paragraph(escape(c.get("insight") or ""), getSampleStyleSheet()["BodyText"]),
            ]
        )
    return _table(rows, [1.8, 0.7, 4.0])


def _story(report: Dict[str, Any], tmp: str) -> List[Any]:
    styles = getSampleStyleSheet()
    story: List[Any] = []
    evidence = report.get("evidence") or {}

    story.append(Paragraph("Scouting Report", styles["Title"]))
    title = escape(str(report.get("opponent_name") or ""))
    if report.get("our_team_name"):
        title = f"{escape(str(report['our_team_name']))} vs {title}"
    story.append(Paragraph(title, styles["Heading2"]))
    if report.get("is_mock"):
        story.append(
            Paragraph(
                f"<b>Demo data:</b> {escape(str(report.get('mock_reason') or 'live data unavailable'))}",
                styles["BodyText"],
            )
        )
    story.append(Spacer(1, 0.2 * inch))

    story.append(Paragraph("Snapshot", styles["Heading3"]))
    story.append(
        Paragraph(
            f"Win probability: <b>{report.get('win_probability', 50)}%</b> "
            f"• Matches analyzed: <b>{report.get('matches_analyzed', 0)}</b> "
            f"• Aggression: <b>{report.get('aggression')}</b> "
            f"(avg score {report.get('average_score', 0)})",
            styles["BodyText"],
        )
    )
    story.append(
        Paragraph(
            f"Window: {escape(evidence.get('start_time') or '?')} to "
            f"{escape(evidence.get('end_time') or '?')} • "
            f"Confidence: {evidence.get('win_rate_confidence', 'Low')}",
            styles["BodyText"],
        )
    )
    story.append(Spacer(1, 0.15 * inch))

    story.append(Paragraph("Key Insights", styles["Heading3"]))
    for insight in report.get("key_insights") or []:
        story.append(Paragraph(f"• {escape(insight)}", styles["BodyText"]))
    story.append(Spacer(1, 0.15 * inch))

    story.append(Paragraph("How to Win", styles["Heading3"]))
    for idx, tip in enumerate(report.get("how_to_win") or [], start=1):
        story.append(
            Paragraph(
                f"<b>{idx}. {escape(tip.get('insight') or '')}</b><br/>{escape(tip.get('evidence') or '')}",
                styles["BodyText"],
            )
        )
    story.append(Spacer(1, 0.2 * inch))

    story.append(Paragraph("Map Pool", styles["Heading3"]))
    story.append(_map_table(report))
    story.append(Spacer(1, 0.2 * inch))

    roster = report.get("roster") or []
    if roster:
        names = ", ".join(escape(p.get("name") or p.get("id") or "") for p in roster)
        story.append(Paragraph("Roster", styles["Heading3"]))
        story.append(Paragraph(names, styles["BodyText"]))
        story.append(Spacer(1, 0.2 * inch))

    img = _plot_map_win_rates(report, os.path.join(tmp, "maps.png"))
    if img and os.path.exists(img):
        story.append(Paragraph("Win rate per map; bar labels give the sample size.", styles["BodyText"]))
        story.append(Image(img, width=6.5 * inch, height=3.5 * inch))
        story.append(Spacer(1, 0.2 * inch))

    engine = report.get("how_to_win_engine")
    if engine and engine.get("candidates"):
        story.append(Paragraph("Candidate Ranking", styles["Heading3"]))
        story.append(Paragraph(escape(engine.get("formula") or ""), styles["BodyText"]))
        story.append(_candidate_table(engine))
    return story


def build_pdf(report: Dict[str, Any], output: Union[str, BinaryIO]) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        doc = SimpleDocTemplate(output, pagesize=letter)
        doc.build(_story(report, tmp))


def render_pdf_bytes(report: Dict[str, Any]) -> bytes:
    buf = io.BytesIO()
    build_pdf(report, buf)
    return buf.getvalue()


def main() -> None:
    parser = argparse.ArgumentParser(description="Render scouting report JSON to PDF.")
    parser.add_argument("--input", required=True, help="Path to report.json")
    parser.add_argument("--output", required=True, help="Path to output PDF")
    args = parser.parse_args()
    build_pdf(_load_report(args.input), args.output)


if __name__ == "__main__":
    main()
