from __future__ import annotations

from typing import Any, Dict, List


def _pct(rate: Any) -> str:
    return f"{float(rate or 0):.0%}"


def render_text(report: Dict[str, Any]) -> str:
    evidence = report.get("evidence") or {}
    lines: List[str] = []

    lines.append("SCOUTING REPORT")
    if report.get("our_team_name"):
        lines.append(f"Opponent: {report.get('opponent_name')} | Us: {report.get('our_team_name')}")
    else:
        lines.append(f"Opponent: {report.get('opponent_name')}")
    if report.get("is_mock"):
        lines.append(f"DEMO DATA: {report.get('mock_reason') or 'live data unavailable'}")
    lines.append(
        f"Window: {evidence.get('start_time') or '?'} -> {evidence.get('end_time') or '?'} | "
        f"Matches: {report.get('matches_analyzed', 0)} | "
        f"Confidence: {evidence.get('win_rate_confidence', 'Low')}"
    )
    lines.append(f"Win probability: {report.get('win_probability', 50)}%")
    lines.append("")

    lines.append("Key Insights")
    for insight in report.get("key_insights") or []:
        lines.append(f"- {insight}")
    lines.append("")

    lines.append("How to Win")
    for idx, tip in enumerate(report.get("how_to_win") or [], start=1):
        lines.append(f"{idx}. {tip.get('insight')}")
        lines.append(f"   {tip.get('evidence')}")
    lines.append("")

    lines.append("Maps")
    for m in report.get("map_stats") or []:
        lines.append(f"- {m.get('map_name')}: {_pct(m.get('win_rate'))} over {m.get('matches_played', 0)}")
    lines.append(
        f"Aggression: {report.get('aggression')} (avg score {report.get('average_score', 0)})"
    )

    roster = report.get("roster") or []
    if roster:
        lines.append("")
        lines.append("Roster: " + ", ".join(p.get("name") or p.get("id") for p in roster))

    comps = report.get("composition_stats") or []
    if comps:
        lines.append("")
        lines.append("Compositions")
        for c in comps[:3]:
            members = ", ".join(c.get("members") or [])
            lines.append(
                f"- {members} ({c.get('kind')}): {c.get('pick_count', 0)}x, {_pct(c.get('win_rate'))} won"
            )

    engine = report.get("how_to_win_engine")
    if engine:
        lines.append("")
        lines.append(f"Candidates ({engine.get('formula')})")
        for c in engine.get("candidates") or []:
            impact = (c.get("breakdown") or {}).get("impact", 0)
            lines.append(f"- [{c.get('status')}] {impact:>3} {c.get('insight')}")
            if c.get("why_not_selected"):
                lines.append(f"      {c['why_not_selected']}")

    return "\n".join(lines)
