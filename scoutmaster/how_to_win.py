"""Single-team "How to Win" engine.

Rules are plain functions over a read-only :class:`TeamSnapshot`, run in the
order they appear in :data:`RULES`. Each returns zero or more drafts; drafts
are scored with

    impact = round(100 * clamp01(severity) * clamp01(exploitability) * factor)

and then ranked. Equal impacts keep rule-declaration order, then the order a
rule emitted them in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from .aggregate import TeamSnapshot, round_half_up, sample_confidence, summarize
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .models import (
    Aggression,
    Candidate,
    CandidateStatus,
    Confidence,
    EngineResult,
    Match,
    ScoreBreakdown,
    StrategicInsight,
)

FORMULA = "impact = weaknessSeverity × exploitability × confidence"


@dataclass(frozen=True)
class CandidateDraft:
    id: str
    rule: str
    insight: str
    evidence: str
    weakness_severity: float
    exploitability: float
    confidence: Confidence


RuleFn = Callable[[TeamSnapshot, EngineConfig], List[CandidateDraft]]


@dataclass(frozen=True)
class Rule:
    name: str
    fn: RuleFn


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _plural(n: int, word: str) -> str:
    if n == 1:
        return f"1 {word}"
    suffix = "es" if word.endswith(("ch", "s")) else "s"
    return f"{n} {word}{suffix}"


def score_candidate(
    weakness_severity: float,
    exploitability: float,
    confidence: Confidence,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ScoreBreakdown:
    severity = _clamp01(weakness_severity)
    exploit = _clamp01(exploitability)
    factor = config.confidence_factors[confidence.value]
    return ScoreBreakdown(
        weakness_severity=severity,
        exploitability=exploit,
        confidence=confidence,
        confidence_factor=factor,
        impact=round_half_up(100 * severity * exploit * factor),
    )


# Rules


def map_weakness_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    out: List[CandidateDraft] = []
    for stat in snap.map_stats:
        if stat.matches_played < 1 or stat.win_rate >= config.weak_map_below:
            continue
        played = stat.matches_played
        confidence = sample_confidence(played, config.map_high_min, config.map_medium_min)
        evidence = (
            f"Opponent has a {round_half_up(stat.win_rate * 100)}% win rate on "
            f"{stat.map_name} over {_plural(played, 'game')}."
        )
        if played < config.map_low_sample_below:
            evidence += f" Low confidence: fewer than {config.map_low_sample_below} games on this map."
        out.append(
            CandidateDraft(
                id=f"map-weakness:{stat.map_name}",
                rule="MapWeakness",
                insight=f"Force the series to {stat.map_name}",
                evidence=evidence,
                weakness_severity=1 - stat.win_rate,
                exploitability=min(1.0, played / config.map_exploit_full_at),
                confidence=confidence,
            )
        )
    return out


def map_sample_guardrail_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    if not snap.map_stats or snap.matches < 2:
        return []
    if any(s.win_rate < config.weak_map_below for s in snap.map_stats):
        return []
    best = snap.map_stats[0]
    if best.matches_played >= config.map_low_sample_below:
        return []
    return [
        CandidateDraft(
            id="map-sample-guardrail",
            rule="MapSampleGuardrail",
            insight="Treat map-specific conclusions cautiously",
            evidence=(
                f"Most-played map ({best.map_name}) has only "
                f"{_plural(best.matches_played, 'game')}; no map tendency is reliable yet."
            ),
            weakness_severity=config.map_guardrail_severity,
            exploitability=config.map_guardrail_exploitability,
            confidence=Confidence.LOW,
        )
    ]


def momentum_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    wr = snap.win_rate
    over = _plural(snap.matches, "match")
    if wr < config.cold_below_pct:
        return [
            CandidateDraft(
                id="momentum:cold",
                rule="Momentum",
                insight="Apply aggressive early-game pressure",
                evidence=f"Opponent is on a cold streak with a {wr}% win rate over {over}.",
                weakness_severity=(config.cold_below_pct - wr) / config.cold_below_pct,
                exploitability=config.cold_exploitability,
                confidence=snap.overall_confidence,
            )
        ]
    if wr > config.hot_above_pct:
        return [
            CandidateDraft(
                id="momentum:hot",
                rule="Momentum",
                insight="Disrupt their rhythm with early timeouts",
                evidence=f"Opponent is playing with confidence at a {wr}% win rate over {over}.",
                weakness_severity=config.hot_severity,
                exploitability=config.hot_exploitability,
                confidence=snap.overall_confidence,
            )
        ]
    return []


def playstyle_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    if snap.aggression == Aggression.HIGH:
        insight = "Prioritize defensive utility and spacing"
        evidence = (
            f"Opponent averages {snap.average_score} points per map, "
            "indicating a high-aggression profile."
        )
        cid = "playstyle:high-aggression"
    elif snap.aggression == Aggression.LOW:
        insight = "Initiate fast-paced executes"
        evidence = (
            f"Opponent plays a slow game (avg {snap.average_score} points per map), "
            "making them vulnerable to speed."
        )
        cid = "playstyle:low-aggression"
    else:
        return []
    return [
        CandidateDraft(
            id=cid,
            rule="PlaystyleCounter",
            insight=insight,
            evidence=evidence,
            weakness_severity=config.playstyle_severity,
            exploitability=config.playstyle_exploitability,
            confidence=snap.overall_confidence,
        )
    ]


def map_pool_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    distinct = len(snap.map_stats)
    if distinct >= config.narrow_pool_below or snap.matches < config.narrow_pool_min_matches:
        return []
    return [
        CandidateDraft(
            id="map-pool:narrow",
            rule="MapPoolBreadth",
            insight="Punish narrow map pool",
            evidence=(
                f"Opponent has only played {_plural(distinct, 'distinct map')} "
                f"across their last {snap.matches} matches."
            ),
            weakness_severity=config.narrow_pool_severity,
            exploitability=config.narrow_pool_exploitability,
            confidence=snap.overall_confidence,
        )
    ]


def data_scarcity_rule(snap: TeamSnapshot, config: EngineConfig) -> List[CandidateDraft]:
    if snap.matches >= config.scarce_below:
        return []
    return [
        CandidateDraft(
            id="data:scarcity",
            rule="DataScarcity",
            insight="Prepare for unknown strategies",
            evidence=f"Only {_plural(snap.matches, 'recent match')} available for analysis.",
            weakness_severity=config.scarce_severity,
            exploitability=config.scarce_exploitability,
            confidence=Confidence.LOW,
        )
    ]


RULES: Tuple[Rule, ...] = (
    Rule("MapWeakness", map_weakness_rule),
    Rule("MapSampleGuardrail", map_sample_guardrail_rule),
    Rule("Momentum", momentum_rule),
    Rule("PlaystyleCounter", playstyle_rule),
    Rule("MapPoolBreadth", map_pool_rule),
    Rule("DataScarcity", data_scarcity_rule),
)


def _fallback_draft(snap: TeamSnapshot, config: EngineConfig) -> CandidateDraft:
    return CandidateDraft(
        id="fallback:fundamentals",
        rule="Fallback",
        insight="Win on fundamentals and your own game plan",
        evidence=f"No exploitable pattern stood out across {snap.matches} matches.",
        weakness_severity=config.fallback_severity,
        exploitability=config.fallback_exploitability,
        confidence=Confidence.LOW,
    )


def _no_data_draft() -> CandidateDraft:
    return CandidateDraft(
        id="fallback:no-data",
        rule="NoData",
        insight="Gather more data",
        evidence="0 matches found",
        weakness_severity=1.0,
        exploitability=0.0,
        confidence=Confidence.LOW,
    )


def generate_candidates(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    rules: Sequence[Rule] = RULES,
) -> List[CandidateDraft]:
    if not matches:
        return [_no_data_draft()]

    snap = summarize(matches, team_ref, config)
    drafts: List[CandidateDraft] = []
    for rule in rules:
        drafts.extend(rule.fn(snap, config))
    if not drafts:
        drafts.append(_fallback_draft(snap, config))
    return drafts


def _why_not_selected(impact: int, cutoff: int, max_selected: int) -> str:
    if impact == cutoff:
        return (
            f"Impact {impact} ties the selection cutoff of {cutoff} but ranked after an "
            f"earlier rule; only the top {max_selected} candidates are selected."
        )
    return (
        f"Impact {impact} is below the selection cutoff of {cutoff}; "
        f"only the top {max_selected} candidates are selected."
    )


def rank_candidates(
    drafts: Sequence[CandidateDraft],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> EngineResult:
    scored = [
        (d, score_candidate(d.weakness_severity, d.exploitability, d.confidence, config), idx)
        for idx, d in enumerate(drafts)
    ]
    scored.sort(key=lambda item: (-item[1].impact, item[2]))

    limit = max(0, config.max_selected)
    selected_count = min(limit, len(scored))
    cutoff = scored[selected_count - 1][1].impact if selected_count else 0

    candidates: List[Candidate] = []
    selected: List[StrategicInsight] = []
    for rank, (draft, breakdown, _) in enumerate(scored):
        is_selected = rank < selected_count
        status = CandidateStatus.of(is_selected, breakdown.confidence == Confidence.LOW)
        candidates.append(
            Candidate(
                id=draft.id,
                rule=draft.rule,
                insight=draft.insight,
                evidence=draft.evidence,
                status=status,
                breakdown=breakdown,
                why_not_selected=None
                if is_selected
                else _why_not_selected(breakdown.impact, cutoff, limit),
            )
        )
        if is_selected:
            selected.append(StrategicInsight(insight=draft.insight, evidence=draft.evidence))

    return EngineResult(selected=selected, candidates=candidates, formula=FORMULA)


def generate_how_to_win_engine(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> EngineResult:
    return rank_candidates(generate_candidates(matches, team_ref, config), config)


def generate_how_to_win(
    matches: Sequence[Match],
    team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> List[StrategicInsight]:
    return generate_how_to_win_engine(matches, team_ref, config).selected
