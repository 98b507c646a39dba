from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .aggregate import aggression_profile, map_stats, round_half_up, sample_confidence
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .models import Aggression, Confidence, MapStat, Match, MatchupCandidate, StrategicInsight


def _pct(rate: float) -> int:
    return round_half_up(rate * 100)


def _by_name(stats: Sequence[MapStat]) -> Dict[str, MapStat]:
    return {s.map_name: s for s in stats}


def _shared_map_candidates(
    ours: Sequence[MapStat],
    theirs: Dict[str, MapStat],
    config: EngineConfig,
) -> List[MatchupCandidate]:
    out: List[MatchupCandidate] = []
    for our in ours:
        their = theirs.get(our.map_name)
        if their is None:
            continue
        min_sample = min(our.matches_played, their.matches_played)
        if min_sample < 1:
            continue
        advantage = our.win_rate - their.win_rate
        confidence = sample_confidence(min_sample, config.matchup_high_min, config.matchup_medium_min)
        score = abs(advantage) * 100 + min_sample * config.matchup_sample_weight
        if confidence == Confidence.LOW:
            score -= config.matchup_low_penalty
        evidence = (
            f"Us {_pct(our.win_rate)}% over {our.matches_played} vs them "
            f"{_pct(their.win_rate)}% over {their.matches_played} on {our.map_name} "
            f"({confidence.value.lower()} confidence)."
        )
        if advantage >= config.matchup_advantage:
            out.append(
                MatchupCandidate(
                    id=f"matchup:prioritize:{our.map_name}",
                    insight=f"Prioritize {our.map_name} in the veto",
                    evidence=evidence,
                    score=score,
                    confidence=confidence,
                )
            )
        elif advantage <= -config.matchup_advantage:
            out.append(
                MatchupCandidate(
                    id=f"matchup:avoid:{our.map_name}",
                    insight=f"Avoid {our.map_name}",
                    evidence=evidence,
                    score=score - config.matchup_avoid_penalty,
                    confidence=confidence,
                )
            )
    return out


def _best_map(stats: Sequence[MapStat], min_played: int) -> Optional[MapStat]:
    pool = [s for s in stats if s.matches_played >= min_played] or list(stats)
    if not pool:
        return None
    return sorted(pool, key=lambda s: (-s.win_rate, -s.matches_played))[0]


def _disjoint_pool_candidates(
    ours: Sequence[MapStat],
    theirs: Sequence[MapStat],
    config: EngineConfig,
) -> List[MatchupCandidate]:
    out: List[MatchupCandidate] = []
    their_names = {s.map_name for s in theirs}
    our_names = {s.map_name for s in ours}

    steer = _best_map([s for s in ours if s.map_name not in their_names], 2)
    if steer:
        out.append(
            MatchupCandidate(
                id=f"matchup:steer:{steer.map_name}",
                insight=f"Steer the series toward {steer.map_name}",
                evidence=(
                    f"We are {_pct(steer.win_rate)}% over {steer.matches_played} on "
                    f"{steer.map_name}; the opponent has no recorded games there."
                ),
                score=config.matchup_steer_base
                + steer.matches_played * config.matchup_played_weight
                + steer.win_rate * config.matchup_steer_wr_weight,
                confidence=Confidence.LOW,
            )
        )

    avoid = _best_map([s for s in theirs if s.map_name not in our_names], 1)
    if avoid:
        out.append(
            MatchupCandidate(
                id=f"matchup:avoid:{avoid.map_name}",
                insight=f"Avoid {avoid.map_name}",
                evidence=(
                    f"Opponent is {_pct(avoid.win_rate)}% over {avoid.matches_played} on "
                    f"{avoid.map_name}; we have no recorded games there."
                ),
                score=config.matchup_avoid_base
                + avoid.matches_played * config.matchup_played_weight
                + avoid.win_rate * config.matchup_avoid_wr_weight,
                confidence=Confidence.LOW,
            )
        )
    return out


def _aggression_candidates(
    ours: Aggression, theirs: Aggression, config: EngineConfig
) -> List[MatchupCandidate]:
    if theirs == Aggression.HIGH and ours != Aggression.HIGH:
        return [
            MatchupCandidate(
                id="matchup:anti-rush",
                insight="Plan an anti-rush setup for their fast starts",
                evidence=f"Opponent aggression is High while ours is {ours.value}.",
                score=config.matchup_anti_rush_score,
                confidence=Confidence.MEDIUM,
            )
        ]
    if ours == Aggression.HIGH and theirs != Aggression.HIGH:
        return [
            MatchupCandidate(
                id="matchup:tempo",
                insight="Increase tempo and force them to react",
                evidence=f"Our aggression is High while theirs is {theirs.value}.",
                score=config.matchup_tempo_score,
                confidence=Confidence.MEDIUM,
            )
        ]
    return []


def _pool_breadth_candidates(
    ours: Sequence[MapStat], theirs: Sequence[MapStat], config: EngineConfig
) -> List[MatchupCandidate]:
    if len(theirs) <= config.matchup_narrow_pool_max and len(ours) >= config.matchup_wide_pool_min:
        return [
            MatchupCandidate(
                id="matchup:extend-series",
                insight="Extend the series beyond their comfort maps",
                evidence=(
                    f"Opponent has shown {len(theirs)} map(s) while we have played {len(ours)}."
                ),
                score=config.matchup_extend_score,
                confidence=Confidence.MEDIUM,
            )
        ]
    return []


def unique_by_insight(candidates: Sequence[MatchupCandidate]) -> List[MatchupCandidate]:
    """Drop candidates whose insight text was already seen; the first one wins."""
    seen = set()
    unique: List[MatchupCandidate] = []
    for c in candidates:
        if c.insight in seen:
            continue
        seen.add(c.insight)
        unique.append(c)
    return unique


def generate_matchup_candidates(
    our_matches: Sequence[Match],
    our_team_ref: str,
    opponent_matches: Sequence[Match],
    opponent_team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> List[MatchupCandidate]:
    """Ranked map and playstyle recommendations for our team against an opponent."""
    if not our_matches or not opponent_matches:
        return []

    ours = map_stats(our_matches, our_team_ref)
    theirs = map_stats(opponent_matches, opponent_team_ref)
    their_by_name = _by_name(theirs)
    shared = [s for s in ours if s.map_name in their_by_name]

    candidates: List[MatchupCandidate] = []
    candidates.extend(_shared_map_candidates(ours, their_by_name, config))
    if not shared:
        candidates.extend(_disjoint_pool_candidates(ours, theirs, config))
    candidates.extend(
        _aggression_candidates(
            aggression_profile(our_matches, our_team_ref, config),
            aggression_profile(opponent_matches, opponent_team_ref, config),
            config,
        )
    )
    candidates.extend(_pool_breadth_candidates(ours, theirs, config))

    if not candidates:
        candidates.append(
            MatchupCandidate(
                id="matchup:default",
                insight="Play to your comfort picks and prepare fundamentals",
                evidence="No map or playstyle edge stood out between the two teams.",
                score=config.matchup_default_score,
                confidence=Confidence.LOW,
            )
        )

    unique = unique_by_insight(candidates)
    unique.sort(key=lambda c: c.score, reverse=True)
    return unique[: config.matchup_max_results]


def generate_how_to_win_matchup(
    our_matches: Sequence[Match],
    our_team_ref: str,
    opponent_matches: Sequence[Match],
    opponent_team_ref: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> List[StrategicInsight]:
    return [
        c.as_insight()
        for c in generate_matchup_candidates(
            our_matches, our_team_ref, opponent_matches, opponent_team_ref, config
        )
    ]


def map_pool_deltas(
    our_matches: Sequence[Match],
    our_team_ref: str,
    opponent_matches: Sequence[Match],
    opponent_team_ref: str,
) -> List[Dict[str, object]]:
    """Per-map side-by-side view over the union of both map pools."""
    ours = _by_name(map_stats(our_matches, our_team_ref))
    theirs = _by_name(map_stats(opponent_matches, opponent_team_ref))
    names = list(ours) + [n for n in theirs if n not in ours]

    rows: List[Dict[str, object]] = []
    for name in names:
        our = ours.get(name)
        their = theirs.get(name)
        rows.append(
            {
                "map_name": name,
                "our_matches_played": our.matches_played if our else 0,
                "our_win_rate": our.win_rate if our else None,
                "opponent_matches_played": their.matches_played if their else 0,
                "opponent_win_rate": their.win_rate if their else None,
                "win_rate_delta": (our.win_rate - their.win_rate) if our and their else None,
            }
        )
    rows.sort(
        key=lambda r: (r["our_matches_played"] or 0) + (r["opponent_matches_played"] or 0),
        reverse=True,
    )
    return rows
