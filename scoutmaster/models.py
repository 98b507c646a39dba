"""Domain records shared by the aggregator, the engines and the report builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Aggression(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TrendDirection(str, Enum):
    UP = "Up"
    DOWN = "Down"
    FLAT = "Flat"


class CandidateStatus(str, Enum):
    """Selection outcome crossed with the low-confidence flag."""

    SELECTED = "Selected"
    NOT_SELECTED = "NotSelected"
    LOW_CONFIDENCE_SELECTED = "LowConfidenceSelected"
    LOW_CONFIDENCE_NOT_SELECTED = "LowConfidenceNotSelected"

    @classmethod
    def of(cls, selected: bool, low_confidence: bool) -> "CandidateStatus":
        if low_confidence:
            return cls.LOW_CONFIDENCE_SELECTED if selected else cls.LOW_CONFIDENCE_NOT_SELECTED
        return cls.SELECTED if selected else cls.NOT_SELECTED

    @property
    def is_selected(self) -> bool:
        return self in (CandidateStatus.SELECTED, CandidateStatus.LOW_CONFIDENCE_SELECTED)

    @property
    def is_low_confidence(self) -> bool:
        return self in (
            CandidateStatus.LOW_CONFIDENCE_SELECTED,
            CandidateStatus.LOW_CONFIDENCE_NOT_SELECTED,
        )


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    team_id: str
    role: Optional[str] = None


@dataclass(frozen=True)
class TeamResult:
    team_id: str
    team_name: str
    score: Optional[float] = None
    is_winner: Optional[bool] = None
    players: List[Player] = field(default_factory=list)


@dataclass(frozen=True)
class Match:
    id: str
    series_id: str
    start_time: str
    map_name: str
    teams: List[TeamResult]


@dataclass(frozen=True)
class MapStat:
    map_name: str
    matches_played: int
    win_rate: float


@dataclass(frozen=True)
class PlayerDraftPick:
    name: str
    type: str
    pick_count: int
    win_rate: float


@dataclass(frozen=True)
class ClutchIndicator:
    close_matches_played: int
    win_rate: float
    rating: Confidence


@dataclass(frozen=True)
class PlayerTendency:
    player_id: str
    player_name: str
    matches_played: int
    win_rate: float
    map_performance: List[MapStat]
    top_picks: Optional[List[PlayerDraftPick]] = None
    clutch: Optional[ClutchIndicator] = None


@dataclass(frozen=True)
class RosterStability:
    confidence: Confidence
    matches_considered: int
    core_players: List[Player]
    unique_players_seen: int


@dataclass(frozen=True)
class WinRateTrend:
    direction: TrendDirection
    delta_pct_points: int
    recent_win_rate: float
    previous_win_rate: float
    recent_matches: int
    previous_matches: int


@dataclass(frozen=True)
class RawMatchRow:
    match_id: str
    series_id: str
    start_time: str
    map_name: str
    opponent_name: str
    team_score: float
    opponent_score: float
    result: str


@dataclass(frozen=True)
class RawInputs:
    kind: str
    total_matches: int
    shown_matches: int
    truncated: bool
    matches: List[RawMatchRow]


@dataclass(frozen=True)
class StrategicInsight:
    insight: str
    evidence: str


@dataclass(frozen=True)
class ScoreBreakdown:
    weakness_severity: float
    exploitability: float
    confidence: Confidence
    confidence_factor: float
    impact: int


@dataclass(frozen=True)
class Candidate:
    id: str
    rule: str
    insight: str
    evidence: str
    status: CandidateStatus
    breakdown: ScoreBreakdown
    why_not_selected: Optional[str] = None


@dataclass(frozen=True)
class EngineResult:
    selected: List[StrategicInsight]
    candidates: List[Candidate]
    formula: str


@dataclass(frozen=True)
class MatchupCandidate:
    id: str
    insight: str
    evidence: str
    score: float
    confidence: Confidence

    def as_insight(self) -> StrategicInsight:
        return StrategicInsight(insight=self.insight, evidence=self.evidence)


@dataclass(frozen=True)
class DraftStat:
    hero_or_map_name: str
    pick_count: int
    ban_count: int
    win_rate: float


@dataclass(frozen=True)
class CompositionStat:
    kind: str
    members: List[str]
    pick_count: int
    win_rate: float


@dataclass(frozen=True)
class MapPlan:
    map_name: str
    matches_played: int
    win_rate: float
    map_pick_count: Optional[int] = None
    map_ban_count: Optional[int] = None
    common_compositions: Optional[List[CompositionStat]] = None
    site_tendencies_available: bool = False
