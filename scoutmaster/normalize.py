"""Turn GRID ``seriesState`` payloads into domain records.

Everything here is tolerant of partial payloads: missing ids become empty
strings, missing maps become ``"Unknown"`` and absent draft data simply yields
no draft statistics.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from .models import (
    CompositionStat,
    DraftStat,
    MapPlan,
    Match,
    Player,
    PlayerDraftPick,
    TeamResult,
)

UNKNOWN_MAP = "Unknown"


def _str_id(value: Any) -> str:
    return str(value) if value is not None else ""


def _score(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _won(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _normalize_players(players: List[Dict[str, Any]], team_id: str) -> List[Player]:
    out: List[Player] = []
    for p in players or []:
        pid = _str_id(p.get("id"))
        if not pid:
            continue
        out.append(
            Player(id=pid, name=p.get("name") or pid, team_id=team_id, role=p.get("role"))
        )
    return out


def _normalize_team_result(entry: Dict[str, Any]) -> TeamResult:
    team_id = _str_id(entry.get("id"))
    return TeamResult(
        team_id=team_id,
        team_name=entry.get("name") or "",
        score=_score(entry.get("score")),
        is_winner=_won(entry.get("won")),
        players=_normalize_players(entry.get("players") or [], team_id),
    )


def _map_name(game: Dict[str, Any]) -> str:
    return ((game.get("map") or {}).get("name") or "").strip() or UNKNOWN_MAP


def normalize_series_state(state: Dict[str, Any]) -> List[Match]:
    """One :class:`Match` per game, or one series-level match when no games are reported."""
    series_id = _str_id(state.get("id"))
    start_time = state.get("startedAt") or ""
    games = state.get("games") or []

    if not games:
        teams = state.get("teams") or []
        if not teams:
            return []
        return [
            Match(
                id=series_id,
                series_id=series_id,
                start_time=start_time,
                map_name=UNKNOWN_MAP,
                teams=[_normalize_team_result(t) for t in teams],
            )
        ]

    matches: List[Match] = []
    for idx, g in enumerate(games, start=1):
        seq = g.get("sequenceNumber") or idx
        matches.append(
            Match(
                id=_str_id(g.get("id")) or f"{series_id}-{seq}",
                series_id=series_id,
                start_time=start_time,
                map_name=_map_name(g),
                teams=[_normalize_team_result(t) for t in g.get("teams") or []],
            )
        )
    return matches


def normalize_series_states(states: List[Dict[str, Any]]) -> List[Match]:
    matches: List[Match] = []
    for state in states:
        matches.extend(normalize_series_state(state or {}))
    return matches


# Draft data


def _series_team(state: Dict[str, Any], team_id: str) -> Optional[Dict[str, Any]]:
    return next((t for t in state.get("teams") or [] if _str_id(t.get("id")) == team_id), None)


def _team_member_ids(state: Dict[str, Any], team_id: str) -> Set[str]:
    ids: Set[str] = set()
    entries = [_series_team(state, team_id)]
    for g in state.get("games") or []:
        entries.extend(t for t in g.get("teams") or [] if _str_id(t.get("id")) == team_id)
    for entry in entries:
        for p in (entry or {}).get("players") or []:
            if p.get("id") is not None:
                ids.add(_str_id(p.get("id")))
    return ids


def _series_won(state: Dict[str, Any], team_id: str) -> bool:
    return _won((_series_team(state, team_id) or {}).get("won")) is True


def _team_actions(state: Dict[str, Any], team_id: str) -> List[Dict[str, Any]]:
    """Draft actions made by the team itself or by one of its players."""
    drafters = _team_member_ids(state, team_id) | {team_id}
    return [
        a
        for a in state.get("draftActions") or []
        if _str_id((a.get("drafter") or {}).get("id")) in drafters
        and (a.get("draftable") or {}).get("name")
    ]


def _action_kind(action: Dict[str, Any]) -> str:
    return (action.get("type") or "").upper()


def _draftable(action: Dict[str, Any]) -> Tuple[str, str]:
    d = action.get("draftable") or {}
    return d.get("name") or "", (d.get("type") or "UNKNOWN").upper()


def normalize_player_draft_picks(
    states: List[Dict[str, Any]], team_id: str
) -> Dict[str, List[PlayerDraftPick]]:
    """Per-player pick counts, keyed by player id.

    Only picks whose drafter is one of the team's players are attributed; the
    win rate of a pick is the team's series result.
    """
    tallies: Dict[str, Dict[Tuple[str, str], List[int]]] = defaultdict(dict)
    for state in states:
        members = _team_member_ids(state, team_id)
        won = _series_won(state, team_id)
        for action in state.get("draftActions") or []:
            drafter = _str_id((action.get("drafter") or {}).get("id"))
            name, kind = _draftable(action)
            if _action_kind(action) != "PICK" or drafter not in members or not name:
                continue
            counts = tallies[drafter].setdefault((name, kind), [0, 0])
            counts[0] += 1
            counts[1] += 1 if won else 0

    out: Dict[str, List[PlayerDraftPick]] = {}
    for player_id, picks in tallies.items():
        rows = [
            PlayerDraftPick(name=name, type=kind, pick_count=n, win_rate=w / n)
            for (name, kind), (n, w) in picks.items()
        ]
        rows.sort(key=lambda r: (-r.pick_count, r.name))
        out[player_id] = rows
    return out


def normalize_draft_stats(states: List[Dict[str, Any]], team_id: str) -> List[DraftStat]:
    picks: Dict[str, int] = defaultdict(int)
    pick_wins: Dict[str, int] = defaultdict(int)
    bans: Dict[str, int] = defaultdict(int)
    order: List[str] = []

    for state in states:
        won = _series_won(state, team_id)
        for action in _team_actions(state, team_id):
            name, _ = _draftable(action)
            kind = _action_kind(action)
            if kind not in ("PICK", "BAN"):
                continue
            if name not in picks and name not in bans:
                order.append(name)
            if kind == "PICK":
                picks[name] += 1
                pick_wins[name] += 1 if won else 0
            elif kind == "BAN":
                bans[name] += 1

    stats = [
        DraftStat(
            hero_or_map_name=name,
            pick_count=picks.get(name, 0),
            ban_count=bans.get(name, 0),
            win_rate=pick_wins.get(name, 0) / picks[name] if picks.get(name) else 0.0,
        )
        for name in order
    ]
    stats.sort(key=lambda s: -(s.pick_count + s.ban_count))
    return stats


def _series_compositions(state: Dict[str, Any], team_id: str) -> Dict[str, Tuple[str, ...]]:
    """Sorted non-map pick members per draftable type for one series."""
    members: Dict[str, List[str]] = defaultdict(list)
    for action in _team_actions(state, team_id):
        name, kind = _draftable(action)
        if _action_kind(action) != "PICK" or kind == "MAP":
            continue
        members[kind].append(name)
    return {kind: tuple(sorted(names)) for kind, names in members.items()}


def _composition_rows(tally: Dict[Tuple[str, Tuple[str, ...]], List[int]]) -> List[CompositionStat]:
    rows = [
        CompositionStat(kind=kind, members=list(members), pick_count=n, win_rate=w / n)
        for (kind, members), (n, w) in tally.items()
    ]
    rows.sort(key=lambda c: (-c.pick_count, c.kind, c.members))
    return rows


def normalize_composition_stats(
    states: List[Dict[str, Any]], team_id: str
) -> List[CompositionStat]:
    tally: Dict[Tuple[str, Tuple[str, ...]], List[int]] = {}
    for state in states:
        won = _series_won(state, team_id)
        for kind, members in _series_compositions(state, team_id).items():
            counts = tally.setdefault((kind, members), [0, 0])
            counts[0] += 1
            counts[1] += 1 if won else 0
    return _composition_rows(tally)


@dataclass
class _MapTally:
    played: int = 0
    wins: int = 0
    picks: int = 0
    bans: int = 0


def normalize_map_plans(states: List[Dict[str, Any]], team_id: str) -> List[MapPlan]:
    """Per-map outcomes for the team plus the compositions it brought there.

    Compositions come from the series' draft and are attached to every game of
    that series on the map. Site-level tendencies are not derivable from
    series state and are always reported as unavailable.
    """
    maps: Dict[str, _MapTally] = {}
    comps: Dict[str, Dict[Tuple[str, Tuple[str, ...]], List[int]]] = defaultdict(dict)
    saw_map_actions = False

    for state in states:
        series_comps = _series_compositions(state, team_id)
        for g in state.get("games") or []:
            entry = next(
                (t for t in g.get("teams") or [] if _str_id(t.get("id")) == team_id), None
            )
            if entry is None:
                continue
            name = _map_name(g)
            won = _won(entry.get("won")) is True
            tally = maps.setdefault(name, _MapTally())
            tally.played += 1
            tally.wins += 1 if won else 0
            for kind, members in series_comps.items():
                counts = comps[name].setdefault((kind, members), [0, 0])
                counts[0] += 1
                counts[1] += 1 if won else 0

        for action in _team_actions(state, team_id):
            name, kind = _draftable(action)
            if kind != "MAP":
                continue
            saw_map_actions = True
            tally = maps.setdefault(name, _MapTally())
            if _action_kind(action) == "PICK":
                tally.picks += 1
            elif _action_kind(action) == "BAN":
                tally.bans += 1

    plans = [
        MapPlan(
            map_name=name,
            matches_played=t.played,
            win_rate=t.wins / t.played if t.played else 0.0,
            map_pick_count=t.picks if saw_map_actions else None,
            map_ban_count=t.bans if saw_map_actions else None,
            common_compositions=_composition_rows(comps[name]) if comps.get(name) else None,
            site_tendencies_available=False,
        )
        for name, t in maps.items()
    ]
    plans.sort(key=lambda p: (-p.matches_played, p.map_name))
    return plans
