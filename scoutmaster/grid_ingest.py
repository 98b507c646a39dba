from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rapidfuzz import fuzz, process, utils

from .config import CENTRAL_DATA_URLS, SERIES_STATE_URLS
from .errors import GridRateLimitError, TeamNotFoundError
from .grid_client import GridGraphQLClient, query_across_endpoints
from .grid_queries import (
    RECENT_SERIES_QUERY,
    SERIES_STATE_QUERY,
    SERIES_STATE_QUERY_BASIC,
    TEAMS_QUERY,
    TEAMS_QUERY_BASIC,
)

logger = logging.getLogger(__name__)

_GAME_TITLE_TOKENS = {
    "LOL": ("league of legends", "lol"),
    "VALORANT": ("valorant", "vct"),
}


@dataclass
class RawTeamData:
    team_id: str
    team_name: str
    series_states: List[Dict[str, Any]] = field(default_factory=list)


def _safe_name(s: Optional[str]) -> str:
    return (s or "").strip()


def normalize_game(game: Optional[str]) -> Optional[str]:
    """Map user input (``lol``, ``Valorant``...) to ``LOL``/``VALORANT``; anything else to None."""
    if not game:
        return None
    g = game.strip().upper()
    return g if g in _GAME_TITLE_TOKENS else None


def _title_matches(node: Dict[str, Any], game: str) -> bool:
    tokens = _GAME_TITLE_TOKENS[game]
    titles = [node.get("title")] + list(node.get("titles") or [])
    for t in titles:
        name = _safe_name((t or {}).get("name")).lower()
        if not name:
            continue
        words = name.split()
        if any(tok == name or tok in words or (" " in tok and tok in name) for tok in tokens):
            return True
    return False


def _fetch_team_nodes(client: GridGraphQLClient, name: str, limit: int) -> List[Dict[str, Any]]:
    variables = {"name": name, "limit": limit}
    try:
        _, data = query_across_endpoints(client, CENTRAL_DATA_URLS, TEAMS_QUERY, variables)
    except GridRateLimitError:
        raise
    except RuntimeError as exc:
        logger.info("Team query with titles failed, retrying basic query: %s", exc)
        _, data = query_across_endpoints(client, CENTRAL_DATA_URLS, TEAMS_QUERY_BASIC, variables)
    edges = (data.get("teams") or {}).get("edges") or []
    return [e.get("node") or {} for e in edges if e.get("node")]


def find_teams_by_name(
    client: GridGraphQLClient,
    name: str,
    limit: int = 10,
    game: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Search GRID teams whose name contains ``name``.

    When ``game`` is given, teams are kept if any of their titles looks like
    that game. If the filter would drop every candidate the unfiltered list is
    returned, since the title fields are sparsely populated upstream.
    """
    nodes = _fetch_team_nodes(client, name, limit)
    game_key = normalize_game(game)
    if not game_key:
        return nodes
    filtered = [n for n in nodes if _title_matches(n, game_key)]
    if not filtered and nodes:
        logger.debug("Game filter %s removed all %d team candidates; keeping all", game_key, len(nodes))
        return nodes
    return filtered


def search_teams(
    client: GridGraphQLClient, query: str, game: Optional[str] = None, limit: int = 10
) -> List[Dict[str, str]]:
    nodes = find_teams_by_name(client, query.strip(), limit=limit, game=game)
    return [{"id": str(n.get("id")), "name": _safe_name(n.get("name"))} for n in nodes if n.get("id")]


def suggest_team_names(query: str, names: List[str], limit: int = 5) -> List[str]:
    unique = list(dict.fromkeys(n for n in names if n))
    matches = process.extract(
        query, unique, scorer=fuzz.WRatio, processor=utils.default_process, limit=limit
    )
    return [name for name, _, _ in matches]


def resolve_team(
    client: GridGraphQLClient,
    name: str,
    which: str = "opponent",
    game: Optional[str] = None,
    limit: int = 10,
) -> Tuple[str, str]:
    """Resolve a user-supplied team name to ``(team_id, team_name)``.

    An exact case-insensitive name match wins. A single candidate is accepted
    as is. Anything else raises :class:`TeamNotFoundError` carrying the closest
    candidate names.
    """
    query = name.strip()
    candidates = find_teams_by_name(client, query, limit=limit, game=game)
    named = [c for c in candidates if c.get("id") and _safe_name(c.get("name"))]

    for c in named:
        if _safe_name(c.get("name")).lower() == query.lower():
            return str(c["id"]), _safe_name(c.get("name"))
    if len(named) == 1:
        only = named[0]
        logger.info("Resolved '%s' to the only candidate '%s'", query, only.get("name"))
        return str(only["id"]), _safe_name(only.get("name"))

    suggestions = suggest_team_names(query, [_safe_name(c.get("name")) for c in named])
    raise TeamNotFoundError(which, query, suggestions)


def get_recent_series(client: GridGraphQLClient, team_id: str, limit: int) -> List[Dict[str, Any]]:
    _, data = query_across_endpoints(
        client, CENTRAL_DATA_URLS, RECENT_SERIES_QUERY, {"teamId": team_id, "limit": limit}
    )
    edges = (data.get("allSeries") or {}).get("edges") or []
    return [e.get("node") or {} for e in edges if (e.get("node") or {}).get("id")]


def fetch_series_state(client: GridGraphQLClient, series_id: str) -> Dict[str, Any]:
    try:
        _, data = query_across_endpoints(client, SERIES_STATE_URLS, SERIES_STATE_QUERY, {"id": series_id})
    except GridRateLimitError:
        raise
    except RuntimeError as exc:
        logger.debug("seriesState with draft actions failed for %s: %s", series_id, exc)
        _, data = query_across_endpoints(
            client, SERIES_STATE_URLS, SERIES_STATE_QUERY_BASIC, {"id": series_id}
        )
    return data.get("seriesState") or {}


def fetch_team_series_states(
    client: GridGraphQLClient, team_id: str, limit: int
) -> List[Dict[str, Any]]:
    """Series states for a team's most recent series, newest first.

    A series whose state cannot be fetched is skipped. ``startedAt`` falls back
    to the scheduled start time.
    """
    states: List[Dict[str, Any]] = []
    for info in get_recent_series(client, team_id, limit):
        series_id = info["id"]
        try:
            state = fetch_series_state(client, series_id)
        except GridRateLimitError:
            raise
        except RuntimeError as exc:
            logger.warning("Could not fetch state for series %s: %s", series_id, exc)
            continue
        if not state:
            continue
        if not state.get("startedAt") and info.get("startTimeScheduled"):
            state = dict(state, startedAt=info["startTimeScheduled"])
        states.append(state)
    logger.info("Fetched %d series states for team %s", len(states), team_id)
    return states


def fetch_team_data(
    client: GridGraphQLClient,
    team_name: str,
    limit: int,
    which: str = "opponent",
    game: Optional[str] = None,
) -> RawTeamData:
    team_id, resolved_name = resolve_team(client, team_name, which=which, game=game)
    return RawTeamData(
        team_id=team_id,
        team_name=resolved_name,
        series_states=fetch_team_series_states(client, team_id, limit),
    )


def raw_team_to_json(raw: RawTeamData) -> Dict[str, Any]:
    return {"team_id": raw.team_id, "team_name": raw.team_name, "series_states": raw.series_states}


def raw_team_from_json(item: Dict[str, Any]) -> RawTeamData:
    return RawTeamData(
        team_id=str(item.get("team_id") or ""),
        team_name=item.get("team_name") or "",
        series_states=item.get("series_states") or [],
    )


def save_raw(path: Path, opponent: RawTeamData, our: Optional[RawTeamData] = None) -> None:
    payload: Dict[str, Any] = {"opponent": raw_team_to_json(opponent)}
    if our is not None:
        payload["our"] = raw_team_to_json(our)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_raw(path: Path) -> Tuple[RawTeamData, Optional[RawTeamData]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    opponent = raw_team_from_json(payload.get("opponent") or {})
    our = raw_team_from_json(payload["our"]) if payload.get("our") else None
    return opponent, our
