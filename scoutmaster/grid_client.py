from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import CacheConfig, cache_config_from_env
from .errors import GridRateLimitError

logger = logging.getLogger(__name__)

_TRANSIENT_STATUSES = frozenset({500, 502, 503, 504})


class _Retry(Exception):
    """Internal signal: the attempt failed in a way worth retrying."""

    def __init__(self, error: Exception, delay_s: Optional[float] = None) -> None:
        super().__init__(str(error))
        self.error = error
        self.delay_s = delay_s


def _retry_after(resp: requests.Response) -> Optional[float]:
    raw = resp.headers.get("retry-after")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _is_rate_limit_error(errors: List[Dict[str, Any]]) -> bool:
    for err in errors:
        detail = (err.get("extensions") or {}).get("errorDetail")
        if detail == "ENHANCE_YOUR_CALM" or "rate limit" in (err.get("message") or "").lower():
            return True
    return False


def _data_from_response(resp: requests.Response) -> Dict[str, Any]:
    """Return the GraphQL ``data`` object, raise ``_Retry`` or ``RuntimeError`` otherwise."""
    status = resp.status_code
    if status == 429:
        wait = _retry_after(resp)
        raise _Retry(GridRateLimitError("GRID rate limit (HTTP 429)", wait), wait)
    if status in _TRANSIENT_STATUSES:
        raise _Retry(RuntimeError(f"GRID returned HTTP {status}"))
    if status >= 400:
        raise RuntimeError(f"GRID returned HTTP {status}: {resp.text[:500]}")

    body = resp.json()
    errors = body.get("errors")
    if errors:
        if _is_rate_limit_error(errors):
            raise _Retry(GridRateLimitError("GRID rate limit (GraphQL error)"))
        raise RuntimeError("GraphQL errors: " + json.dumps(errors, indent=2))
    if "data" not in body:
        raise RuntimeError("Unexpected response shape: " + json.dumps(body, indent=2))
    return body["data"] or {}


@dataclass
class GridGraphQLClient:
    """Thin GRID GraphQL client: API key header, retries and an optional TTL cache."""

    api_key: str
    timeout_s: int = 30
    cache: Optional[CacheConfig] = None
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.session = requests.Session()
        self.session.headers["x-api-key"] = self.api_key
        self.session.headers["content-type"] = "application/json"
        self.session.headers["accept"] = "application/json"
        if self.cache is None:
            self.cache = cache_config_from_env()

    # cache

    def _cache_file(self, url: str, gql: str, variables: Dict[str, Any]) -> Optional[Path]:
        if not (self.cache and self.cache.enabled):
            return None
        fingerprint = json.dumps({"url": url, "gql": gql, "variables": variables}, sort_keys=True)
        name = hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()
        return self.cache.base_dir / f"{name}.json"

    def _cache_get(self, path: Optional[Path]) -> Optional[Dict[str, Any]]:
        if path is None or not path.exists() or self.cache is None:
            return None
        if time.time() - path.stat().st_mtime > self.cache.ttl_s:
            return None
        logger.debug("GRID cache hit %s", path.name)
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _cache_put(path: Optional[Path], data: Dict[str, Any]) -> None:
        if path is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")

    # queries

    def query(
        self,
        url: str,
        gql: str,
        variables: Optional[Dict[str, Any]] = None,
        retries: int = 3,
        backoff_s: float = 0.6,
    ) -> Dict[str, Any]:
        """POST one GraphQL query and return its ``data``.

        Network errors, HTTP 5xx and rate limits are retried with a linear
        backoff (``Retry-After`` wins when GRID sends it). Other HTTP or
        GraphQL errors raise ``RuntimeError`` immediately. Exhausted rate
        limits raise :class:`GridRateLimitError`.
        """
        if not self.api_key:
            raise RuntimeError("GRID_API_KEY is missing. Set it in the environment or a .env file.")

        variables = variables or {}
        cache_file = self._cache_file(url, gql, variables)
        cached = self._cache_get(cache_file)
        if cached is not None:
            return cached

        last_error: Optional[Exception] = None
        for attempt in range(1, retries + 1):
            try:
                resp = self.session.post(
                    url, json={"query": gql, "variables": variables}, timeout=self.timeout_s
                )
                data = _data_from_response(resp)
            except requests.RequestException as exc:
                logger.warning("GRID request to %s failed (attempt %d): %s", url, attempt, exc)
                last_error = exc
                time.sleep(backoff_s * attempt)
                continue
            except _Retry as retry:
                last_error = retry.error
                rate_limited = isinstance(retry.error, GridRateLimitError)
                wait = retry.delay_s or backoff_s * (attempt + 1 if rate_limited else attempt)
                logger.info("GRID %s, retrying in %.1fs", retry.error, wait)
                time.sleep(wait)
                continue

            self._cache_put(cache_file, data)
            return data

        if isinstance(last_error, GridRateLimitError):
            raise GridRateLimitError(
                f"Rate limited after {retries} attempts", retry_after_s=last_error.retry_after_s
            )
        raise RuntimeError(f"Failed after {retries} attempts. Last error: {last_error}")


def query_across_endpoints(
    client: GridGraphQLClient,
    urls: List[str],
    gql: str,
    variables: Optional[Dict[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Try each endpoint in turn; the first one that answers wins."""
    failures: List[str] = []
    for url in urls:
        try:
            return url, client.query(url, gql, variables)
        except GridRateLimitError:
            # endpoints share one key quota, so failing over would not help
            raise
        except RuntimeError as exc:
            logger.info("GRID endpoint %s failed: %s", url, exc)
            failures.append(f"{url}: {exc}")
    raise RuntimeError("All GRID endpoints failed. " + " | ".join(failures))
