"""Bundle-finder connector.

The wallet-bundle heuristic runs on a separate analysis server. This
client only posts the request and parses the response:

  POST {api_url}
    {address, chainId, desiredTokenCount, historyLimit, scope, precision}
  -> {steps: [{name, status, message, ts}],
      suspects: [{address, score, count, totalAnalyzed}],
      hasBundle, fromCache?}

Non-2xx responses raise BundleFinderError with the server's ``error``
message when it sent one. Connection failures are retried; HTTP error
statuses are not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from polydash.config import BundleFinderConfig
from polydash.observability.logger import get_logger

log = get_logger(__name__)

_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "polydash/0.1",
}


class BundleFinderError(RuntimeError):
    """Analysis request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# ── Data Models ──────────────────────────────────────────────────────

@dataclass
class AnalysisStep:
    """Progress entry reported by the analysis server."""
    name: str = ""
    status: str = ""
    message: str = ""
    ts: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status, "message": self.message, "ts": self.ts}


@dataclass
class BundleSuspect:
    """A wallet suspected of trading in a bundle with the target."""
    address: str
    score: float = 0.0
    count: int = 0
    total_analyzed: int = 0

    @property
    def hit_ratio(self) -> float:
        if self.total_analyzed <= 0:
            return 0.0
        return self.count / self.total_analyzed

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "score": round(self.score, 4),
            "count": self.count,
            "total_analyzed": self.total_analyzed,
        }


@dataclass
class BundleAnalysis:
    steps: list[AnalysisStep] = field(default_factory=list)
    suspects: list[BundleSuspect] = field(default_factory=list)
    has_bundle: bool = False
    from_cache: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "suspects": [s.to_dict() for s in self.suspects],
            "has_bundle": self.has_bundle,
            "from_cache": self.from_cache,
        }


# ── Client ───────────────────────────────────────────────────────────

class BundleFinderClient:
    """Async client for the external bundle analysis server."""

    def __init__(
        self,
        config: BundleFinderConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config or BundleFinderConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_secs, connect=10.0),
                headers=_HEADERS,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def analyze(
        self,
        address: str,
        chain_id: str | None = None,
        token_count: int | None = None,
        history_limit: int | None = None,
        *,
        scope: str | None = None,
        precision: str | None = None,
    ) -> BundleAnalysis:
        """Run a bundle analysis for ``address`` on ``chain_id``."""
        cfg = self._config
        payload = {
            "address": address,
            "chainId": chain_id or cfg.default_chain_id,
            "desiredTokenCount": token_count if token_count is not None else cfg.default_token_count,
            "historyLimit": history_limit if history_limit is not None else cfg.default_history_limit,
            "scope": scope or cfg.scope,
            "precision": precision or cfg.precision,
        }

        try:
            raw = await self._post_with_retry(payload)
        except httpx.TransportError as e:
            log.error("bundle_finder.unreachable", address=address[:10], error=str(e))
            raise BundleFinderError(f"Failed to connect to analysis server: {e}") from e

        analysis = _parse_analysis(raw)
        log.info(
            "bundle_finder.analyzed",
            address=address[:10],
            suspects=len(analysis.suspects),
            has_bundle=analysis.has_bundle,
            from_cache=analysis.from_cache,
        )
        return analysis

    async def _post_with_retry(self, payload: dict[str, Any]) -> dict[str, Any]:
        cfg = self._config
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(cfg.max_retries, 1)),
            wait=wait_exponential(min=cfg.retry_backoff_secs, max=cfg.retry_backoff_secs * 8),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        return await retrying(self._post, payload)

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.post(self._config.api_url, json=payload)

        if not resp.is_success:
            raise BundleFinderError(_error_message(resp), status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise BundleFinderError(f"Invalid response from analysis server: {e}") from e
        if not isinstance(data, dict):
            raise BundleFinderError("Invalid response from analysis server: expected an object")
        return data


# ── Parsers ──────────────────────────────────────────────────────────

def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Server error: {resp.status_code}"


def _parse_step(raw: dict[str, Any]) -> AnalysisStep:
    return AnalysisStep(
        name=str(raw.get("name", "")),
        status=str(raw.get("status", "")),
        message=str(raw.get("message", "")),
        ts=float(raw.get("ts", 0) or 0),
    )


def _parse_suspect(raw: dict[str, Any]) -> BundleSuspect:
    return BundleSuspect(
        address=str(raw.get("address", "")),
        score=float(raw.get("score", 0) or 0),
        count=int(raw.get("count", 0) or 0),
        total_analyzed=int(raw.get("totalAnalyzed", raw.get("total_analyzed", 0)) or 0),
    )


def _parse_analysis(raw: dict[str, Any]) -> BundleAnalysis:
    """Parse the server response; malformed entries are dropped."""
    steps = []
    for item in raw.get("steps") or []:
        try:
            steps.append(_parse_step(item))
        except (TypeError, ValueError, AttributeError):
            log.debug("bundle_finder.bad_step", item=str(item)[:80])

    suspects = []
    for item in raw.get("suspects") or []:
        try:
            suspect = _parse_suspect(item)
        except (TypeError, ValueError, AttributeError):
            log.debug("bundle_finder.bad_suspect", item=str(item)[:80])
            continue
        if suspect.address:
            suspects.append(suspect)

    return BundleAnalysis(
        steps=steps,
        suspects=suspects,
        has_bundle=bool(raw.get("hasBundle", raw.get("has_bundle", False))),
        from_cache=bool(raw.get("fromCache", raw.get("from_cache", False))),
    )
