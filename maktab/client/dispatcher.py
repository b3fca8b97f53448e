# maktab/client/dispatcher.py
import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from .breaker import CircuitBreaker
from .environment import EnvironmentProbe, configured_url_from_env, probe_from_env
from .resolver import resolve_candidates

logger = logging.getLogger(__name__)

BACKEND_UNAVAILABLE = "Backend unavailable"
NETWORK_ERROR = "Network error"
REQUEST_FAILED = "Request failed"

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


class ApiResult(BaseModel):
    """Outcome of a dispatch: ``data`` on success, ``error`` otherwise."""
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ApiResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)


def _parse_body(text: str) -> Any:
    """JSON when the body parses, otherwise None (the caller keeps the raw text)."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _error_message(data: Any, text: str) -> str:
    if isinstance(data, dict):
        for key in ("error", "message"):
            if data.get(key):
                return str(data[key])
    return text or REQUEST_FAILED


class ApiClient:
    """
    Resilient request dispatcher.

    Candidates are tried one after another. A transport failure moves on to
    the next candidate; any HTTP response, error statuses included, is the
    final answer. When every candidate is unreachable the breaker trips and
    later calls fail fast until it closes again.

    The breaker belongs to this instance. Pass the same breaker to several
    clients to share it.
    """

    def __init__(
        self,
        probe: Optional[EnvironmentProbe] = None,
        configured_url: Optional[str] = None,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.probe = probe or EnvironmentProbe()
        self.configured_url = configured_url
        self.breaker = breaker or CircuitBreaker()
        # Injected client lifecycle is owned by the caller
        self._http_client = http_client

    @classmethod
    def from_env(cls, **kwargs) -> "ApiClient":
        return cls(probe=probe_from_env(), configured_url=configured_url_from_env(), **kwargs)

    def candidate_urls(self, path: str) -> List[str]:
        if _ABSOLUTE_URL.match(path):
            return [path]
        return [f"{base_url}{path}" for base_url in resolve_candidates(self.probe, self.configured_url)]

    async def request(self, path: str, method: str = "GET", **options) -> ApiResult:
        """
        Sends ``method path`` to the first reachable candidate.

        ``options`` go straight to ``httpx.AsyncClient.request`` (json, headers, params...).
        """
        if self.breaker.should_short_circuit():
            logger.debug(f"Breaker open; not sending {method} {path}.")
            return ApiResult.fail(BACKEND_UNAVAILABLE)

        urls = self.candidate_urls(path)
        if self._http_client is not None:
            result = await self._try_candidates(self._http_client, urls, method, options)
        else:
            async with httpx.AsyncClient() as client:
                result = await self._try_candidates(client, urls, method, options)

        if result is None:
            self.breaker.trip()
            return ApiResult.fail(NETWORK_ERROR)
        return result

    async def authorized_request(self, path: str, token: Optional[str], method: str = "GET", **options) -> ApiResult:
        """Same as ``request`` with JSON and bearer headers added."""
        headers: Dict[str, str] = {"Content-Type": "application/json", **(options.pop("headers", None) or {})}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await self.request(path, method=method, headers=headers, **options)

    async def _try_candidates(self, client: httpx.AsyncClient, urls: List[str], method: str, options: Dict[str, Any]) -> Optional[ApiResult]:
        """Returns None only when no candidate could be reached at all."""
        for url in urls:
            try:
                response = await client.request(method, url, **options)
            except (httpx.RequestError, httpx.InvalidURL) as e:
                logger.debug(f"Candidate {url} unreachable: {e.__class__.__name__}")
                continue

            text = response.text
            data = _parse_body(text)
            if not response.is_success:
                return ApiResult.fail(_error_message(data, text))
            return ApiResult.ok(data if data is not None else text)
        return None
