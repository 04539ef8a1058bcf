"""Async client for the ViaCEP postal-code registry."""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Union
from urllib.parse import quote

import httpx
import orjson

from cep_label.core.retry import RETRIABLE, retry_logic
from cep_label.errors import InvalidRequestError, LookupConnectionError, NotFoundError
from cep_label.models import RawRecord

logger = logging.getLogger(__name__)


def _is_not_found(data: Any) -> bool:
    # ViaCEP answers {"erro": true} (older deployments: "true")
    return isinstance(data, dict) and data.get("erro") in (True, "true")


class ViaCEPAsyncClient:
    """Minimal async wrapper around the ViaCEP JSON API."""
    def __init__(
        self,
        api_url: str = os.getenv("CEP_API_URL", "https://viacep.com.br/ws"),
        request_timeout: float = 10.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        max_connections: int = 10,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Create a new client.

        Parameters
        ----------
        api_url:
            Base URL of the registry, without the trailing ``/``.
        request_timeout:
            Timeout applied to every HTTP request.
        max_retries, backoff_factor:
            Retry policy for transport faults, see :func:`retry_logic`.
        max_connections:
            Maximum number of concurrent HTTP connections.
        client:
            Externally owned :class:`httpx.AsyncClient`; it is not closed on exit.
        transport:
            Optional transport for the owned client (tests use
            :class:`httpx.MockTransport`).
        """
        self.api_url = api_url.rstrip("/")
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._timeout = httpx.Timeout(request_timeout)
        self._limits = httpx.Limits(
            max_connections=max_connections, max_keepalive_connections=max_connections
        )
        self._transport = transport
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ViaCEPAsyncClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        """Close the HTTP client when leaving the context manager."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> None:
        """Instantiate the underlying :class:`httpx.AsyncClient` if missing."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, limits=self._limits, transport=self._transport)

    def _require_client(self) -> httpx.AsyncClient:
        """Return the initialized HTTP client or raise ``RuntimeError``."""
        if self._client is None:
            raise RuntimeError(
                "Client not initialized; use 'async with ViaCEPAsyncClient()'")
        return self._client

    async def _get_json(self, url: str) -> Any:
        client = self._require_client()
        resp = await client.get(url)
        resp.raise_for_status()
        return orjson.loads(resp.content)

    async def _fetch(self, url: str) -> Any:
        """GET ``url`` with retries and translate failures to lookup errors."""
        try:
            return await retry_logic(
                self._get_json, self.max_retries, self.backoff_factor, url)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if 400 <= status < 500:
                raise InvalidRequestError(
                    f"HTTP {status} from {url}: request rejected") from exc
            raise LookupConnectionError(f"HTTP {status} from {url}") from exc
        except RETRIABLE as exc:
            raise LookupConnectionError(
                f"{type(exc).__name__} while requesting {url}") from exc

    async def lookup_by_code(self, code: str) -> RawRecord:
        """Return the raw record for an 8-digit ``code``.

        Raises
        ------
        NotFoundError
            The registry has no such code.
        InvalidRequestError
            The registry rejected the request (4xx).
        LookupConnectionError
            Transport failure, 5xx status or an undecodable body.
        """
        url = f"{self.api_url}/{code}/json/"
        data = await self._fetch(url)
        if _is_not_found(data):
            raise NotFoundError(code)
        if not isinstance(data, dict):
            raise LookupConnectionError(f"Unexpected payload for {code}")
        logger.debug("Fetched %s", code)
        return data

    async def lookup_by_street(
        self, region: str, city: str, street: str
    ) -> Union[RawRecord, List[RawRecord]]:
        """Return every raw record matching a street in ``city``/``region``."""
        url = (
            f"{self.api_url}/{quote(region)}/{quote(city)}/{quote(street)}/json/"
        )
        data = await self._fetch(url)
        if _is_not_found(data):
            return []
        if isinstance(data, (dict, list)):
            logger.debug(
                "Fetched %d records for %s/%s/%s",
                len(data) if isinstance(data, list) else 1, region, city, street)
            return data
        raise LookupConnectionError(
            f"Unexpected payload for {region}/{city}/{street}")
