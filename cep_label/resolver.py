"""Address resolution: cache, then registry, then normalization."""

from __future__ import annotations

import asyncio
import logging
import re
from time import perf_counter
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from cep_label.cache import CacheConfig, LookupCache, code_key, street_key
from cep_label.clients.base import AddressLookupService
from cep_label.constants import MISS
from cep_label.errors import (
    CepLabelError,
    InvalidCodeError,
    InvalidRangeError,
    LookupConnectionError,
    MissingParameterError,
    NotFoundError,
)
from cep_label.models import Address, RangeOutcome, RawRecord
from cep_label.normalization import (
    CODE_LENGTH,
    clean_text,
    code_to_int,
    digits_only,
    int_to_code,
    normalize_code,
    normalize_region,
    title_case,
)
from cep_label.telemetry.metrics import Metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0
DEFAULT_RANGE_LIMIT = 10
REGION_RE = re.compile(r"[A-Za-z]{2}")


def _canonical_or(value: Any, fallback: str = "") -> str:
    digits = digits_only(clean_text(value))
    return digits if len(digits) == CODE_LENGTH else fallback


def address_from_record(raw: RawRecord, fallback_code: str = "") -> Address:
    """Normalize a registry record (ViaCEP field names) into an :class:`Address`."""
    return Address(
        postal_code=_canonical_or(raw.get("cep"), fallback_code),
        street=title_case(clean_text(raw.get("logradouro"))),
        complement=title_case(clean_text(raw.get("complemento"))),
        neighborhood=title_case(clean_text(raw.get("bairro"))),
        city=title_case(clean_text(raw.get("localidade"))),
        region=normalize_region(raw.get("uf")),
        region_numeric_id=clean_text(raw.get("ibge")),
        area_code=clean_text(raw.get("ddd")),
        financial_region_id=clean_text(raw.get("siafi")),
        state_tax_id=clean_text(raw.get("gia")),
    )


def address_from_form(
    postal_code: Optional[str] = None,
    street: Optional[str] = None,
    complement: Optional[str] = None,
    neighborhood: Optional[str] = None,
    city: Optional[str] = None,
    region: Optional[str] = None,
) -> Address:
    """Build an :class:`Address` from partial user input, without any lookup.

    A postal code that is not 8 digits is kept as typed so it can still be
    printed.
    """
    typed = clean_text(postal_code)
    return Address(
        postal_code=_canonical_or(typed, typed),
        street=title_case(clean_text(street)),
        complement=title_case(clean_text(complement)),
        neighborhood=title_case(clean_text(neighborhood)),
        city=title_case(clean_text(city)),
        region=normalize_region(region),
    )


class AddressResolver:
    """
    Resolve addresses by postal code, street or code range.

    Results are cached per request shape. Concurrent requests for the same
    uncached key share a single call to the lookup service.
    """

    def __init__(
        self,
        service: AddressLookupService,
        cache: Optional[LookupCache] = None,
        *,
        cache_config: Optional[CacheConfig] = None,
        timeout: float = DEFAULT_TIMEOUT,
        range_limit: int = DEFAULT_RANGE_LIMIT,
        metrics: Optional[Metrics] = None,
    ) -> None:
        """Create a resolver.

        Parameters
        ----------
        service:
            Registry client implementing :class:`AddressLookupService`.
        cache:
            Cache to use; a new one built from ``cache_config`` otherwise.
        timeout:
            Seconds allowed for each service call.
        range_limit:
            Default maximum number of codes looked up by :meth:`resolve_range`.
        metrics:
            Counters sink; a private one is created if omitted.
        """
        self._service = service
        self.cache = cache if cache is not None else LookupCache.from_config(
            cache_config or CacheConfig())
        self.timeout = timeout
        self.range_limit = range_limit
        self.metrics = metrics or Metrics()
        self._inflight: Dict[str, asyncio.Task[Any]] = {}

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #
    async def _call_service(self, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run one bounded service call and map its failures to lookup errors."""
        self.metrics.inc("service_calls")
        start = perf_counter()
        try:
            return await asyncio.wait_for(func(*args), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            err = LookupConnectionError(
                f"Lookup timed out after {self.timeout:.1f} s")
            self._record_failure(err)
            raise err from exc
        except NotFoundError:
            self.metrics.inc("not_found")
            raise
        except CepLabelError as exc:
            self._record_failure(exc)
            raise
        except OSError as exc:
            err = LookupConnectionError(str(exc) or type(exc).__name__)
            self._record_failure(err)
            raise err from exc
        finally:
            self.metrics.observe_stage("lookup", perf_counter() - start)

    def _record_failure(self, exc: BaseException) -> None:
        self.metrics.inc("service_failures")
        self.metrics.record_error(exc)
        logger.warning("Lookup service failure: %s", exc)

    async def _coalesce(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Join the in-flight lookup for ``key`` or start a new one."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._finish_inflight(k, t))
        else:
            self.metrics.inc("coalesced")
            logger.debug("Joining in-flight lookup: %s", key)
        return await asyncio.shield(task)

    def _finish_inflight(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # every waiter may have gone away; mark the exception as seen
            task.exception()

    def _cached(self, key: str) -> Any:
        value = self.cache.get(key)
        if value is MISS:
            self.metrics.inc("cache_misses")
        else:
            self.metrics.inc("cache_hits")
            logger.debug("Cache hit: %s", key)
        return value

    async def _fetch_code(self, code: str, key: str) -> Address:
        raw = await self._call_service(self._service.lookup_by_code, code)
        address = address_from_record(raw, fallback_code=code)
        self.cache.set(key, address)
        logger.info("Resolved %s: %s - %s", code, address.city, address.region)
        return address

    async def _fetch_street(self, region: str, city: str, street: str, key: str) -> tuple:
        try:
            raw = await self._call_service(
                self._service.lookup_by_street, region, city, street)
        except NotFoundError:
            raw = []
        records: List[RawRecord] = [raw] if isinstance(raw, Mapping) else list(raw)
        addresses = tuple(address_from_record(r) for r in records)
        self.cache.set(key, addresses)
        logger.info(
            "Resolved %d addresses for %s/%s/%s", len(addresses), region, city, street)
        return addresses

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    async def resolve_by_code(self, code: str) -> Address:
        """Return the address registered for ``code``.

        Raises
        ------
        InvalidCodeError
            ``code`` does not hold exactly 8 digits.
        NotFoundError
            The registry has no such code.
        LookupConnectionError
            The registry could not be reached in time.
        """
        canonical = normalize_code(code)
        key = code_key(canonical)
        cached = self._cached(key)
        if cached is not MISS:
            return cached
        return await self._coalesce(key, lambda: self._fetch_code(canonical, key))

    async def resolve_by_street(self, region: str, city: str, street: str) -> List[Address]:
        """Return every address on ``street`` in ``city``/``region``.

        An empty list is a valid answer. The cache key uses the arguments
        exactly as given.
        """
        missing = [
            name for name, value in (("region", region), ("city", city), ("street", street))
            if not clean_text(value)
        ]
        if missing:
            raise MissingParameterError(
                f"Missing required parameter(s): {', '.join(missing)}")
        if not REGION_RE.fullmatch(clean_text(region)):
            raise MissingParameterError(
                f"Region must be a 2-letter UF code, got {region!r}")

        key = street_key(region, city, street)
        cached = self._cached(key)
        if cached is MISS:
            cached = await self._coalesce(
                key, lambda: self._fetch_street(region, city, street, key))
        return list(cached)

    async def resolve_range_detailed(
        self, start_code: str, end_code: str, max_results: Optional[int] = None
    ) -> List[RangeOutcome]:
        """Look up consecutive codes from ``start_code`` and report each outcome.

        At most ``max_results`` codes are looked up concurrently; the
        resolver's range limit (also the default) caps any larger value.
        Outcomes are in ascending code order.
        """
        try:
            start = code_to_int(start_code)
            end = code_to_int(end_code)
        except InvalidCodeError as exc:
            raise InvalidRangeError(f"Invalid range bound: {exc.value!r}") from exc
        if start > end:
            raise InvalidRangeError(
                f"Range start {int_to_code(start)} is after end {int_to_code(end)}")

        limit = self.range_limit if max_results is None else max_results
        count = max(0, min(limit, self.range_limit, end - start + 1))
        codes = [int_to_code(start + i) for i in range(count)]

        results = await asyncio.gather(
            *(self.resolve_by_code(c) for c in codes), return_exceptions=True)

        outcomes: List[RangeOutcome] = []
        for code, res in zip(codes, results):
            if isinstance(res, (NotFoundError, LookupConnectionError)):
                logger.debug("Range lookup %s failed: %s", code, res)
                outcomes.append(RangeOutcome(code=code, error=f"{type(res).__name__}: {res}"))
            elif isinstance(res, BaseException):
                raise res
            else:
                outcomes.append(RangeOutcome(code=code, address=res))
        return outcomes

    async def resolve_range(
        self, start_code: str, end_code: str, max_results: Optional[int] = None
    ) -> List[Address]:
        """Like :meth:`resolve_range_detailed` but keep only the successes."""
        outcomes = await self.resolve_range_detailed(start_code, end_code, max_results)
        found = [o.address for o in outcomes if o.address is not None]
        logger.info(
            "Range %s..%s: %d of %d codes resolved",
            outcomes[0].code if outcomes else start_code,
            outcomes[-1].code if outcomes else end_code,
            len(found),
            len(outcomes),
        )
        return found
