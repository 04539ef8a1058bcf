# tests/conftest.py
import asyncio
from typing import Any, Dict, List, Tuple

import pytest

from cep_label.cache import LookupCache
from cep_label.errors import NotFoundError
from cep_label.resolver import AddressResolver

PAULISTA_RAW = {
    "cep": "01310-100",
    "logradouro": "AVENIDA PAULISTA",
    "complemento": "de 612 a 1510 - lado par",
    "bairro": "BELA VISTA",
    "localidade": "SÃO PAULO",
    "uf": "sp",
    "ibge": "3550308",
    "gia": "1004",
    "ddd": "11",
    "siafi": "7107",
}

SE_RAW = {
    "cep": "01001-000",
    "logradouro": "praça da sé",
    "complemento": None,
    "bairro": "sé",
    "localidade": "são paulo",
    "uf": "SP",
    "ibge": "3550308",
    "ddd": "11",
}


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLookupService:
    """In-memory registry that records every call it receives."""

    def __init__(self, records=None, streets=None, delay: float = 0.0) -> None:
        self.records: Dict[str, Any] = dict(records or {})
        self.streets: Dict[Tuple[str, str, str], Any] = dict(streets or {})
        self.failures: Dict[str, BaseException] = {}
        self.delay = delay
        self.code_calls: List[str] = []
        self.street_calls: List[Tuple[str, str, str]] = []

    async def lookup_by_code(self, code: str):
        self.code_calls.append(code)
        if self.delay:
            await asyncio.sleep(self.delay)
        if code in self.failures:
            raise self.failures[code]
        if code not in self.records:
            raise NotFoundError(code)
        return self.records[code]

    async def lookup_by_street(self, region: str, city: str, street: str):
        self.street_calls.append((region, city, street))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.streets.get((region, city, street), [])


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def service():
    return FakeLookupService(
        records={"01310100": PAULISTA_RAW, "01001000": SE_RAW},
        streets={("SP", "São Paulo", "Paulista"): [PAULISTA_RAW]},
    )


@pytest.fixture
def cache(clock):
    return LookupCache(default_ttl=300, clock=clock)


@pytest.fixture
def resolver(service, cache):
    return AddressResolver(service, cache, timeout=1.0)
