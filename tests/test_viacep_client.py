# tests/test_viacep_client.py
import httpx
import pytest

from cep_label.clients import AddressLookupService, ViaCEPAsyncClient
from cep_label.errors import (
    InvalidRequestError,
    LookupConnectionError,
    MissingParameterError,
    NotFoundError,
)
from cep_label.resolver import AddressResolver
from tests.conftest import PAULISTA_RAW, SE_RAW

BASE = "https://viacep.test/ws"


def registry(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/ws/01310100/json/":
        return httpx.Response(200, json=PAULISTA_RAW)
    if path == "/ws/99999999/json/":
        return httpx.Response(200, json={"erro": True})
    if path == "/ws/88888888/json/":
        return httpx.Response(200, json={"erro": "true"})
    if path == "/ws/00000000/json/":
        return httpx.Response(500)
    if path == "/ws/11111111/json/":
        return httpx.Response(200, content=b"<html>maintenance</html>")
    if path == "/ws/01310101/json/":
        return httpx.Response(400)
    if path == "/ws/SP/São Paulo/Pa/json/":
        return httpx.Response(400)
    if path == "/ws/SP/São Paulo/Augusta/json/":
        return httpx.Response(503)
    if path == "/ws/SP/São Paulo/Paulista/json/":
        return httpx.Response(200, json=[PAULISTA_RAW])
    if path == "/ws/SP/São Paulo/Praça da Sé/json/":
        return httpx.Response(200, json=SE_RAW)
    return httpx.Response(200, json=[])


def make_client(handler=registry, **kwargs) -> ViaCEPAsyncClient:
    kwargs.setdefault("max_retries", 0)
    return ViaCEPAsyncClient(api_url=BASE + "/", transport=httpx.MockTransport(handler), **kwargs)


def test_client_satisfies_lookup_protocol():
    assert isinstance(make_client(), AddressLookupService)


@pytest.mark.asyncio
async def test_lookup_by_code():
    async with make_client() as client:
        raw = await client.lookup_by_code("01310100")
    assert raw["logradouro"] == "AVENIDA PAULISTA"


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["99999999", "88888888"])
async def test_erro_flag_means_not_found(code):
    async with make_client() as client:
        with pytest.raises(NotFoundError):
            await client.lookup_by_code(code)


@pytest.mark.asyncio
async def test_http_error_is_a_connection_error():
    async with make_client() as client:
        with pytest.raises(LookupConnectionError, match="HTTP 500"):
            await client.lookup_by_code("00000000")


@pytest.mark.asyncio
async def test_undecodable_body_is_a_connection_error():
    async with make_client() as client:
        with pytest.raises(LookupConnectionError):
            await client.lookup_by_code("11111111")


@pytest.mark.asyncio
async def test_lookup_by_street_quotes_path_segments():
    async with make_client() as client:
        many = await client.lookup_by_street("SP", "São Paulo", "Paulista")
        one = await client.lookup_by_street("SP", "São Paulo", "Praça da Sé")
        none = await client.lookup_by_street("SP", "São Paulo", "Nada")
    assert [r["cep"] for r in many] == ["01310-100"]
    assert one["cep"] == "01001-000"
    assert none == []


@pytest.mark.asyncio
async def test_request_errors_are_retried(monkeypatch):
    monkeypatch.setattr("cep_label.core.retry.random.uniform", lambda a, b: 0.0)
    attempts = []

    def flaky(request: httpx.Request) -> httpx.Response:
        attempts.append(request.url.path)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return registry(request)

    async with make_client(flaky, max_retries=2) as client:
        raw = await client.lookup_by_code("01310100")
    assert raw["uf"] == "sp"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_exhausted_retries_raise_connection_error(monkeypatch):
    monkeypatch.setattr("cep_label.core.retry.random.uniform", lambda a, b: 0.0)
    attempts = []

    def down(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        raise httpx.ConnectTimeout("timed out", request=request)

    async with make_client(down, max_retries=2) as client:
        with pytest.raises(LookupConnectionError):
            await client.lookup_by_code("01310100")
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_client_requires_context_manager():
    with pytest.raises(RuntimeError):
        await make_client().lookup_by_code("01310100")


@pytest.mark.asyncio
async def test_resolver_over_http_client(cache):
    async with make_client() as client:
        r = AddressResolver(client, cache)
        a = await r.resolve_by_code("01310-100")
        with pytest.raises(NotFoundError):
            await r.resolve_by_code("99999999")
    assert a.display_code == "01310-100"
    assert a.city == "São Paulo"


@pytest.mark.asyncio
async def test_rejected_code_request_is_an_input_error():
    async with make_client() as client:
        with pytest.raises(InvalidRequestError, match="HTTP 400"):
            await client.lookup_by_code("01310101")


@pytest.mark.asyncio
async def test_rejected_street_request_is_a_missing_parameter_error(cache):
    async with make_client() as client:
        r = AddressResolver(client, cache)
        with pytest.raises(MissingParameterError, match="HTTP 400"):
            await r.resolve_by_street("SP", "São Paulo", "Pa")
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_street_server_error_stays_a_connection_error():
    async with make_client() as client:
        with pytest.raises(LookupConnectionError, match="HTTP 503") as info:
            await client.lookup_by_street("SP", "São Paulo", "Augusta")
    assert not isinstance(info.value, MissingParameterError)


@pytest.mark.asyncio
async def test_rejected_requests_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(404)

    async with make_client(handler, max_retries=3) as client:
        with pytest.raises(InvalidRequestError):
            await client.lookup_by_code("01310100")
    assert len(calls) == 1
