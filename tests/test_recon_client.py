import json

import httpx
import pytest

from exceptions import InvalidResponseError
from recon_client import (
    DEFAULT_RECON_URL, ReconClientConfig, build_request_body,
    fetch_and_validate_json, fetch_connection_details
)
from schemas import ReconContext, ReconResponse


@pytest.fixture
def context(token):
    return ReconContext(hinfahrtDatum="2026-10-18T08:00:00", hinfahrtRecon=token)


@pytest.fixture
def config():
    return ReconClientConfig(cookie="session=abc", url="https://example.test/recon")


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_build_request_body(context):
    body = build_request_body(context)

    assert body["anfrageZeitpunkt"] == "2026-10-18T08:00:00"
    assert body["ctxRecon"] == context.hinfahrtRecon
    assert body["klasse"] == "KLASSE_2"
    assert body["reisende"] == [{
        "typ": "ERWACHSENER",
        "ermaessigungen": [{"art": "KEINE_ERMAESSIGUNG", "klasse": "KLASSENLOS"}],
        "anzahl": 1,
        "alter": [],
    }]
    for flag in ("reservierungsKontingenteVorhanden", "nurDeutschlandTicketVerbindungen",
                 "deutschlandTicketVorhanden", "sitzplatzOnly"):
        assert body[flag] is False


def test_config_from_env(monkeypatch):
    monkeypatch.delenv("RECON_URL", raising=False)
    monkeypatch.setenv("RECON_COOKIE", "abc")

    config = ReconClientConfig.from_env()

    assert config.cookie == "abc"
    assert config.url == DEFAULT_RECON_URL


@pytest.mark.asyncio
async def test_fetch_connection_details(context, config, recon_response):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=recon_response)

    async with mock_client(handler) as client:
        result = await fetch_connection_details(context, config, client)

    assert isinstance(result, ReconResponse)
    legs = result.verbindungen[0].verbindungsAbschnitte
    assert [stop.id for stop in legs[0].halte] == ["A=1@L=8000105@", "A=1@L=8011160@"]
    assert legs[1].halte == []

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://example.test/recon"
    assert request.headers["Cookie"] == "session=abc"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == build_request_body(context)


@pytest.mark.asyncio
async def test_non_2xx_status(context, config):
    async with mock_client(lambda request: httpx.Response(403, text="denied")) as client:
        with pytest.raises(InvalidResponseError) as exc_info:
            await fetch_connection_details(context, config, client)

    assert exc_info.value.status_code == 403
    assert exc_info.value.url == config.url
    assert exc_info.value.stage == "fetch"


@pytest.mark.asyncio
async def test_network_error(context, config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(InvalidResponseError) as exc_info:
            await fetch_connection_details(context, config, client)

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_json_response(context, config):
    async with mock_client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(InvalidResponseError):
            await fetch_connection_details(context, config, client)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {},
    {"verbindungen": []},
    {"verbindungen": [{"verbindungsAbschnitte": []}]},
    {"verbindungen": [{"verbindungsAbschnitte": [{"halte": [{"id": 1}]}]}]},
    {"verbindungen": [{"verbindungsAbschnitte": [{}]}]},
])
async def test_schema_mismatch_response(context, config, body):
    async with mock_client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(InvalidResponseError) as exc_info:
            await fetch_connection_details(context, config, client)

    assert exc_info.value.status_code == 200


@pytest.mark.asyncio
async def test_fetch_and_validate_json_get(recon_response):
    def handler(request):
        assert request.method == "GET"
        return httpx.Response(200, json=recon_response)

    async with mock_client(handler) as client:
        result = await fetch_and_validate_json(client, "https://example.test/x", ReconResponse)

    assert len(result.verbindungen) == 1


@pytest.mark.asyncio
async def test_fetch_connection_details_own_client(monkeypatch, context, config, recon_response):
    real_client = httpx.AsyncClient
    created = []

    def client_factory(*args, **kwargs):
        client = real_client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json=recon_response)))
        created.append(client)
        return client

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)

    result = await fetch_connection_details(context, config)

    assert len(result.verbindungen) == 1
    assert len(created) == 1
    assert created[0].is_closed
