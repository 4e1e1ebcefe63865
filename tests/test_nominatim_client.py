"""Retry, cancellation and decoding behaviour of the Nominatim client."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from citygeo.services.exceptions import TerminalProviderError, TransientProviderError
from citygeo.services.nominatim import NominatimClient, is_retryable_status

PARIS = {
    "place_id": 88066702,
    "lat": "48.8588897",
    "lon": "2.3200410",
    "name": "Paris",
    "display_name": "Paris, Île-de-France, France métropolitaine, France",
    "class": "boundary",
    "type": "administrative",
    "importance": 0.88,
    "addresstype": "city",
    "address": {
        "city": "Paris",
        "state": "Île-de-France",
        "country": "France",
        "country_code": "fr",
        "ISO3166-2-lvl4": "FR-IDF",
    },
}


def _sequence_handler(responses):
    """Serve the given responses (or raise the given exceptions) in order."""

    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        item = responses[len(calls)]
        calls.append(request)
        if isinstance(item, Exception):
            raise item
        return item

    return handler, calls


@pytest.mark.asyncio
async def test_fetch_sends_search_parameters_and_user_agent(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(200, json=[PARIS])])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("Paris", 10, "zh-CN,zh")

    request = calls[0]
    assert request.method == "GET"
    assert request.url.host == "nominatim.test"
    assert request.url.path == "/search"
    assert request.url.params["q"] == "Paris"
    assert request.url.params["format"] == "json"
    assert request.url.params["addressdetails"] == "1"
    assert request.url.params["limit"] == "10"
    assert request.url.params["accept-language"] == "zh-CN,zh"
    assert request.headers["User-Agent"] == "citygeo-tests/1.0 (https://example.test/citygeo)"

    assert len(results) == 1
    result = results[0]
    assert result.place_id == 88066702
    assert result.lat == "48.8588897"
    assert result.class_ == "boundary"
    assert result.address_type == "city"
    assert result.address.state == "Île-de-France"
    assert result.address.town == ""
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_fetch_omits_accept_language_when_empty(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(200, json=[])])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("Paris", 4)

    assert results == []
    assert "accept-language" not in calls[0].url.params


@pytest.mark.asyncio
async def test_fetch_tolerates_sparse_and_null_fields(nominatim_settings, recording_sleep):
    payload = [
        {"place_id": 1, "lat": "1.5", "lon": "2.5", "name": None, "display_name": "Somewhere"},
        {"place_id": 2, "lat": "3", "lon": "4", "address": {"town": "Hallstatt", "state": None}},
    ]
    handler, _ = _sequence_handler([httpx.Response(200, json=payload)])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("x", 2)

    assert results[0].name == ""
    assert results[0].address.city == ""
    assert results[1].address.town == "Hallstatt"
    assert results[1].address.state == ""


@pytest.mark.asyncio
async def test_rate_limited_twice_then_success(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler(
        [httpx.Response(429), httpx.Response(429), httpx.Response(200, json=[PARIS])]
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("Paris", 2, "en")

    assert len(calls) == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert [r.place_id for r in results] == [88066702]


@pytest.mark.asyncio
async def test_rate_limited_three_times_fails_after_budget(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(429) for _ in range(3)])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        with pytest.raises(TransientProviderError) as exc_info:
            await client.fetch("Paris", 2, "en")

    assert len(calls) == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert sum(recording_sleep.delays) == 3.0
    assert exc_info.value.status_code == 429
    assert "status=429" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_and_server_errors_are_retried(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler(
        [
            httpx.ConnectError("connection refused"),
            httpx.Response(503, text="maintenance"),
            httpx.Response(200, json=[PARIS]),
        ]
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("Paris", 2)

    assert len(calls) == 3
    assert len(results) == 1


@pytest.mark.asyncio
async def test_last_transport_error_is_surfaced_with_cause(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler(
        [httpx.Response(500), httpx.Response(502), httpx.ReadTimeout("too slow")]
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        with pytest.raises(TransientProviderError) as exc_info:
            await client.fetch("Paris", 2)

    assert len(calls) == 3
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_client_error_is_terminal_and_body_is_capped(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(400, text="x" * 10_000)])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        with pytest.raises(TerminalProviderError) as exc_info:
            await client.fetch("Paris", 2)

    assert len(calls) == 1
    assert recording_sleep.delays == []
    assert exc_info.value.status_code == 400
    assert len(exc_info.value.body) == 4096
    assert "status=400" in str(exc_info.value)


@pytest.mark.asyncio
async def test_undecodable_payload_is_terminal(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(200, text="<html>busy</html>")])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        with pytest.raises(TerminalProviderError):
            await client.fetch("Paris", 2)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_cancellation_during_backoff_propagates(nominatim_settings):
    calls = 0
    sleep_started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(429)

    async def blocking_sleep(delay: float) -> None:
        sleep_started.set()
        await asyncio.sleep(3600)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=blocking_sleep)
        task = asyncio.create_task(client.fetch("Paris", 2))
        await sleep_started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert calls == 1


@pytest.mark.asyncio
async def test_cancellation_with_real_backoff_returns_promptly(nominatim_settings):
    first_response = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        first_response.set()
        return httpx.Response(503)

    loop = asyncio.get_running_loop()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings)
        task = asyncio.create_task(client.fetch("Paris", 2))
        await first_response.wait()
        await asyncio.sleep(0.05)
        started = loop.time()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        elapsed = loop.time() - started

    assert elapsed < 0.5


@pytest.mark.asyncio
async def test_cancellation_during_request_is_not_retried(nominatim_settings, recording_sleep):
    request_started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        request_started.set()
        await asyncio.sleep(3600)
        return httpx.Response(200, json=[])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        task = asyncio.create_task(client.fetch("Paris", 2))
        await request_started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert recording_sleep.delays == []


def test_retryable_status_classification():
    assert is_retryable_status(429)
    assert is_retryable_status(500)
    assert is_retryable_status(504)
    assert not is_retryable_status(400)
    assert not is_retryable_status(404)
    assert not is_retryable_status(200)


class _BrokenBody(httpx.AsyncByteStream):
    """Response body whose connection drops after the first chunk."""

    async def __aiter__(self):
        yield b'{"error": "Bad'
        raise httpx.ReadError("connection reset by peer")


@pytest.mark.asyncio
async def test_client_error_with_unreadable_body_is_terminal(nominatim_settings, recording_sleep):
    handler, calls = _sequence_handler([httpx.Response(400, stream=_BrokenBody())])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        with pytest.raises(TerminalProviderError) as exc_info:
            await client.fetch("Paris", 2)

    assert len(calls) == 1
    assert recording_sleep.delays == []
    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.__cause__, httpx.ReadError)


@pytest.mark.asyncio
async def test_missing_or_null_place_id_decodes_as_zero(nominatim_settings, recording_sleep):
    payload = [
        {"lat": "1.5", "lon": "2.5", "name": "Nowhere"},
        {"place_id": None, "lat": "3", "lon": "4", "name": "Elsewhere"},
    ]
    handler, _ = _sequence_handler([httpx.Response(200, json=payload)])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = NominatimClient(http_client, settings=nominatim_settings, sleep=recording_sleep)
        results = await client.fetch("x", 2)

    assert [r.place_id for r in results] == [0, 0]
    assert [r.name for r in results] == ["Nowhere", "Elsewhere"]
