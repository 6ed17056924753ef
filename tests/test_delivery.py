from __future__ import annotations

import asyncio
import json
import logging

import httpx
import respx

from tail_forwarder.config import ForwarderConfig
from tail_forwarder.delivery import deliver, resolve_endpoint
from tail_forwarder.models import OutputRecord

LEGACY_URL = "https://http-intake.logs.datadoghq.com/v1/input/secret-key"


def _config(**overrides) -> ForwarderConfig:
    values = {"api_key": "secret-key", "service_name": "tail-shipper"}
    values.update(overrides)
    return ForwarderConfig(**values)


def _record(message: str = "hello") -> OutputRecord:
    return OutputRecord(
        timestamp=1_700_000_000_000,
        status="info",
        message=message,
        service="tail-shipper",
        ddsource="cloudflare",
        ddtags="service:tail-shipper,source:cloudflare-tail-worker,env:dev",
        hostname="tail-shipper",
        attributes={"event_type": "cloudflare_worker_log", "ray_id": None},
    )


def _errors(caplog) -> list[logging.LogRecord]:
    return [record for record in caplog.records if record.levelno >= logging.ERROR]


def test_endpoint_without_site_embeds_key_in_path() -> None:
    endpoint = resolve_endpoint(_config())

    assert endpoint.url == LEGACY_URL
    assert endpoint.headers == {"Content-Type": "application/json", "DD-API-KEY": "secret-key"}


def test_endpoint_with_site_uses_header_auth() -> None:
    endpoint = resolve_endpoint(_config(site="datadoghq.eu"))

    assert endpoint.url == "https://http-intake.logs.datadoghq.eu/api/v2/logs"
    assert "secret-key" not in endpoint.url
    assert endpoint.headers["DD-API-KEY"] == "secret-key"


def test_blank_site_falls_back_to_legacy_endpoint() -> None:
    assert resolve_endpoint(_config(site="   ")).url == LEGACY_URL
    assert resolve_endpoint(_config(site=" datadoghq.eu/ ")).url == "https://http-intake.logs.datadoghq.eu/api/v2/logs"


def test_deliver_posts_json_array(caplog) -> None:
    caplog.set_level(logging.INFO, logger="tail_forwarder")

    with respx.mock(assert_all_called=True) as router:
        route = router.post(LEGACY_URL).respond(202)
        asyncio.run(deliver([_record("one"), _record("two")], _config()))

    request = route.calls.last.request
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["DD-API-KEY"] == "secret-key"
    body = json.loads(request.content)
    assert [item["message"] for item in body] == ["one", "two"]
    assert "ray_id" not in body[0]
    assert body[0]["ddsource"] == "cloudflare"
    assert "Successfully sent 2 log entries" in caplog.text
    assert _errors(caplog) == []


def test_deliver_empty_batch_still_posts(caplog) -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.post(LEGACY_URL).respond(200)
        asyncio.run(deliver([], _config()))

    assert route.call_count == 1
    assert json.loads(route.calls.last.request.content) == []


def test_deliver_missing_api_key_makes_no_request(caplog) -> None:
    caplog.set_level(logging.INFO, logger="tail_forwarder")

    with respx.mock(assert_all_called=False, assert_all_mocked=False) as router:
        route = router.route().respond(200)
        asyncio.run(deliver([_record()], _config(api_key=None)))

    assert not route.called
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "DATADOG_API_KEY" in errors[0].getMessage()


def test_deliver_missing_service_name_makes_no_request(caplog) -> None:
    with respx.mock(assert_all_called=False, assert_all_mocked=False) as router:
        route = router.route().respond(200)
        asyncio.run(deliver([_record()], _config(service_name="")))

    assert not route.called
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "SERVICE_NAME" in errors[0].getMessage()


def test_deliver_logs_rejected_response(caplog) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.post(LEGACY_URL).respond(500, text="rate limited")
        asyncio.run(deliver([_record()], _config()))

    errors = _errors(caplog)
    assert len(errors) == 1
    message = errors[0].getMessage()
    assert "500" in message
    assert "rate limited" in message
    assert "Internal Server Error" in message


def test_deliver_swallows_transport_errors(caplog) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.post(LEGACY_URL).mock(side_effect=httpx.ConnectError("connection refused"))
        asyncio.run(deliver([_record()], _config()))

    errors = _errors(caplog)
    assert len(errors) == 1
    assert "ConnectError" in errors[0].getMessage()
    assert errors[0].exc_info is not None


def test_deliver_uses_site_endpoint_and_injected_client() -> None:
    async def _run() -> None:
        async with httpx.AsyncClient() as client:
            await deliver([_record()], _config(site="us5.datadoghq.com"), client=client)
            assert not client.is_closed

    with respx.mock(assert_all_called=True) as router:
        route = router.post("https://http-intake.logs.us5.datadoghq.com/api/v2/logs").respond(202)
        asyncio.run(_run())

    assert route.calls.last.request.headers["DD-API-KEY"] == "secret-key"
