"""Command dispatcher against a local aiohttp stand-in for the cane."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from canelink.core.exceptions import CommandError, CommandErrorKind
from canelink.models.telemetry_models import Endpoint
from canelink.protocols.command_client import CommandDispatcher

from conftest import unused_port


@pytest.fixture
async def device():
    received = []

    async def echo(request):
        body = await request.json()
        received.append((request.method, request.path, body))
        return web.json_response({"ok": True, "echo": body})

    async def status(request):
        received.append((request.method, request.path, None))
        return web.json_response({"status": "ok", "battery": 87})

    async def broken(request):
        return web.json_response({"error": "overheated"}, status=500)

    async def slow(request):
        await asyncio.sleep(1.5)
        return web.json_response({})

    async def plain(request):
        return web.Response(text="OK")

    async def empty(request):
        return web.Response(text="")

    app = web.Application()
    app.router.add_post("/vibrate", echo)
    app.router.add_post("/calibrate", echo)
    app.router.add_get("/status", status)
    app.router.add_post("/broken", broken)
    app.router.add_post("/slow", slow)
    app.router.add_post("/plain", plain)
    app.router.add_post("/empty", empty)

    server = TestServer(app, host="127.0.0.1")
    await server.start_server()
    server.received = received
    yield server
    await server.close()


@pytest.fixture
def dispatcher(device):
    return CommandDispatcher(Endpoint("127.0.0.1", command_port=device.port), timeout=0.5)


async def test_post_json_and_decode_reply(dispatcher, device):
    reply = await dispatcher.send("/vibrate", {"pattern": "alert", "intensity": 50})
    assert reply == {"ok": True, "echo": {"pattern": "alert", "intensity": 50}}
    assert device.received == [("POST", "/vibrate", {"pattern": "alert", "intensity": 50})]


async def test_missing_payload_sends_empty_object(dispatcher, device):
    await dispatcher.send("calibrate")
    assert device.received == [("POST", "/calibrate", {})]


async def test_fetch_uses_get(dispatcher, device):
    assert await dispatcher.fetch("/status") == {"status": "ok", "battery": 87}
    assert device.received[0][0] == "GET"


async def test_non_2xx_is_http_status_error(dispatcher):
    with pytest.raises(CommandError) as info:
        await dispatcher.send("/broken")
    assert info.value.kind is CommandErrorKind.HTTP_STATUS
    assert info.value.status == 500


async def test_unknown_path_is_http_status_error(dispatcher):
    with pytest.raises(CommandError) as info:
        await dispatcher.send("/self-destruct")
    assert info.value.kind is CommandErrorKind.HTTP_STATUS
    assert info.value.status in (404, 405)


async def test_slow_device_times_out(dispatcher):
    with pytest.raises(CommandError) as info:
        await dispatcher.send("/slow")
    assert info.value.kind is CommandErrorKind.TIMEOUT


async def test_refused_connection_is_network_error():
    dispatcher = CommandDispatcher(Endpoint("127.0.0.1", command_port=unused_port()), timeout=2)
    with pytest.raises(CommandError) as info:
        await dispatcher.send("/vibrate", {"pattern": "alert"})
    assert info.value.kind is CommandErrorKind.NETWORK


async def test_non_json_reply_is_invalid_response(dispatcher):
    with pytest.raises(CommandError) as info:
        await dispatcher.send("/plain")
    assert info.value.kind is CommandErrorKind.INVALID_RESPONSE


async def test_empty_reply_is_empty_dict(dispatcher):
    assert await dispatcher.send("/empty") == {}


async def test_endpoint_changes_apply_to_next_call(device):
    endpoint = Endpoint("127.0.0.1", command_port=unused_port())
    dispatcher = CommandDispatcher(endpoint, timeout=2)
    endpoint.command_port = device.port
    assert (await dispatcher.send("/vibrate", {"pattern": "x"}))["ok"] is True


async def test_commands_run_concurrently(dispatcher, device):
    replies = await asyncio.gather(
        dispatcher.send("/vibrate", {"n": 1}),
        dispatcher.send("/vibrate", {"n": 2}),
        dispatcher.fetch("/status"),
    )
    assert replies[0]["echo"] == {"n": 1}
    assert replies[1]["echo"] == {"n": 2}
    assert len(device.received) == 3
