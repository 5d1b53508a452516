import asyncio
import json

import httpx
import pytest

from tracking_core.exceptions import DeliveryError
from tracking_core.sender import EventSender

URL = "https://analytics.example.com/collect"


@pytest.mark.asyncio
async def test_post_sends_json_and_query_params(sender, transport):
    status = await sender.post(URL, {"event": "mod_install"}, params={"measurement_id": "G-1"})

    assert status == 204
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url.params["measurement_id"] == "G-1"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"event": "mod_install"}


@pytest.mark.asyncio
async def test_post_raises_delivery_error_on_error_status(sender, transport):
    transport.status_code = 400

    with pytest.raises(DeliveryError) as exc_info:
        await sender.post(URL, {})

    assert exc_info.value.status_code == 400
    assert exc_info.value.endpoint == URL


@pytest.mark.asyncio
async def test_post_wraps_transport_errors():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    sender = EventSender(client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)))

    with pytest.raises(DeliveryError, match="ConnectError") as exc_info:
        await sender.post(URL, {})
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_dispatch_is_fire_and_forget(sender, transport):
    assert sender.dispatch(URL, {"event": "heartbeat"}, mod_id="mauth") is True
    assert sender.pending == 1

    await sender.drain()

    assert sender.pending == 0
    assert transport.bodies() == [{"event": "heartbeat"}]


@pytest.mark.asyncio
async def test_dispatch_swallows_delivery_errors(sender, transport):
    """A failing endpoint is logged and the event dropped; nothing reaches the caller."""
    transport.status_code = 500

    assert sender.dispatch(URL, {"event": "heartbeat"}) is True
    await sender.drain()

    assert len(transport.requests) == 1
    assert sender.pending == 0


def test_dispatch_without_event_loop_uses_background_loop(sender, transport):
    """Synchronous callers with no loop of their own still get their event delivered."""
    assert sender.dispatch(URL, {"event": "heartbeat"}) is True

    asyncio.run(sender.aclose())

    assert sender.pending == 0
    assert transport.bodies() == [{"event": "heartbeat"}]


@pytest.mark.asyncio
async def test_dispatch_from_worker_thread_while_loop_runs(sender, transport):
    sent = await asyncio.to_thread(sender.dispatch, URL, {"event": "players_online"})
    assert sent is True

    await sender.drain()

    assert sender.pending == 0
    assert transport.bodies() == [{"event": "players_online"}]
    await sender.aclose()


@pytest.mark.asyncio
async def test_dispatch_after_close_is_dropped(sender, transport):
    await sender.aclose()

    assert sender.dispatch(URL, {"event": "heartbeat"}) is False
    assert transport.requests == []


@pytest.mark.asyncio
async def test_drain_cancels_sends_that_outlive_the_timeout():
    release = asyncio.Event()

    async def slow(request):
        await release.wait()
        return httpx.Response(204)

    sender = EventSender(client=httpx.AsyncClient(transport=httpx.MockTransport(slow)))
    sender.dispatch(URL, {})

    await sender.drain(timeout=0.01)

    assert sender.pending == 0
    assert not release.is_set()


@pytest.mark.asyncio
async def test_aclose_flushes_pending_events(sender, transport):
    sender.dispatch(URL, {"event": "server_shutdown"})

    await sender.aclose()

    assert transport.bodies() == [{"event": "server_shutdown"}]
