"""Unit tests for the Socket.IO catalog connection."""
import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from raison.adapters.websocket.socketio_connection import SocketIOConnection


# =============================================================================
# Test Fixtures
# =============================================================================

def create_mock_sio(connect_side_effect=None) -> MagicMock:
    """Create a mock python-socketio AsyncClient."""
    sio = MagicMock()
    sio.connect = AsyncMock(side_effect=connect_side_effect)
    sio.disconnect = AsyncMock()
    sio.connected = False
    return sio


def registered_handler(sio: MagicMock, event: str):
    for call in sio.on.call_args_list:
        if call.args[0] == event:
            return call.kwargs["handler"]
    raise AssertionError(f"No handler registered for {event}")


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))


# =============================================================================
# Connection
# =============================================================================

class TestConnect:

    @pytest.mark.asyncio
    async def test_connects_to_sdk_namespace(self):
        sio = create_mock_sio()
        connection = SocketIOConnection("https://custom.api.com/", "rsn_test123", client=sio)

        await connection.connect(RecordingSink())
        await connection._connect_task

        sio.connect.assert_awaited_once_with(
            "https://custom.api.com",
            auth={"apiKey": "rsn_test123"},
            namespaces=["/sdk"],
            socketio_path="/socket/",
            transports=["websocket", "polling"],
        )

    def test_strips_trailing_slash(self):
        connection = SocketIOConnection("https://custom.api.com/", "rsn_test123", client=create_mock_sio())

        assert connection.url == "https://custom.api.com"

    @pytest.mark.asyncio
    async def test_registers_catalog_handlers(self):
        sio = create_mock_sio()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)

        await connection.connect(RecordingSink())

        events = {call.args[0] for call in sio.on.call_args_list}
        assert {"sync", "prompt:deployed", "prompt:undeployed"} <= events
        assert all(call.kwargs["namespace"] == "/sdk" for call in sio.on.call_args_list)
        await connection.disconnect()

    @pytest.mark.asyncio
    async def test_retries_with_backoff(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        sio = create_mock_sio(connect_side_effect=[
            SocketIOConnectionError("refused"),
            SocketIOConnectionError("refused"),
            SocketIOConnectionError("refused"),
            None,
        ])
        connection = SocketIOConnection(
            "https://api.raison.ist",
            "rsn_test123",
            reconnect_delay=1.0,
            max_reconnect_delay=3.0,
            client=sio,
        )

        await connection.connect(RecordingSink())
        await connection._connect_task

        assert sio.connect.await_count == 4
        assert sleeps == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_logged_and_retried(self, monkeypatch, caplog):
        async def fake_sleep(delay):
            pass

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        sio = create_mock_sio(connect_side_effect=[RuntimeError("boom"), None])
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)

        with caplog.at_level(logging.ERROR, logger="raison"):
            await connection.connect(RecordingSink())
            await connection._connect_task

        assert sio.connect.await_count == 2
        errors = [record for record in caplog.records if record.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "boom" in errors[0].getMessage()
        assert errors[0].exc_info is not None

    @pytest.mark.asyncio
    async def test_connected_reflects_client(self):
        sio = create_mock_sio()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)

        assert connection.connected is False
        sio.connected = True
        assert connection.connected is True


# =============================================================================
# Event forwarding
# =============================================================================

class TestForwarding:

    @pytest.mark.asyncio
    async def test_forwards_events_in_order(self):
        sio = create_mock_sio()
        sink = RecordingSink()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)
        await connection.connect(sink)

        registered_handler(sio, "sync")({"prompts": []})
        registered_handler(sio, "prompt:deployed")({"id": "a"})
        registered_handler(sio, "prompt:undeployed")({"id": "a"})

        assert sink.events == [
            ("sync", {"prompts": []}),
            ("prompt:deployed", {"id": "a"}),
            ("prompt:undeployed", {"id": "a"}),
        ]
        await connection.disconnect()

    @pytest.mark.asyncio
    async def test_handlers_registered_once(self):
        sio = create_mock_sio()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)

        await connection.connect(RecordingSink())
        count = sio.on.call_count
        await connection.connect(RecordingSink())

        assert sio.on.call_count == count
        await connection.disconnect()


# =============================================================================
# Disconnect
# =============================================================================

class TestDisconnect:

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self):
        sio = create_mock_sio()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)
        await connection.connect(RecordingSink())

        await connection.disconnect()

        sio.disconnect.assert_awaited_once()
        assert connection._connect_task is None

    @pytest.mark.asyncio
    async def test_no_forwarding_after_disconnect(self):
        sio = create_mock_sio()
        sink = RecordingSink()
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)
        await connection.connect(sink)

        await connection.disconnect()
        registered_handler(sio, "prompt:deployed")({"id": "late"})

        assert sink.events == []

    @pytest.mark.asyncio
    async def test_disconnect_cancels_pending_connect(self):
        async def never_connects(*args, **kwargs):
            await asyncio.Event().wait()

        sio = create_mock_sio()
        sio.connect = AsyncMock(side_effect=never_connects)
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)
        await connection.connect(RecordingSink())
        await asyncio.sleep(0)

        await connection.disconnect()

        assert connection._connect_task is None
        sio.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnect_error_is_logged(self):
        sio = create_mock_sio()
        sio.disconnect = AsyncMock(side_effect=RuntimeError("already closed"))
        connection = SocketIOConnection("https://api.raison.ist", "rsn_test123", client=sio)

        await connection.disconnect()

        sio.disconnect.assert_awaited_once()
