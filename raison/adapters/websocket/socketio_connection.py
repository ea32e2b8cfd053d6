"""Socket.IO connection to the Raison catalog service.

Implements IConnectionBinding on top of python-socketio's AsyncClient
(aiohttp websocket transport, long-polling fallback).

Catalog events on the /sdk namespace:
- "sync": {prompts: [...]} - full snapshot, sent on every (re)connect
- "prompt:deployed": {...} - one prompt record deployed or updated
- "prompt:undeployed": {id} - one prompt removed
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from ...core.interfaces.connection import EventSink
from ...core.sync import CATALOG_EVENTS

logger = logging.getLogger(__name__)


class SocketIOConnection:
    """Realtime catalog subscription.

    The initial connection is made by a background task that retries with
    exponential backoff; once connected, python-socketio handles
    reconnection itself.

    Usage:
        connection = SocketIOConnection("https://api.raison.ist", "rsn_...")
        await connection.connect(coordinator.deliver)
        ...
        await connection.disconnect()
    """

    NAMESPACE: str = "/sdk"
    SOCKET_PATH: str = "/socket/"
    TRANSPORTS: List[str] = ["websocket", "polling"]

    def __init__(
        self,
        base_url: str,
        api_key: str,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        client: Optional[socketio.AsyncClient] = None,
    ):
        """Initialize the connection.

        Args:
            base_url: Service URL (http:// or https://), trailing slash ignored.
            api_key: SDK API key sent in the handshake auth payload.
            reconnect_delay: Initial delay between connection attempts.
            max_reconnect_delay: Cap for the exponential backoff.
            client: Pre-built AsyncClient (tests inject a mock).
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._sio = client if client is not None else socketio.AsyncClient(reconnection=True)

        self._on_event: Optional[EventSink] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._handlers_registered = False

    @property
    def url(self) -> str:
        return self._base_url

    @property
    def connected(self) -> bool:
        return bool(self._sio.connected)

    async def connect(self, on_event: EventSink) -> None:
        """Subscribe to catalog events and start connecting in the background.

        Args:
            on_event: Sink receiving (event, payload) in arrival order.
        """
        self._on_event = on_event
        self._register_handlers()

        if self._connect_task is None or self._connect_task.done():
            self._connect_task = asyncio.create_task(self._connect_loop())

    async def disconnect(self) -> None:
        """Stop forwarding events and close the connection."""
        self._on_event = None

        if self._connect_task:
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
            self._connect_task = None

        try:
            await self._sio.disconnect()
        except Exception as e:
            logger.debug(f"Error closing Socket.IO client: {e}")
        logger.info(f"Disconnected from {self._base_url}")

    async def _connect_loop(self) -> None:
        """Connect, retrying with exponential backoff until it succeeds."""
        current_delay = self._reconnect_delay

        while True:
            try:
                logger.debug(f"Connecting to {self._base_url}{self.NAMESPACE}")
                await self._sio.connect(
                    self._base_url,
                    auth={"apiKey": self._api_key},
                    namespaces=[self.NAMESPACE],
                    socketio_path=self.SOCKET_PATH,
                    transports=self.TRANSPORTS,
                )
                return

            except SocketIOConnectionError as e:
                logger.warning(
                    f"Connection to {self._base_url} failed: {e}; "
                    f"retrying in {current_delay}s"
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error connecting to {self._base_url}: {e}; "
                    f"retrying in {current_delay}s",
                    exc_info=True,
                )

            await asyncio.sleep(current_delay)
            current_delay = min(current_delay * 2, self._max_reconnect_delay)

    def _register_handlers(self) -> None:
        if self._handlers_registered:
            return

        self._sio.on("connect", handler=self._on_connect, namespace=self.NAMESPACE)
        self._sio.on("disconnect", handler=self._on_disconnect, namespace=self.NAMESPACE)
        for event in CATALOG_EVENTS:
            self._sio.on(event, handler=self._forwarder(event), namespace=self.NAMESPACE)

        self._handlers_registered = True

    def _forwarder(self, event: str) -> Callable[..., None]:
        def forward(payload: Any = None) -> None:
            sink = self._on_event
            if sink is None:
                logger.debug(f"Connection released, dropping '{event}' event")
                return
            sink(event, payload)

        return forward

    def _on_connect(self) -> None:
        logger.info(f"Connected to {self._base_url}{self.NAMESPACE}")

    def _on_disconnect(self, *args: Any) -> None:
        logger.warning(f"Disconnected from {self._base_url}{self.NAMESPACE}")
