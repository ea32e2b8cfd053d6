"""Raison client.

Mirrors the remote prompt catalog into a per-instance in-memory cache kept
current by realtime events, and renders prompts locally without a network
round trip.

Usage:
    Raison.register_helper("upper", str.upper)

    async with Raison(api_key="rsn_...") as raison:
        text = await raison.render("prompt-id", {"name": "World"})
        prompts = await raison.find(agent_id="agent-1")
"""
import logging
from typing import Any, List, Mapping, Optional

from .adapters.websocket.socketio_connection import SocketIOConnection
from .config import DEFAULT_BASE_URL, RaisonSettings, normalize_base_url, validate_api_key
from .core.exceptions import ClientClosedError
from .core.interfaces.connection import IConnectionBinding
from .core.models import FilterLike, PromptFilter, PromptRecord
from .core.readiness import ReadinessGate
from .core.renderer import Helper, HelperRegistry, TemplateRenderer, register_helper
from .core.store import PromptStore
from .core.sync import SyncCoordinator

logger = logging.getLogger(__name__)


class Raison:
    """Client for a realtime-synced prompt catalog.

    Every read waits for the first full snapshot before touching the cache.
    Each instance owns its own store and readiness state; only the default
    helper registry is shared across instances.
    """

    BASE_URL: str = DEFAULT_BASE_URL

    @staticmethod
    def register_helper(name: str, fn: Helper) -> None:
        """Register a template helper for every client in the process."""
        register_helper(name, fn)

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        ready_timeout: Optional[float] = None,
        helpers: Optional[HelperRegistry] = None,
        connection: Optional[IConnectionBinding] = None,
        settings: Optional[RaisonSettings] = None,
    ):
        """Initialize the client. No network activity happens here.

        Args:
            api_key: SDK key (rsn_...). Defaults to RAISON_API_KEY.
            base_url: Service URL. Defaults to RAISON_BASE_URL.
            ready_timeout: Seconds reads wait for the first snapshot.
                None waits indefinitely. Defaults to RAISON_READY_TIMEOUT.
            helpers: Helper registry for rendering. Defaults to the
                process-wide registry.
            connection: Transport binding. Defaults to SocketIOConnection.
            settings: Settings instance. Defaults to RaisonSettings().

        Raises:
            ConfigurationError: If the API key is missing or malformed.
        """
        settings = settings or RaisonSettings()

        api_key = validate_api_key(api_key if api_key is not None else settings.RAISON_API_KEY)
        self._base_url = normalize_base_url(base_url or settings.RAISON_BASE_URL)
        self._ready_timeout = (
            ready_timeout if ready_timeout is not None else settings.RAISON_READY_TIMEOUT
        )

        self._store = PromptStore()
        self._gate = ReadinessGate()
        self._coordinator = SyncCoordinator(self._store, self._gate)
        self._renderer = TemplateRenderer(helpers)

        self._connection: IConnectionBinding = connection or SocketIOConnection(
            self._base_url,
            api_key,
            reconnect_delay=settings.RAISON_RECONNECT_DELAY,
            max_reconnect_delay=settings.RAISON_MAX_RECONNECT_DELAY,
        )

        self._started = False
        self._closed = False

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_ready(self) -> bool:
        """Whether the first snapshot has been applied."""
        return self._gate.is_ready

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Start applying events and open the transport. Idempotent.

        Raises:
            ClientClosedError: If the client was already disconnected.
        """
        if self._closed:
            raise ClientClosedError("Client has been disconnected")
        if self._started:
            return

        self._started = True
        self._coordinator.start()
        await self._connection.connect(self._coordinator.deliver)
        logger.debug(f"Raison client started for {self._base_url}")

    async def disconnect(self) -> None:
        """Release the transport. No events are applied afterwards.

        Reads keep serving the last cached state.
        """
        if self._closed:
            return

        self._closed = True
        await self._coordinator.close()
        if self._started:
            await self._connection.disconnect()
        logger.debug(f"Raison client stopped for {self._base_url}")

    async def __aenter__(self) -> "Raison":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def wait_until_ready(self, timeout: Optional[float] = None) -> None:
        """Wait for the first snapshot, connecting if needed.

        Args:
            timeout: Overrides the configured ready timeout for this call.

        Raises:
            ReadyTimeoutError: If a timeout is in effect and elapses.
        """
        if not self._started and not self._closed:
            await self.connect()
        await self._gate.wait(timeout if timeout is not None else self._ready_timeout)

    async def wait_idle(self) -> None:
        """Wait until every event received so far has been applied."""
        if self._started and not self._closed:
            await self._coordinator.drain()

    # =========================================================================
    # Reads
    # =========================================================================

    async def render(
        self,
        prompt_id: str,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Render a cached prompt.

        Args:
            prompt_id: Prompt id.
            variables: Template variables. None returns the raw content.

        Returns:
            Rendered text, the raw content if rendering fails, or "" when
            the prompt is unknown or empty.
        """
        await self.wait_until_ready()

        record = self._store.get(prompt_id)
        if record is None or not record.content:
            return ""

        return self._renderer.render(record.content, variables)

    async def find(self, query: FilterLike = None, **fields: Any) -> List[PromptRecord]:
        """Return every cached prompt matching the filter.

        Args:
            query: PromptFilter or mapping of fields (wire or Python names).
            **fields: Filter fields, merged over query.

        Raises:
            InvalidFilterError: If the filter names unknown fields.
        """
        prompt_filter = self._build_filter(query, fields)
        await self.wait_until_ready()
        return self._store.find(prompt_filter)

    async def find_one(self, query: FilterLike = None, **fields: Any) -> Optional[PromptRecord]:
        """Return the first cached prompt matching the filter, or None."""
        prompt_filter = self._build_filter(query, fields)
        await self.wait_until_ready()
        return self._store.find_one(prompt_filter)

    @staticmethod
    def _build_filter(query: FilterLike, fields: Mapping[str, Any]) -> PromptFilter:
        if not fields:
            return PromptFilter.coerce(query)

        base = PromptFilter.coerce(query).constraints()
        base.update(fields)
        return PromptFilter.coerce(base)
