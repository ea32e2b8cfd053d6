"""Sync coordinator for the prompt cache.

Translates catalog events into PromptStore mutations:
- "sync": full snapshot, reconciled into the store (upsert all, then
  remove every id the snapshot does not list). The first one resolves
  the readiness gate.
- "prompt:deployed": a single record, upserted.
- "prompt:undeployed": {"id": ...}, removed.

The transport pushes events into an ordered channel (asyncio.Queue) and a
single consumer task applies them in arrival order. Reconciliation has no
suspension point between its upsert and removal phases, so readers on the
same loop never see a half-applied snapshot.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from .models import PromptRecord
from .readiness import ReadinessGate
from .store import PromptStore

logger = logging.getLogger(__name__)

SYNC_EVENT = "sync"
DEPLOYED_EVENT = "prompt:deployed"
UNDEPLOYED_EVENT = "prompt:undeployed"

CATALOG_EVENTS = (SYNC_EVENT, DEPLOYED_EVENT, UNDEPLOYED_EVENT)


class SyncPayload(BaseModel):
    """Payload of the "sync" event."""
    prompts: List[PromptRecord]


class UndeployPayload(BaseModel):
    """Payload of the "prompt:undeployed" event."""
    id: str


class SyncCoordinator:
    """Applies catalog events to a PromptStore and owns its readiness gate.

    Usage:
        coordinator = SyncCoordinator(store)
        coordinator.start()                  # inside a running loop
        coordinator.deliver("sync", {"prompts": [...]})
        await coordinator.drain()
        await coordinator.close()
    """

    def __init__(self, store: PromptStore, gate: Optional[ReadinessGate] = None):
        """Initialize the coordinator.

        Args:
            store: Store to mutate. Owned by the same client instance.
            gate: Readiness gate to resolve. Defaults to a fresh gate.
        """
        self._store = store
        self._gate = gate or ReadinessGate()
        self._queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._closed = False
        self._handlers: Dict[str, Callable[[Any], None]] = {
            SYNC_EVENT: self._on_sync,
            DEPLOYED_EVENT: self._on_deployed,
            UNDEPLOYED_EVENT: self._on_undeployed,
        }

    @property
    def store(self) -> PromptStore:
        return self._store

    @property
    def gate(self) -> ReadinessGate:
        return self._gate

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of delivered events not yet applied."""
        return self._queue.qsize()

    # =========================================================================
    # Channel
    # =========================================================================

    def deliver(self, event: str, payload: Any) -> None:
        """Enqueue an event from the transport. Dropped once closed."""
        if self._closed:
            logger.debug(f"Coordinator closed, dropping '{event}' event")
            return
        self._queue.put_nowait((event, payload))

    def start(self) -> None:
        """Start the consumer task. Must be called from a running loop."""
        if self._consumer is not None or self._closed:
            return
        self._consumer = asyncio.create_task(self._consume())

    async def drain(self) -> None:
        """Wait until every event delivered so far has been applied."""
        await self._queue.join()

    async def close(self) -> None:
        """Stop applying events. Queued, unapplied events are discarded."""
        self._closed = True

        if self._consumer:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

        discarded = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            discarded += 1
        if discarded:
            logger.debug(f"Discarded {discarded} unapplied events on close")

    async def _consume(self) -> None:
        while True:
            event, payload = await self._queue.get()
            try:
                if not self._closed:
                    self.dispatch(event, payload)
            except Exception as e:
                logger.error(f"Failed to apply '{event}' event: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    # =========================================================================
    # Event handling
    # =========================================================================

    def dispatch(self, event: str, payload: Any) -> None:
        """Apply one event immediately.

        Malformed payloads are logged and dropped; the store is only
        touched after the whole payload validates.
        """
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Ignoring unknown event '{event}'")
            return

        try:
            handler(payload)
        except ValidationError as e:
            if event == SYNC_EVENT and not self._gate.is_ready:
                logger.error(
                    f"Dropping malformed '{event}' payload before the first snapshot; "
                    f"reads stay blocked until a valid snapshot arrives: {e}"
                )
            else:
                logger.warning(f"Dropping malformed '{event}' payload: {e}")

    def _on_sync(self, payload: Any) -> None:
        snapshot = SyncPayload.model_validate(payload)
        self.apply_full_snapshot(snapshot.prompts)

    def _on_deployed(self, payload: Any) -> None:
        self.apply_upsert(PromptRecord.model_validate(payload))

    def _on_undeployed(self, payload: Any) -> None:
        self.apply_removal(UndeployPayload.model_validate(payload).id)

    def apply_full_snapshot(self, records: Sequence[PromptRecord]) -> None:
        """Mirror the store to the snapshot.

        Later duplicates of an id win. Ids absent from the snapshot are
        removed. The first snapshot resolves the readiness gate.
        """
        for record in records:
            self._store.upsert(record)

        incoming = {record.id for record in records}
        removed = self._store.remove_where(lambda prompt_id: prompt_id not in incoming)

        logger.debug(
            f"Reconciled snapshot: {len(incoming)} prompts, {removed} removed"
        )

        if self._gate.resolve():
            logger.info(f"Prompt cache ready with {len(self._store)} prompts")

    def apply_upsert(self, record: PromptRecord) -> None:
        """Insert or replace a single prompt. Independent of readiness."""
        self._store.upsert(record)
        logger.debug(f"Deployed prompt {record.id} (version {record.version})")

    def apply_removal(self, prompt_id: str) -> None:
        """Remove a prompt by id. Removing an unknown id is a no-op."""
        removed = self._store.remove_where(lambda candidate: candidate == prompt_id)
        logger.debug(f"Undeployed prompt {prompt_id} (removed={removed})")
