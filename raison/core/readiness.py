"""One-shot readiness gate for the prompt cache."""
import asyncio
import logging
from enum import Enum
from typing import Optional

from .exceptions import ReadyTimeoutError

logger = logging.getLogger(__name__)


class ReadinessState(Enum):
    """Cache readiness. Moves PENDING -> READY once and never back."""
    PENDING = "pending"
    READY = "ready"


class ReadinessGate:
    """Explicit two-state flag plus a broadcast signal for waiting readers.

    Every waiter is released together when the gate resolves. Waiting has
    no timeout unless one is passed; disconnecting does not release a gate
    that never resolved.
    """

    def __init__(self):
        self._state = ReadinessState.PENDING
        self._event = asyncio.Event()

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ReadinessState.READY

    def resolve(self) -> bool:
        """Transition to READY.

        Returns:
            True on the first call only; later calls are no-ops.
        """
        if self._state is ReadinessState.READY:
            return False

        self._state = ReadinessState.READY
        self._event.set()
        return True

    async def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the gate resolves.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Raises:
            ReadyTimeoutError: If the timeout elapses first.
        """
        if self.is_ready:
            return

        if timeout is None:
            await self._event.wait()
            return

        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Prompt cache not ready after {timeout}s")
            raise ReadyTimeoutError(
                f"No prompt snapshot received within {timeout} seconds"
            ) from None
