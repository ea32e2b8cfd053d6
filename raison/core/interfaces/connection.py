"""Realtime transport interface."""
from typing import Any, Callable, Protocol

# Receives (event name, payload) in transport delivery order
EventSink = Callable[[str, Any], None]


class IConnectionBinding(Protocol):
    """Protocol for the realtime connection that feeds catalog events.

    Implementations own connection setup, authentication and reconnection.
    They must call the sink once per received catalog event, in arrival
    order, and stop calling it once disconnect() has been awaited.
    """

    @property
    def connected(self) -> bool:
        """Whether the transport currently holds an open connection."""
        ...

    async def connect(self, on_event: EventSink) -> None:
        """Start the connection and begin forwarding events to on_event."""
        ...

    async def disconnect(self) -> None:
        """Release the connection. No events are forwarded afterwards."""
        ...
