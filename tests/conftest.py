"""Shared test fixtures for Raison tests."""
from typing import Any, Dict, List, Optional

import pytest

# Add package root to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from raison import HelperRegistry, PromptRecord, Raison
from raison.core.interfaces.connection import EventSink


# =============================================================================
# Fake transport
# =============================================================================

class FakeConnection:
    """In-memory transport; tests push catalog events by hand."""

    def __init__(self):
        self._on_event: Optional[EventSink] = None
        self._connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self, on_event: EventSink) -> None:
        self._on_event = on_event
        self._connected = True
        self.connect_calls += 1

    async def disconnect(self) -> None:
        self._on_event = None
        self._connected = False
        self.disconnect_calls += 1

    def emit(self, event: str, payload: Any) -> None:
        """Deliver an event the way the server would."""
        if self._on_event is not None:
            self._on_event(event, payload)


# =============================================================================
# Prompt builders
# =============================================================================

def make_prompt(**overrides) -> Dict[str, Any]:
    """Wire-format prompt payload as sent by the catalog service."""
    prompt = {
        "id": "test-prompt-id",
        "name": "Test Prompt",
        "agentId": "test-agent-id",
        "version": 1,
        "content": "Hello {{name}}!",
    }
    prompt.update(overrides)
    return prompt


def make_record(**overrides) -> PromptRecord:
    return PromptRecord.model_validate(make_prompt(**overrides))


async def simulate_sync(
    client: Raison,
    connection: FakeConnection,
    prompts: List[Dict[str, Any]],
) -> None:
    """Push a full snapshot and wait for it to be applied."""
    await client.connect()
    connection.emit("sync", {"prompts": prompts})
    await client.wait_idle()


async def simulate_event(client: Raison, connection: FakeConnection, event: str, payload: Any) -> None:
    connection.emit(event, payload)
    await client.wait_idle()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def helpers() -> HelperRegistry:
    """Isolated helper registry (not the process-wide one)."""
    return HelperRegistry()


@pytest.fixture
def client(connection, helpers) -> Raison:
    return Raison(api_key="rsn_test123", connection=connection, helpers=helpers)
