"""Shared fixtures for memlog tests."""

import threading
from typing import Callable, List, Optional

import pytest

from memlog.core.log.message import Message
from memlog.core.log.mock import MockLogManager
from memlog.core.time import TimestampProvider, TimeUnit


class FixedTimestampProvider(TimestampProvider):
    """Returns the same instant on every call."""

    def __init__(self, nanos: int = 1_700_000_000_123_456_789):
        self.nanos = nanos

    @property
    def unit(self) -> TimeUnit:
        return TimeUnit.NANOSECONDS

    def _now_ns(self) -> int:
        return self.nanos


class RecordingReader:
    """Reader that records every message it is given."""

    def __init__(self, on_read: Optional[Callable[[Message], None]] = None):
        self.messages: List[Message] = []
        self._on_read = on_read
        self._lock = threading.Lock()

    def read(self, message: Message) -> None:
        with self._lock:
            self.messages.append(message)
        if self._on_read is not None:
            self._on_read(message)

    @property
    def contents(self) -> List[bytes]:
        with self._lock:
            return [m.content for m in self.messages]


@pytest.fixture
def times():
    """Deterministic timestamp provider."""
    return FixedTimestampProvider()


@pytest.fixture
def manager(times):
    """Manager with a fixed sender id and clock."""
    manager = MockLogManager(sender_id="test-sender", timestamp_provider=times)
    yield manager
    manager.close()


@pytest.fixture
def failing_manager(times):
    """Manager that rejects every append."""
    manager = MockLogManager(
        sender_id="test-sender",
        timestamp_provider=times,
        fail_adds=True,
    )
    yield manager
    manager.close()


@pytest.fixture
def make_reader():
    """Factory for recording readers."""
    return RecordingReader
