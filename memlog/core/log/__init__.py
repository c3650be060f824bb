"""
Log contract and in-memory implementation.

This package provides:
- Abstract Log / LogManager types and the MessageReader protocol
- Immutable messages with write-once completion handles
- MockLog / MockLogManager for tests
"""

from memlog.core.log.base import (
    Log,
    LogError,
    LogManager,
    LogUnavailableError,
    MessageReader,
    ReadMarker,
)
from memlog.core.log.message import FutureMessage, Message
from memlog.core.log.mock import (
    LogManagerConfig,
    LogState,
    MockLog,
    MockLogManager,
)

__all__ = [
    "FutureMessage",
    "Log",
    "LogError",
    "LogManager",
    "LogManagerConfig",
    "LogState",
    "LogUnavailableError",
    "Message",
    "MessageReader",
    "MockLog",
    "MockLogManager",
    "ReadMarker",
]
