"""
memlog - An in-memory stand-in for a durable log service.

This package lets code written against a log/publish-subscribe abstraction
run in tests without a real backend:
- Named logs opened through a process-wide manager
- Asynchronous appends returning completion handles
- Reader registration with one-time backlog replay
- Failure injection for negative-path tests
"""

__version__ = "0.1.0"

from memlog.core.log import (
    FutureMessage,
    Log,
    LogError,
    LogManager,
    LogManagerConfig,
    LogState,
    LogUnavailableError,
    Message,
    MessageReader,
    MockLog,
    MockLogManager,
    ReadMarker,
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
