"""
In-memory log implementation for tests.

A MockLogManager hands out MockLogs by name. Each log buffers appended
messages until readers are registered for the first time, replays that
backlog to those readers, and from then on delivers every append
synchronously to whichever readers are registered. Setting ``fail_adds``
makes every append raise LogUnavailableError to simulate a backend outage.
"""

import itertools
import os
import socket
import threading
from collections import deque
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional, Tuple, Union

from memlog.core.log.base import (
    Log,
    LogManager,
    LogUnavailableError,
    MessageReader,
    ReadMarker,
)
from memlog.core.log.message import FutureMessage, Message
from memlog.core.time import TimestampProvider, get_provider
from memlog.utils.config import Config
from memlog.utils.logging import get_logger

logger = get_logger(__name__)

_instance_counter = itertools.count(1)


def generate_instance_id() -> str:
    """
    Build an identity unique to this process and manager instance.

    Returns:
        "<host>-<pid>-<n>" where n counts managers created in this process
    """
    return f"{socket.gethostname()}-{os.getpid()}-{next(_instance_counter)}"


class LogState(Enum):
    """
    Delivery state of a MockLog.

    State transitions:
    BUFFERING → LIVE (on first reader registration; LIVE is terminal)
    """

    BUFFERING = "BUFFERING"  # Appends go to the backlog
    LIVE = "LIVE"  # Appends are delivered immediately


@dataclass
class LogManagerConfig:
    """
    Configuration shared by a manager and every log it opens.

    Attributes:
        fail_adds: Reject every append with LogUnavailableError. FOR TESTING ONLY.
        sender_id: Identity stamped on messages (generated when empty)
        timestamp_provider: Provider name ("nano", "micro", "milli") or instance
    """
    fail_adds: bool = False
    sender_id: Optional[str] = None
    timestamp_provider: Union[str, TimestampProvider] = "micro"

    @classmethod
    def from_config(cls, config: Config) -> "LogManagerConfig":
        """
        Read the ``log.*`` section of a Config.

        Args:
            config: Loaded configuration

        Returns:
            Manager configuration
        """
        return cls(
            fail_adds=bool(config.get("log.fail_adds", False)),
            sender_id=config.get("log.sender_id") or None,
            timestamp_provider=config.get("log.timestamp_provider", "micro"),
        )


class MockLog(Log):
    """
    Single-partition in-memory log.

    ``_lock`` protects the reader set, the backlog and the delivery queue.
    It is never held while reader callbacks run. Every delivery, live append
    or backlog replay alike, is queued under ``_lock`` together with the
    readers it targets, and drained in FIFO order by one thread at a time:
    the caller that finds no drain in progress becomes the drainer and keeps
    delivering until the queue is empty. A caller that finds a drain already
    running only queues its message, so appends made from inside read(), on
    the delivering thread or on a thread the reader waits for, never block
    and are delivered after everything queued before them.
    """

    def __init__(
        self,
        name: str,
        sender_id: str,
        times: TimestampProvider,
        fail_adds: bool = False,
    ):
        """
        Initialize a log.

        Args:
            name: Log name
            sender_id: Identity stamped on every message
            times: Source of message timestamps
            fail_adds: Reject every append
        """
        self._name = name
        self._sender_id = sender_id
        self._times = times
        self._fail_adds = fail_adds

        # Keyed by id() so readers are unique by identity, hashable or not.
        self._readers: Dict[int, MessageReader] = {}
        self._backlog: Optional[List[FutureMessage]] = []

        self._pending: Deque[Tuple[FutureMessage, List[MessageReader]]] = deque()
        self._draining = False

        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> LogState:
        with self._lock:
            return LogState.BUFFERING if self._backlog is not None else LogState.LIVE

    def reader_count(self) -> int:
        with self._lock:
            return len(self._readers)

    def backlog_size(self) -> int:
        """Number of messages waiting for the first registration."""
        with self._lock:
            return len(self._backlog) if self._backlog is not None else 0

    def add(self, content: bytes, key: Optional[bytes] = None) -> FutureMessage:
        """
        Append a message.

        Before the first reader registration the message is parked in the
        backlog and the returned handle stays pending. Afterwards it is
        delivered to the readers registered at the time of the call, and the
        handle is resolved before this call returns. The one exception is an
        append made while another delivery on this log is still running
        (for instance from inside a reader's read()): the message is queued
        behind that delivery and the handle resolves once the running
        delivery reaches it.

        Args:
            content: Message payload
            key: Partition key, ignored

        Returns:
            Completion handle for the message

        Raises:
            LogUnavailableError: If fail_adds is enabled
            TypeError: If content is not bytes-like
        """
        if self._fail_adds:
            logger.warning("Failed message add", log=self._name)
            raise LogUnavailableError("Log unavailable")

        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)

        with self._lock:
            fmsg = FutureMessage(
                Message(
                    sender_id=self._sender_id,
                    timepoint=self._times.get_time(),
                    content=content,
                )
            )

            if self._backlog is not None:
                self._backlog.append(fmsg)
                logger.debug(
                    "Buffered message",
                    log=self._name,
                    backlog=len(self._backlog),
                )
                return fmsg

            self._pending.append((fmsg, list(self._readers.values())))

            if self._draining:
                logger.debug(
                    "Queued message behind running delivery",
                    log=self._name,
                    queued=len(self._pending),
                )
                return fmsg

            self._draining = True

        self._drain()

        logger.debug("Delivered message", log=self._name, size=len(content))
        return fmsg

    def _drain(self) -> None:
        """
        Deliver queued messages until the queue is empty.

        The caller must have set ``_draining``. If a reader raises, the
        drain stops, the failing message stays unresolved, and whatever is
        still queued is delivered by the next call that drains.
        """
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._draining = False
                        return
                    fmsg, readers = self._pending.popleft()

                self._process(fmsg, readers)
        except BaseException:
            with self._lock:
                self._draining = False
            raise

    def _process(self, fmsg: FutureMessage, readers: List[MessageReader]) -> None:
        """Deliver a message to each reader, then resolve its handle."""
        for reader in readers:
            reader.read(fmsg.message)
        fmsg.delivered()

    def register_readers(self, marker: ReadMarker, readers: Iterable[MessageReader]) -> None:
        """
        Register readers.

        The marker is ignored. The first call on a log replays the whole
        backlog, in append order, to the readers passed in that call and
        retires the backlog. Readers registered by later calls only see
        messages appended after their registration.

        Args:
            marker: Requested start position, ignored
            readers: Readers to register
        """
        new_readers = {id(reader): reader for reader in readers}

        with self._lock:
            backlog = self._backlog
            self._backlog = None
            self._readers.update(new_readers)

            if backlog is None:
                logger.debug(
                    "Registered readers",
                    log=self._name,
                    added=len(new_readers),
                )
                return

            targets = list(new_readers.values())
            self._pending.extend((fmsg, targets) for fmsg in backlog)

            logger.info(
                "Log is live, replaying backlog",
                log=self._name,
                readers=len(new_readers),
                replayed=len(backlog),
            )

            if self._draining:
                return

            self._draining = True

        self._drain()

    def unregister_reader(self, reader: MessageReader) -> bool:
        with self._lock:
            removed = self._readers.pop(id(reader), None) is not None

        logger.debug("Unregistered reader", log=self._name, removed=removed)
        return removed

    def close(self) -> None:
        """
        Drop all readers.

        Messages still in the backlog are discarded with the log and their
        handles never resolve.
        """
        with self._lock:
            self._readers.clear()

        logger.info("Closed log", log=self._name)

    def __repr__(self) -> str:
        return f"MockLog(name={self._name!r})"


class MockLogManager(LogManager):
    """
    Registry of in-memory logs.

    Example:
        manager = MockLogManager(sender_id="node-1")

        log = manager.open_log("events")
        future = log.add(b"payload")

        log.register_reader(ReadMarker.from_now(), reader)
        future.result()

        manager.close()
    """

    def __init__(self, config: Optional[LogManagerConfig] = None, **kwargs):
        """
        Initialize the manager.

        Args:
            config: Manager configuration
            **kwargs: Config overrides (fail_adds, sender_id, timestamp_provider)
        """
        self.config = replace(config) if config is not None else LogManagerConfig()

        options = {f.name for f in fields(LogManagerConfig)}
        for key, value in kwargs.items():
            if key not in options:
                raise TypeError(f"Unknown log manager option: {key}")
            setattr(self.config, key, value)

        self._fail_adds = self.config.fail_adds
        self._sender_id = self.config.sender_id or generate_instance_id()

        provider = self.config.timestamp_provider
        self._times = get_provider(provider) if isinstance(provider, str) else provider

        self._logs: Dict[str, MockLog] = {}
        self._lock = threading.Lock()

        logger.info(
            "Log manager initialized",
            sender_id=self._sender_id,
            fail_adds=self._fail_adds,
            timestamp_unit=self._times.unit.name,
        )

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "MockLogManager":
        """Create a manager from the ``log.*`` section of a Config."""
        return cls(LogManagerConfig.from_config(config), **kwargs)

    @property
    def sender_id(self) -> str:
        return self._sender_id

    @property
    def fail_adds(self) -> bool:
        return self._fail_adds

    @property
    def times(self) -> TimestampProvider:
        return self._times

    def open_log(self, name: str) -> MockLog:
        with self._lock:
            log = self._logs.get(name)
            if log is None:
                log = MockLog(
                    name=name,
                    sender_id=self._sender_id,
                    times=self._times,
                    fail_adds=self._fail_adds,
                )
                self._logs[name] = log

                logger.info("Opened log", log=name, open_logs=len(self._logs))

            return log

    def open_logs(self) -> List[str]:
        """Names of the logs currently registered."""
        with self._lock:
            return list(self._logs)

    def close(self) -> None:
        """
        Close every open log and clear the registry.

        Logs handed out earlier stay usable but are no longer reachable
        through this manager; opening the same name again creates a new log.
        """
        with self._lock:
            logs = list(self._logs.values())
            self._logs.clear()

            for log in logs:
                log.close()

        logger.info("Log manager closed", closed_logs=len(logs))
