"""
Abstract log contract.

Code that publishes to or consumes from a log depends on these types only,
so an in-memory implementation can stand in for a real backend in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, runtime_checkable

from memlog.core.log.message import FutureMessage, Message
from memlog.core.time import Timepoint


class LogError(Exception):
    """Base class for log failures."""
    pass


class LogUnavailableError(LogError):
    """Raised when the log backend rejects an append."""
    pass


@runtime_checkable
class MessageReader(Protocol):
    """Receives every message delivered by a log it is registered with."""

    def read(self, message: Message) -> None: ...


@dataclass(frozen=True)
class ReadMarker:
    """
    Position a reader asks to start reading from.

    Attributes:
        identifier: Reader identity used to resume from a stored position
        start_time: Time to start from when no stored position exists
            (None means "now")
    """

    identifier: Optional[str] = None
    start_time: Optional[Timepoint] = None

    @classmethod
    def from_now(cls) -> "ReadMarker":
        return cls()

    @classmethod
    def from_time(cls, start_time: Timepoint) -> "ReadMarker":
        return cls(start_time=start_time)

    @classmethod
    def from_identifier_or_now(cls, identifier: str) -> "ReadMarker":
        return cls(identifier=identifier)

    @classmethod
    def from_identifier_or_time(cls, identifier: str, start_time: Timepoint) -> "ReadMarker":
        return cls(identifier=identifier, start_time=start_time)

    def has_identifier(self) -> bool:
        return self.identifier is not None

    def has_start_time(self) -> bool:
        return self.start_time is not None


class Log(ABC):
    """A named, append-only channel that fans messages out to readers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name the log was opened under."""

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def add(self, content: bytes, key: Optional[bytes] = None) -> FutureMessage:
        """
        Append a message.

        Args:
            content: Message payload
            key: Partition key; implementations with a single partition
                ignore it

        Returns:
            Handle that resolves once the message has been delivered

        Raises:
            LogUnavailableError: If the backend rejects the append
        """

    def register_reader(self, marker: ReadMarker, *readers: MessageReader) -> None:
        """Register one or more readers, starting from ``marker``."""
        self.register_readers(marker, readers)

    @abstractmethod
    def register_readers(self, marker: ReadMarker, readers: Iterable[MessageReader]) -> None:
        """
        Register readers, starting from ``marker``.

        Args:
            marker: Position to start reading from
            readers: Readers to register
        """

    @abstractmethod
    def unregister_reader(self, reader: MessageReader) -> bool:
        """
        Remove a reader.

        Returns:
            True if the reader was registered
        """

    @abstractmethod
    def close(self) -> None:
        """Release the log's readers and resources."""

    def __enter__(self) -> "Log":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LogManager(ABC):
    """Opens logs by name."""

    @abstractmethod
    def open_log(self, name: str) -> Log:
        """
        Open the log with the given name, creating it if needed.

        Args:
            name: Log name

        Returns:
            The log registered under ``name``
        """

    @abstractmethod
    def close(self) -> None:
        """Close the manager and every log it opened."""

    def __enter__(self) -> "LogManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
