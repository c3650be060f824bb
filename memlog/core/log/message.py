"""
Messages and their completion handles.
"""

from concurrent.futures import Future
from dataclasses import dataclass

from memlog.core.time import Timepoint, TimeUnit


@dataclass(frozen=True)
class Message:
    """
    A single message appended to a log.

    Attributes:
        sender_id: Identity of the manager instance that produced the message
        timepoint: Time the message was created
        content: Message payload
    """

    sender_id: str
    timepoint: Timepoint
    content: bytes

    def __post_init__(self) -> None:
        """Validate message fields."""
        if not isinstance(self.content, bytes):
            raise TypeError(f"Content must be bytes, got {type(self.content)}")

    def get_sender_id(self) -> str:
        return self.sender_id

    def get_timestamp(self, unit: TimeUnit = TimeUnit.MICROSECONDS) -> int:
        """
        Get the message timestamp.

        Args:
            unit: Unit to express the timestamp in

        Returns:
            Time since the epoch in ``unit``
        """
        return self.timepoint.get_timestamp(unit)

    def get_content(self) -> bytes:
        return self.content


class FutureMessage(Future):
    """
    Completion handle returned by ``Log.add``.

    The wrapped message exists from the moment the handle is created and is
    available through ``message`` right away. ``result()`` blocks until the
    message has been delivered to the log's readers and then returns it.
    """

    def __init__(self, message: Message):
        super().__init__()
        self._message = message

    @property
    def message(self) -> Message:
        return self._message

    def is_delivered(self) -> bool:
        return self.done()

    def delivered(self) -> None:
        """
        Mark the message as delivered.

        Raises:
            concurrent.futures.InvalidStateError: If already delivered
        """
        self.set_result(self._message)

    def __repr__(self) -> str:
        state = "delivered" if self.done() else "pending"
        return f"<FutureMessage {state} message={self._message!r}>"
