"""Bounded FIFO mailbox for the polling transport."""
import asyncio
from typing import Any


class MessageQueue:
    """Outbound envelopes for one role of one session, drained on poll."""

    def __init__(self, max_size: int = 1000) -> None:
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_size)

    def put(self, message: dict[str, Any]) -> bool:
        """Enqueue ``message``; returns False when the queue is full."""
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            return False

    def drain(self) -> list[dict[str, Any]]:
        """Remove and return every queued message in FIFO order."""
        messages = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return messages

    def size(self) -> int:
        return self._queue.qsize()
