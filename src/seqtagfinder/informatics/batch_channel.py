"""Bounded hand-off of record batches between a background stage and its owner."""

from __future__ import annotations

import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

# Interval at which blocked send/receive calls re-check the closed flag
_POLL_INTERVAL_S = 0.05


class ChannelClosedError(RuntimeError):
    """Raised when sending on a channel that has been closed."""


class BatchChannel(Generic[T]):
    """Bounded queue of batches with an explicit close.

    ``send`` blocks while ``capacity`` batches are waiting and ``receive``
    blocks while the channel is empty and still open. Either end may call
    :meth:`close`. After closing, ``send`` raises :class:`ChannelClosedError`
    while ``receive`` drains what was already queued and then returns ``None``.

    Every batch sent is handed to exactly one receiver; the sender must not
    touch a batch after sending it.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._queue: "queue.Queue[T]" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, batch: T) -> None:
        while True:
            if self._closed.is_set():
                raise ChannelClosedError("Cannot send on a closed channel")
            try:
                self._queue.put(batch, timeout=_POLL_INTERVAL_S)
                return
            except queue.Full:
                continue

    def receive(self) -> Optional[T]:
        """Return the next batch, or ``None`` once closed and drained."""
        while True:
            try:
                return self._queue.get(timeout=_POLL_INTERVAL_S)
            except queue.Empty:
                if self._closed.is_set():
                    # a send that completed before close() is visible here
                    try:
                        return self._queue.get_nowait()
                    except queue.Empty:
                        return None

    def close(self) -> None:
        self._closed.set()

    def __iter__(self) -> Iterator[T]:
        while True:
            batch = self.receive()
            if batch is None:
                return
            yield batch
