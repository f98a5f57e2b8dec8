import threading
from queue import Queue, Empty
from typing import Optional

from models import TransactionRecord


class InMemoryQueue:
    """
    Thread-safe FIFO feeding one shard consumer.
    All synchronization is internal - callers never need to lock.
    """

    DEFAULT_TIMEOUT = 0.1

    def __init__(self):
        self._queue: Queue[TransactionRecord] = Queue()
        self._shutdown_event = threading.Event()

    def publish_message(self, message: TransactionRecord) -> None:
        """Add message to the queue. Thread-safe."""
        self._queue.put(message)

    def consume_message(self, timeout: float = DEFAULT_TIMEOUT) -> Optional[TransactionRecord]:
        """
        Get next message in arrival order.
        Returns None if queue is empty after timeout.
        """
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def is_empty(self) -> bool:
        return self._queue.empty()

    def size(self) -> int:
        """Return approximate queue size."""
        return self._queue.qsize()

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()
