from queue import Queue
from typing import Iterator

from ledger_models import Transaction


class InMemoryQueue:
    """
    Thread-safe FIFO feeding a single shard worker.
    shutdown() enqueues an end marker behind every message published so far.
    """

    _END = object()

    def __init__(self):
        self._queue: Queue = Queue()

    def publish_message(self, message: Transaction) -> None:
        """Add message to the queue. Thread-safe."""
        self._queue.put(message)

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._queue.put(self._END)

    def messages(self) -> Iterator[Transaction]:
        """Yield messages in publish order, blocking while empty, until shutdown."""
        while True:
            message = self._queue.get()
            if message is self._END:
                return
            yield message
