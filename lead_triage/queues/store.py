"""
Thread-safe FIFO queue store.

Holds the two pipeline queues (incoming emails and triaged leads). Jobs are
opaque to the store. Nothing is persisted; a restart starts empty.
"""

import threading
from collections import deque
from enum import Enum
from typing import Any

from lead_triage.core.logging import get_logger

log = get_logger(__name__)


class QueueName(str, Enum):
    """Queues known to the store."""

    INCOMING = "incoming"
    DEEP_EXTRACTION = "deep_extraction"


class _Queue:
    """A single unbounded FIFO guarded by its own condition."""

    def __init__(self):
        self.items: deque[Any] = deque()
        self.cond = threading.Condition()
        self.unfinished = 0


class QueueStore:
    """
    Named FIFO queues with non-blocking pop.

    push/pop are atomic per queue, so a producer thread and a consumer
    thread may use the same queue concurrently.
    """

    def __init__(self, names: tuple[QueueName, ...] = tuple(QueueName)):
        self._queues: dict[QueueName, _Queue] = {name: _Queue() for name in names}

    def _get(self, name: QueueName) -> _Queue:
        try:
            return self._queues[QueueName(name)]
        except (KeyError, ValueError):
            raise KeyError(f"Unknown queue: {name}")

    def push(self, name: QueueName, job: Any) -> None:
        """Append a job at the tail of the queue and wake one waiter."""
        queue = self._get(name)
        with queue.cond:
            queue.items.append(job)
            queue.unfinished += 1
            size = len(queue.items)
            queue.cond.notify()
        log.debug("queue_push", queue=QueueName(name).value, size=size)

    def pop(self, name: QueueName) -> Any | None:
        """
        Remove and return the job at the head of the queue.

        Returns None when the queue is empty; never blocks.
        """
        queue = self._get(name)
        with queue.cond:
            if not queue.items:
                return None
            job = queue.items.popleft()
            remaining = len(queue.items)
        log.debug("queue_pop", queue=QueueName(name).value, remaining=remaining)
        return job

    def wait(self, name: QueueName, timeout: float) -> bool:
        """
        Block until the queue has a job or the timeout elapses.

        Does not remove anything; callers still pop. Returns True if a job
        was available when the wait ended.
        """
        queue = self._get(name)
        with queue.cond:
            return queue.cond.wait_for(lambda: len(queue.items) > 0, timeout=timeout)

    def size(self, name: QueueName) -> int:
        """Current number of jobs in the queue."""
        queue = self._get(name)
        with queue.cond:
            return len(queue.items)

    def task_done(self, name: QueueName) -> None:
        """
        Mark a job popped from the queue as fully handled.

        A job counts as unfinished from push until task_done, so a consumer
        that forwards a job pushes it onward before calling this.
        """
        queue = self._get(name)
        with queue.cond:
            if queue.unfinished <= 0:
                raise ValueError(f"task_done() called too many times on {QueueName(name).value}")
            queue.unfinished -= 1

    def unfinished(self, name: QueueName) -> int:
        """Jobs pushed to the queue and not yet marked done, queued or in hand."""
        queue = self._get(name)
        with queue.cond:
            return queue.unfinished
