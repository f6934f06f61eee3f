"""In-process job queues shared by the pipeline stages."""

from .store import QueueName, QueueStore

__all__ = ["QueueName", "QueueStore"]
