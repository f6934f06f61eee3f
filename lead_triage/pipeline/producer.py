"""
Ingestion producer: mailbox -> incoming queue.
"""

from lead_triage.core.exceptions import IngestionError
from lead_triage.core.logging import get_logger
from lead_triage.core.models import RawItem
from lead_triage.queues import QueueName, QueueStore
from lead_triage.services.base import BaseMailSource

log = get_logger(__name__)


class IngestionProducer:
    """Pulls new emails once per run and enqueues the valid ones."""

    def __init__(self, mail_source: BaseMailSource, queues: QueueStore):
        self.mail_source = mail_source
        self.queues = queues

    def run(self) -> int:
        """
        Fetch new emails and push one job per valid email.

        Items pushed before a failure stay queued; there is no rollback. If
        the fetch fails partway, the messages it already marked consumed are
        enqueued before the error is re-raised.

        Returns:
            Number of jobs enqueued

        Raises:
            ConnectivityError, ProtocolError: the mailbox fetch failed
        """
        log.info("ingestion_run_starting")

        try:
            items = self.mail_source.fetch_new_items()
        except IngestionError as e:
            enqueued = self._enqueue(e.items)
            log.error(
                "ingestion_run_failed",
                error=str(e),
                error_type=type(e).__name__,
                enqueued=enqueued,
            )
            raise

        enqueued = self._enqueue(items)
        log.info(
            "ingestion_run_complete",
            fetched=len(items),
            enqueued=enqueued,
            queue_size=self.queues.size(QueueName.INCOMING),
        )
        return enqueued

    def _enqueue(self, items: list[RawItem]) -> int:
        enqueued = 0
        for item in items:
            missing = item.missing_fields()
            if missing:
                log.warning("ingestion_item_rejected", email_id=item.email_id, missing=missing)
                continue

            self.queues.push(QueueName.INCOMING, item)
            enqueued += 1
        return enqueued
