"""
Queue consumers for the triage and deep extraction stages.

Each worker runs its own thread and handles one job at a time. An empty
queue is polled again after a short idle wait; an unhandled error is logged
and followed by a longer back-off. The job that failed is dropped.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any

from lead_triage.config import settings
from lead_triage.core.exceptions import MalformedJobError
from lead_triage.core.logging import get_logger, bind_context, clear_context
from lead_triage.core.models import RawItem, CompositeJob, FinalRecord
from lead_triage.classifiers.base import BaseTriageClassifier, BaseExtractionClassifier
from lead_triage.queues import QueueName, QueueStore
from lead_triage.services.base import BaseRecordSink, BaseCustomerLookup

log = get_logger(__name__)


class BaseWorker(ABC):
    """Polling consumer of a single queue."""

    name: str = "worker"
    source_queue: QueueName

    def __init__(
        self,
        queues: QueueStore,
        idle_delay: float | None = None,
        error_backoff: float | None = None,
    ):
        self.queues = queues
        self.idle_delay = settings.worker_idle_delay_seconds if idle_delay is None else idle_delay
        self.error_backoff = settings.worker_error_backoff_seconds if error_backoff is None else error_backoff
        self.stats = {"processed": 0, "malformed": 0, "failed": 0}
        self.busy = False  # True while a popped job is being handled
        self.thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        """Start the worker in a background thread."""
        if self.running:
            log.warning("worker_already_running", worker=self.name)
            return

        self._stop_event.clear()
        self.thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self.thread.start()
        log.info("worker_started", worker=self.name, queue=self.source_queue.value)

    def stop(self, timeout: float = 10.0) -> None:
        """Stop the worker and wait for the current job to finish."""
        self._stop_event.set()
        if self.thread:
            self.thread.join(timeout=timeout)
            self.thread = None
        log.info("worker_stopped", worker=self.name, **self.stats)

    def _run(self) -> None:
        """Main worker loop."""
        while not self._stop_event.is_set():
            try:
                if not self.process_next():
                    # Queue empty: wake early if a job is pushed
                    self.queues.wait(self.source_queue, self.idle_delay)
            except Exception as e:
                log.warning("worker_backoff", worker=self.name, seconds=self.error_backoff, error=str(e))
                self._stop_event.wait(self.error_backoff)

    def process_next(self) -> bool:
        """
        Pop and handle one job.

        Returns:
            False if the queue was empty, True if a job was taken

        Raises:
            Exception: anything the handler did not recover from; the job is lost
        """
        self.busy = True
        job = self.queues.pop(self.source_queue)
        if job is None:
            self.busy = False
            return False

        job_id = self._job_id(job)
        bind_context(worker=self.name, email_id=job_id)
        try:
            self.handle(job)
            self.stats["processed"] += 1
        except MalformedJobError as e:
            self.stats["malformed"] += 1
            log.error("malformed_job_dropped", reason=str(e))
        except Exception as e:
            self.stats["failed"] += 1
            log.error("job_failed", error=str(e), exc_info=True)
            raise
        finally:
            # After any onward push, so the job is never uncounted in between
            self.queues.task_done(self.source_queue)
            clear_context()
            self.busy = False
        return True

    @staticmethod
    def _job_id(job: Any) -> str:
        return getattr(job, "email_id", None) or "UNKNOWN_ID"

    @abstractmethod
    def handle(self, job: Any) -> None:
        """Process a single popped job."""
        pass


class TriageWorker(BaseWorker):
    """Incoming queue -> triage classifier -> deep extraction queue."""

    name = "triage_worker"
    source_queue = QueueName.INCOMING

    def __init__(self, queues: QueueStore, classifier: BaseTriageClassifier, **kwargs):
        super().__init__(queues, **kwargs)
        self.classifier = classifier
        self.stats.update({"routed": 0, "discarded": 0})

    def handle(self, item: RawItem) -> None:
        if not isinstance(item, RawItem):
            raise MalformedJobError(f"Expected RawItem, got {type(item).__name__}")
        missing = item.missing_fields()
        if missing:
            raise MalformedJobError(f"Missing fields: {', '.join(missing)}")

        log.info("triage_processing", subject=item.subject[:50])
        verdict = self.classifier.classify(item)

        if verdict.is_reservation_lead:
            self.queues.push(QueueName.DEEP_EXTRACTION, CompositeJob(item=item, verdict=verdict))
            self.stats["routed"] += 1
            log.info("lead_routed", intent=verdict.initial_intent_type.value)
        else:
            self.stats["discarded"] += 1
            log.info("noise_discarded", intent=verdict.initial_intent_type.value)


class ExtractionWorker(BaseWorker):
    """Deep extraction queue -> extraction classifier -> record sink."""

    name = "extraction_worker"
    source_queue = QueueName.DEEP_EXTRACTION

    def __init__(
        self,
        queues: QueueStore,
        classifier: BaseExtractionClassifier,
        sink: BaseRecordSink,
        customer_lookup: BaseCustomerLookup,
        **kwargs,
    ):
        super().__init__(queues, **kwargs)
        self.classifier = classifier
        self.sink = sink
        self.customer_lookup = customer_lookup
        self.stats.update({"saved": 0})

    def handle(self, job: CompositeJob) -> None:
        item = getattr(job, "item", None)
        if item is None or not (item.raw_text or "").strip():
            raise MalformedJobError("Missing essential raw mail data for extraction")

        extraction = self.classifier.classify(item.raw_text)
        is_existing_customer = self._lookup_customer(item.sender_email)

        record = FinalRecord.assemble(job, extraction, is_existing_customer)
        self.sink.append(record)

        self.stats["saved"] += 1
        log.info(
            "lead_saved",
            intent=extraction.intent.value,
            needs_review=extraction.is_failure,
            is_existing_customer=is_existing_customer,
        )

    def _lookup_customer(self, sender_email: str) -> bool:
        """Best-effort customer check; failures count as not a customer."""
        try:
            return bool(self.customer_lookup.exists(sender_email))
        except Exception as e:
            log.warning("customer_lookup_failed", error=str(e))
            return False
