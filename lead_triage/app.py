"""
Pipeline wiring: queues, producer, workers and the ingestion scheduler.
"""

import threading
import time

from lead_triage.config import Settings, settings as default_settings
from lead_triage.core.logging import get_logger
from lead_triage.classifiers import (
    BaseTriageClassifier,
    BaseExtractionClassifier,
    get_triage_classifier,
    get_extraction_classifier,
)
from lead_triage.pipeline import IngestionProducer, TriageWorker, ExtractionWorker
from lead_triage.queues import QueueName, QueueStore
from lead_triage.scheduler import start_ingestion_scheduler, stop_scheduler
from lead_triage.services import (
    BaseMailSource,
    BaseRecordSink,
    BaseCustomerLookup,
    IMAPMailSource,
    JsonlRecordSink,
)
from lead_triage.services.customers import get_customer_lookup

log = get_logger(__name__)


class LeadPipeline:
    """
    Producer -> incoming queue -> triage -> deep extraction queue -> extraction -> sink.

    Collaborators not passed in are built from settings.
    """

    def __init__(
        self,
        mail_source: BaseMailSource | None = None,
        triage_classifier: BaseTriageClassifier | None = None,
        extraction_classifier: BaseExtractionClassifier | None = None,
        sink: BaseRecordSink | None = None,
        customer_lookup: BaseCustomerLookup | None = None,
        queues: QueueStore | None = None,
        config: Settings | None = None,
    ):
        self.config = config or default_settings
        self.queues = queues or QueueStore()

        self.producer = IngestionProducer(mail_source or IMAPMailSource(), self.queues)

        worker_kwargs = {
            "idle_delay": self.config.worker_idle_delay_seconds,
            "error_backoff": self.config.worker_error_backoff_seconds,
        }
        self.triage_worker = TriageWorker(
            self.queues,
            triage_classifier or get_triage_classifier(),
            **worker_kwargs,
        )
        self.extraction_worker = ExtractionWorker(
            self.queues,
            extraction_classifier or get_extraction_classifier(),
            sink or JsonlRecordSink(self.config.output_file),
            customer_lookup or get_customer_lookup(),
            **worker_kwargs,
        )

        self._stopped = threading.Event()
        self.running = False

    def start(self, with_scheduler: bool | None = None) -> None:
        """Start both workers and, if enabled, the ingestion scheduler."""
        if self.running:
            log.warning("pipeline_already_running")
            return

        if with_scheduler is None:
            with_scheduler = self.config.ingestion_enabled

        log.info("pipeline_starting", output_file=self.config.output_file)
        self._stopped.clear()
        self.triage_worker.start()
        self.extraction_worker.start()

        if with_scheduler:
            start_ingestion_scheduler(
                self.producer,
                interval_seconds=self.config.ingestion_interval_seconds,
                run_on_startup=self.config.ingestion_on_startup,
            )
        else:
            log.info("ingestion_scheduler_disabled")

        self.running = True
        log.info("pipeline_running")

    def stop(self) -> None:
        """Stop the scheduler first, then the workers. Queued jobs are discarded."""
        if not self.running:
            return

        stop_scheduler()
        self.triage_worker.stop()
        self.extraction_worker.stop()
        self.running = False
        self._stopped.set()

        log.info(
            "pipeline_stopped",
            incoming_left=self.queues.size(QueueName.INCOMING),
            deep_extraction_left=self.queues.size(QueueName.DEEP_EXTRACTION),
        )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called. Returns True if stopped."""
        return self._stopped.wait(timeout)

    def ingest_once(self) -> int:
        """Run the producer a single time in the calling thread."""
        return self.producer.run()

    def is_idle(self) -> bool:
        """True when every job pushed so far has been fully handled."""
        # Read in pipeline order: a routed job is counted on DeepExtraction
        # before Incoming marks it done, so it cannot slip between the reads.
        return (
            self.queues.unfinished(QueueName.INCOMING) == 0
            and self.queues.unfinished(QueueName.DEEP_EXTRACTION) == 0
        )

    def drain(self, timeout: float | None = None, poll_interval: float = 0.2) -> bool:
        """
        Wait until everything queued so far has been handled.

        Returns:
            True if the pipeline went idle, False on timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.is_idle():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(poll_interval)
        return True
