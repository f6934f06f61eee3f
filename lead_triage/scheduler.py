"""
APScheduler job runner for periodic email ingestion.
"""

from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lead_triage.config import settings
from lead_triage.core.logging import get_logger
from lead_triage.pipeline.producer import IngestionProducer

log = get_logger(__name__)

# Global scheduler instance
_scheduler: BackgroundScheduler | None = None


def ingestion_job(producer: IngestionProducer) -> None:
    """Scheduled job: one producer run. Errors are logged, never raised."""
    log.info("scheduled_job_starting", job="ingest_emails")
    try:
        enqueued = producer.run()
        log.info("scheduled_job_complete", job="ingest_emails", enqueued=enqueued)
    except Exception as e:
        log.error("scheduled_job_error", job="ingest_emails", error=str(e))


def start_ingestion_scheduler(
    producer: IngestionProducer,
    interval_seconds: int | None = None,
    run_on_startup: bool | None = None,
) -> BackgroundScheduler:
    """
    Start the background scheduler that runs the producer on an interval.

    Only one producer run is ever in flight; a run that comes due while the
    previous one is still going is skipped.

    Args:
        producer: Producer to run
        interval_seconds: Seconds between runs (default: settings)
        run_on_startup: Fire the first run immediately (default: settings)

    Returns:
        The scheduler instance
    """
    global _scheduler

    if _scheduler is not None:
        log.warning("scheduler_already_running")
        return _scheduler

    interval_seconds = interval_seconds or settings.ingestion_interval_seconds
    if run_on_startup is None:
        run_on_startup = settings.ingestion_on_startup

    job_kwargs = {}
    if run_on_startup:
        job_kwargs["next_run_time"] = datetime.now(timezone.utc)

    _scheduler = BackgroundScheduler()
    _scheduler.add_job(
        ingestion_job,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[producer],
        id="ingest_emails",
        name="Ingest new emails from IMAP",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        **job_kwargs,
    )

    _scheduler.start()
    log.info(
        "ingestion_scheduler_started",
        interval_seconds=interval_seconds,
        run_on_startup=run_on_startup,
    )

    return _scheduler


def stop_scheduler() -> None:
    """Stop the background scheduler."""
    global _scheduler

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        log.info("scheduler_stopped")


def get_scheduler() -> BackgroundScheduler | None:
    """Get the current scheduler instance."""
    return _scheduler
