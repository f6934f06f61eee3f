"""
Command line entry point.

    python -m lead_triage run          # full pipeline until SIGINT/SIGTERM
    python -m lead_triage ingest-once  # single IMAP fetch, processed to completion
"""

import argparse
import signal
import sys

from lead_triage.config import settings
from lead_triage.core.exceptions import PipelineError
from lead_triage.core.logging import configure_logging, get_logger

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lead_triage",
        description="Classify inbound email into reservation leads",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "ingest-once"],
        help="run: start the full pipeline (default); ingest-once: fetch mail a single time",
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Start the workers without the periodic IMAP ingestion",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level, json_output=settings.json_logs)

    with_scheduler = settings.ingestion_enabled and not args.no_scheduler
    try:
        settings.validate_required(require_mail=with_scheduler or args.command == "ingest-once")
    except ValueError as e:
        log.error("configuration_error", error=str(e))
        return 1

    # Imported late so configuration errors are reported before clients are built
    from lead_triage.app import LeadPipeline

    pipeline = LeadPipeline()

    if args.command == "ingest-once":
        # Fetched mail is flagged \Seen, so finish processing it before exiting
        pipeline.start(with_scheduler=False)
        count = None
        try:
            try:
                count = pipeline.ingest_once()
            except PipelineError as e:
                log.error("ingestion_failed", error=str(e), partial_items=len(getattr(e, "items", [])))
            # Also drains what a failed fetch enqueued before failing
            pipeline.drain()
        finally:
            pipeline.stop()
        if count is None:
            return 1
        print(f"Processed {count} email(s)")
        return 0

    def signal_handler(sig, frame):
        log.info("signal_received", signal=sig)
        pipeline.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    pipeline.start(with_scheduler=with_scheduler)
    pipeline.wait()
    return 0


if __name__ == "__main__":
    sys.exit(main())
