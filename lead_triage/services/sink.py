"""
JSON-lines record sink.

Each finalized record is appended as one self-describing JSON object per
line. The file is the pipeline's only durable output.
"""

import json
import threading
from pathlib import Path
from typing import Iterator

from lead_triage.config import settings
from lead_triage.core.exceptions import PersistenceError
from lead_triage.core.logging import get_logger
from lead_triage.core.models import FinalRecord
from lead_triage.services.base import BaseRecordSink

log = get_logger(__name__)


class JsonlRecordSink(BaseRecordSink):
    """Append-only JSONL file of finalized records."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.output_file)
        self._lock = threading.Lock()

    def append(self, record: FinalRecord) -> None:
        """Append one record as a single JSON line."""
        line = json.dumps(record.to_dict(), ensure_ascii=False) + "\n"

        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line)
        except OSError as e:
            log.error("record_write_failed", path=str(self.path), email_id=record.item.email_id, error=str(e))
            raise PersistenceError(f"Failed to append record {record.item.email_id}: {e}") from e

        log.info("record_saved", email_id=record.item.email_id, path=str(self.path))

    def read_records(self) -> Iterator[FinalRecord]:
        """Iterate over every record in the stream, oldest first."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield FinalRecord.from_dict(json.loads(line))
