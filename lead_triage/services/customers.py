"""
Existing-customer lookups used to enrich extracted leads.
"""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from lead_triage.config import settings
from lead_triage.core.logging import get_logger
from lead_triage.services.base import BaseCustomerLookup

log = get_logger(__name__)


class StaticCustomerLookup(BaseCustomerLookup):
    """Lookup against a fixed set of known addresses."""

    def __init__(self, known: Iterable[str] = ()):
        self.known = {identity.lower() for identity in known}

    def exists(self, identity: str) -> bool:
        return (identity or "").lower() in self.known


class RecordStreamCustomerLookup(BaseCustomerLookup):
    """
    A sender is a customer if an earlier record in the JSONL stream came
    from the same address.

    Senders are cached with the byte offset read so far; each lookup only
    reads lines appended since the previous one. A file that shrank is
    read again from the start.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.output_file)
        self._senders: set[str] = set()
        self._offset = 0
        self._lock = threading.Lock()

    def exists(self, identity: str) -> bool:
        identity = (identity or "").lower()
        if not identity:
            return False

        with self._lock:
            self._refresh()
            return identity in self._senders

    def _refresh(self) -> None:
        if not self.path.exists():
            self._senders.clear()
            self._offset = 0
            return

        if self.path.stat().st_size < self._offset:
            log.info("record_stream_truncated", path=str(self.path))
            self._senders.clear()
            self._offset = 0

        with self.path.open("rb") as f:
            f.seek(self._offset)
            for line in f:
                if not line.endswith(b"\n"):
                    break  # partial write, read it next time
                self._offset += len(line)
                line = line.strip()
                if not line:
                    continue
                try:
                    sender = json.loads(line).get("sender_email") or ""
                except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
                    log.warning("record_stream_bad_line", path=str(self.path))
                    continue
                if sender:
                    self._senders.add(sender.lower())


class PostgresCustomerLookup(BaseCustomerLookup):
    """Lookup against a customers table in PostgreSQL."""

    def __init__(
        self,
        connection_string: str | None = None,
        table: str = "customers",
        column: str = "email",
    ):
        """
        Args:
            connection_string: PostgreSQL connection URL. Uses settings if not provided.
            table: Table holding known customers
            column: Column holding the customer email address
        """
        self.connection_string = connection_string or settings.customer_db_url
        if not self.connection_string:
            raise ValueError("CUSTOMER_DB_URL is required")
        self.table = table
        self.column = column

    @contextmanager
    def get_connection(self) -> Generator[psycopg.Connection, None, None]:
        """Get a database connection as a context manager."""
        conn = psycopg.connect(self.connection_string, row_factory=dict_row)
        try:
            yield conn
        finally:
            conn.close()

    def exists(self, identity: str) -> bool:
        query = sql.SQL("SELECT 1 FROM {table} WHERE lower({column}) = lower(%s) LIMIT 1").format(
            table=sql.Identifier(self.table),
            column=sql.Identifier(self.column),
        )
        with self.get_connection() as conn:
            row = conn.execute(query, (identity,)).fetchone()
        return row is not None


def get_customer_lookup() -> BaseCustomerLookup:
    """PostgreSQL lookup when configured, otherwise the record stream."""
    if settings.customer_db_url:
        return PostgresCustomerLookup()
    return RecordStreamCustomerLookup()
