"""
IMAP mail source.

Fetches UNSEEN messages, converts them to RawItems and flags them \\Seen so a
later run does not deliver them again.
"""

import imaplib
import re
from datetime import datetime, timezone
from email import message_from_bytes
from email.header import decode_header as email_decode_header
from email.utils import parseaddr, parsedate_to_datetime

from lead_triage.config import settings
from lead_triage.core.exceptions import ConnectivityError, IngestionError, ProtocolError
from lead_triage.core.logging import get_logger
from lead_triage.core.models import RawItem
from lead_triage.services.base import BaseMailSource

log = get_logger(__name__)


class IMAPMailSource(BaseMailSource):
    """IMAP client that delivers each unseen message once."""

    def __init__(
        self,
        host: str | None = None,
        user: str | None = None,
        password: str | None = None,
        port: int | None = None,
        folder: str | None = None,
        use_ssl: bool | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.imap_host
        self.user = user or settings.imap_user
        self.password = password or settings.imap_password
        self.port = port or settings.imap_port
        self.folder = folder or settings.imap_folder
        self.use_ssl = settings.imap_use_ssl if use_ssl is None else use_ssl
        self.timeout = timeout or settings.imap_timeout_seconds
        self._conn: imaplib.IMAP4 | None = None

    def connect(self) -> None:
        """Connect and authenticate to IMAP server."""
        log.info("imap_connecting", host=self.host, user=self.user)
        conn = None
        try:
            if self.use_ssl:
                conn = imaplib.IMAP4_SSL(self.host, self.port, timeout=self.timeout)
            else:
                conn = imaplib.IMAP4(self.host, self.port, timeout=self.timeout)
            conn.login(self.user, self.password)
            self._conn = conn  # Only set if login succeeds
            log.info("imap_connected")
        except (OSError, imaplib.IMAP4.error) as e:
            if conn:
                try:
                    conn.logout()
                except (OSError, imaplib.IMAP4.error):
                    pass
            raise ConnectivityError(f"IMAP connection to {self.host} failed: {e}") from e

    def disconnect(self) -> None:
        """Close IMAP connection."""
        if self._conn:
            try:
                self._conn.logout()
            except (OSError, imaplib.IMAP4.error):
                pass
            self._conn = None
            log.info("imap_disconnected")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def fetch_new_items(self) -> list[RawItem]:
        """
        Fetch every unseen message in the configured folder.

        Messages that cannot be parsed are logged and left unseen for the
        next run. Parsed messages are flagged \\Seen before returning. When
        the batch fails partway, the messages already taken are attached to
        the raised error as ``items``.
        """
        items: list[RawItem] = []
        with self:
            try:
                self._fetch_unseen(items)
            except IngestionError as e:
                e.items = items
                raise
            except imaplib.IMAP4.abort as e:
                raise ConnectivityError(f"IMAP connection lost: {e}", items=items) from e
            except imaplib.IMAP4.error as e:
                raise ProtocolError(f"IMAP error: {e}", items=items) from e
            except OSError as e:
                raise ConnectivityError(f"IMAP socket error: {e}", items=items) from e
        return items

    def _fetch_unseen(self, items: list[RawItem]) -> None:
        """Append each unseen message to items, then flag it \\Seen."""
        self._check(self._conn.select(self.folder, readonly=False), f"SELECT {self.folder}")

        data = self._check(self._conn.uid("SEARCH", None, "UNSEEN"), "UID SEARCH UNSEEN")
        uids = data[0].split() if data and data[0] else []

        if not uids:
            log.info("imap_no_new_messages", folder=self.folder)
            return

        log.info("imap_fetching", folder=self.folder, count=len(uids))

        for uid in uids:
            uid_str = uid.decode() if isinstance(uid, bytes) else str(uid)
            data = self._check(self._conn.uid("FETCH", uid_str, "(BODY.PEEK[])"), f"UID FETCH {uid_str}")

            raw_email = self._extract_payload(data)
            if raw_email is None:
                log.warning("imap_empty_fetch", uid=uid_str)
                continue

            try:
                item = self._parse_email(uid_str, raw_email)
            except (ValueError, LookupError, UnicodeError) as e:
                log.error("imap_parse_error", uid=uid_str, error=str(e))
                continue

            # Deliver before flagging: a failed STORE may re-deliver, never lose
            items.append(item)
            self._check(
                self._conn.uid("STORE", uid_str, "+FLAGS", "(\\Seen)"),
                f"UID STORE {uid_str}",
            )

        log.info("imap_fetch_complete", folder=self.folder, count=len(items))

    @staticmethod
    def _check(response: tuple, command: str) -> list:
        """Return response data, raising ProtocolError on a non-OK status."""
        status, data = response
        if status != "OK":
            raise ProtocolError(f"{command} failed: {status} {data!r}")
        return data

    @staticmethod
    def _extract_payload(data: list) -> bytes | None:
        """Pick the message bytes out of a FETCH response."""
        for part in data or []:
            if isinstance(part, tuple) and len(part) >= 2 and part[1]:
                return part[1]
        return None

    def _parse_email(self, uid: str, raw_email: bytes) -> RawItem:
        """Parse raw RFC822 bytes into a RawItem."""
        msg = message_from_bytes(raw_email)

        _, sender = parseaddr(self._decode_header(msg.get("From", "")))

        return RawItem(
            email_id=uid,
            sender_email=sender.lower(),
            subject=self._decode_header(msg.get("Subject", "")),
            raw_text=self._get_body(msg),
            timestamp=self._parse_date(msg.get("Date")),
        )

    @staticmethod
    def _parse_date(date_str: str | None) -> datetime:
        """Message date in UTC, or now when missing or unparseable."""
        if date_str:
            try:
                parsed = parsedate_to_datetime(date_str)
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed.astimezone(timezone.utc)
            except (TypeError, ValueError):
                pass
        return datetime.now(timezone.utc)

    @staticmethod
    def _decode_header(header: str) -> str:
        """Decode MIME-encoded email header like '=?UTF-8?B?...?='."""
        if not header:
            return ""
        decoded_parts = []
        for part, charset in email_decode_header(header):
            if isinstance(part, bytes):
                decoded_parts.append(part.decode(charset or "utf-8", errors="replace"))
            else:
                decoded_parts.append(part)
        return "".join(decoded_parts).replace("\r\n", "").replace("\n", "")

    def _get_body(self, msg) -> str:
        """Extract the body, preferring plain text over stripped HTML."""
        text_plain = ""
        text_html = ""

        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if part.is_multipart():
                continue
            if "attachment" in part.get("Content-Disposition", ""):
                continue

            payload = part.get_payload(decode=True)
            if not payload:
                continue

            text = payload.decode(part.get_content_charset() or "utf-8", errors="replace")
            content_type = part.get_content_type()
            if content_type == "text/plain":
                text_plain += text
            elif content_type == "text/html":
                text_html += text

        return text_plain.strip() or self._strip_html(text_html)

    @staticmethod
    def _strip_html(html: str) -> str:
        """Strip HTML tags from text."""
        if not html:
            return ""
        text = re.sub(r"<[^>]+>", " ", html)
        return re.sub(r"\s+", " ", text).strip()
