"""External collaborators: mailbox, record sink and customer lookups."""

from .base import BaseMailSource, BaseRecordSink, BaseCustomerLookup
from .imap import IMAPMailSource
from .sink import JsonlRecordSink
from .customers import (
    PostgresCustomerLookup,
    RecordStreamCustomerLookup,
    StaticCustomerLookup,
)

__all__ = [
    "BaseMailSource",
    "BaseRecordSink",
    "BaseCustomerLookup",
    "IMAPMailSource",
    "JsonlRecordSink",
    "PostgresCustomerLookup",
    "RecordStreamCustomerLookup",
    "StaticCustomerLookup",
]
