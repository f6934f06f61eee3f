"""
Abstract interfaces for the collaborators the pipeline depends on.
"""

from abc import ABC, abstractmethod

from lead_triage.core.models import RawItem, FinalRecord


class BaseMailSource(ABC):
    """Source of new inbound emails."""

    @abstractmethod
    def fetch_new_items(self) -> list[RawItem]:
        """
        Fetch emails not delivered before and mark them consumed.

        An email is never marked consumed without being returned: on a
        failure partway through, the emails already marked are carried on
        the error's ``items``.

        Raises:
            ConnectivityError: server unreachable or login refused
            ProtocolError: server rejected a command
        """
        pass


class BaseRecordSink(ABC):
    """Append-only store for finalized records."""

    @abstractmethod
    def append(self, record: FinalRecord) -> None:
        """
        Persist one record.

        Raises:
            PersistenceError: the record could not be written
        """
        pass


class BaseCustomerLookup(ABC):
    """Answers whether a sender is already a known customer."""

    @abstractmethod
    def exists(self, identity: str) -> bool:
        pass
