"""
Abstract base classes for the two pipeline classifiers.

Implementations must never raise from classify(): internal failures map to
the documented safe default so the consuming worker keeps moving.
"""

from abc import ABC, abstractmethod

from lead_triage.core.models import RawItem, TriageVerdict, ExtractionResult


class BaseTriageClassifier(ABC):
    """Fast lead-vs-noise classifier."""

    @abstractmethod
    def classify(self, item: RawItem) -> TriageVerdict:
        """
        Decide whether an email is a reservation lead.

        Args:
            item: Email fetched from the mailbox

        Returns:
            TriageVerdict, or TriageVerdict.failure() on any internal error
        """
        pass


class BaseExtractionClassifier(ABC):
    """Detailed structured-extraction classifier."""

    @abstractmethod
    def classify(self, text: str) -> ExtractionResult:
        """
        Extract booking fields from an email body.

        Args:
            text: Full plain-text body of a confirmed lead

        Returns:
            ExtractionResult, or ExtractionResult.failure() on any internal error
        """
        pass
