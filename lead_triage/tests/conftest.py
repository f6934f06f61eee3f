"""
Shared pytest fixtures for lead_triage tests.
"""

from datetime import datetime, timezone

import pytest

from lead_triage.core.models import (
    RawItem,
    TriageIntent,
    TriageVerdict,
    CompositeJob,
    ExtractionIntent,
    ExtractionResult,
    StayDates,
    Accommodation,
    BoardBasis,
    HotelPreference,
    RequesterDetails,
)
from lead_triage.classifiers.base import BaseTriageClassifier, BaseExtractionClassifier
from lead_triage.queues import QueueStore
from lead_triage.services.base import BaseMailSource, BaseRecordSink, BaseCustomerLookup


class FakeMailSource(BaseMailSource):
    """Mailbox double: delivers each message once, like IMAP \\Seen flags."""

    def __init__(self, items=None, error: Exception | None = None, fail_after: int | None = None):
        self.items = list(items or [])
        self.consumed: set[str] = set()
        self.error = error
        self.fail_after = fail_after  # consume this many messages, then raise error
        self.calls = 0

    def fetch_new_items(self) -> list[RawItem]:
        self.calls += 1
        new = [item for item in self.items if item.email_id not in self.consumed]
        if self.error:
            taken = new[:self.fail_after or 0]
            self.consumed.update(item.email_id for item in taken)
            self.error.items = taken
            raise self.error
        self.consumed.update(item.email_id for item in new)
        return new


class FakeTriageClassifier(BaseTriageClassifier):
    """Marks an email as a lead when its body mentions a room."""

    def __init__(self, fail_ids=()):
        self.fail_ids = set(fail_ids)
        self.calls: list[str] = []

    def classify(self, item: RawItem) -> TriageVerdict:
        self.calls.append(item.email_id)
        if item.email_id in self.fail_ids:
            raise RuntimeError(f"classifier exploded on {item.email_id}")
        if "room" in item.raw_text.lower():
            return TriageVerdict(is_reservation_lead=True, initial_intent_type=TriageIntent.RFQ)
        return TriageVerdict(is_reservation_lead=False, initial_intent_type=TriageIntent.NOISE_SPAM)


class FakeExtractionClassifier(BaseExtractionClassifier):
    def __init__(self, result: ExtractionResult):
        self.result = result
        self.calls: list[str] = []

    def classify(self, text: str) -> ExtractionResult:
        self.calls.append(text)
        return self.result


class InMemorySink(BaseRecordSink):
    def __init__(self, error: Exception | None = None):
        self.records = []
        self.error = error

    def append(self, record) -> None:
        if self.error:
            raise self.error
        self.records.append(record)


class FailingCustomerLookup(BaseCustomerLookup):
    def exists(self, identity: str) -> bool:
        raise ConnectionError("customer database unavailable")


@pytest.fixture
def sample_item() -> RawItem:
    """The booking request used throughout the tests."""
    return RawItem(
        email_id="42",
        sender_email="a@b.com",
        subject="Room request",
        raw_text="Need a room for 2 people, 3 nights, breakfast included",
        timestamp=datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def noise_item() -> RawItem:
    return RawItem(
        email_id="43",
        sender_email="newsletter@vendor.com",
        subject="Our spring newsletter",
        raw_text="Check out our latest offers on office chairs.",
        timestamp=datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def lead_verdict() -> TriageVerdict:
    return TriageVerdict(is_reservation_lead=True, initial_intent_type=TriageIntent.RFQ)


@pytest.fixture
def sample_job(sample_item, lead_verdict) -> CompositeJob:
    return CompositeJob(item=sample_item, verdict=lead_verdict)


@pytest.fixture
def sample_extraction() -> ExtractionResult:
    return ExtractionResult(
        intent=ExtractionIntent.NEW_RFQ,
        confidence_score=0.92,
        stay_dates=StayDates(check_in_date=None, check_out_date=None, num_nights=3),
        accommodation=Accommodation(num_people=2, num_rooms=1, board_basis=BoardBasis.BED_AND_BREAKFAST),
        hotel_preference=HotelPreference(name=None, star_rating=None),
        requester_details=RequesterDetails(full_name="Unknown", organization=None),
    )


@pytest.fixture
def queues() -> QueueStore:
    return QueueStore()


@pytest.fixture
def mail_source_factory():
    return FakeMailSource


@pytest.fixture
def triage_classifier() -> FakeTriageClassifier:
    return FakeTriageClassifier()


@pytest.fixture
def triage_classifier_factory():
    return FakeTriageClassifier


@pytest.fixture
def extraction_classifier(sample_extraction) -> FakeExtractionClassifier:
    return FakeExtractionClassifier(sample_extraction)


@pytest.fixture
def sink() -> InMemorySink:
    return InMemorySink()


@pytest.fixture
def sink_factory():
    return InMemorySink


@pytest.fixture
def failing_lookup() -> FailingCustomerLookup:
    return FailingCustomerLookup()


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock settings for testing."""
    monkeypatch.setenv("IMAP_HOST", "imap.example.com")
    monkeypatch.setenv("IMAP_USER", "leads@example.com")
    monkeypatch.setenv("IMAP_PASSWORD", "test-password")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
