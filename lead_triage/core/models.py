"""
Data models for the lead pipeline.

Uses dataclasses for clean, typed data structures. Every model knows how to
serialize itself to the dict shape written to the record stream and how to
rebuild itself from that shape.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class TriageIntent(str, Enum):
    """Intent category assigned by the triage classifier."""

    RFQ = "RFQ"
    FOLLOW_UP = "FOLLOW_UP"
    NOISE_SPAM = "NOISE_SPAM"
    COMPLAINT = "COMPLAINT"
    OTHER = "OTHER"
    FAILURE = "FAILURE"  # Classifier could not produce a verdict


class ExtractionIntent(str, Enum):
    """Intent category assigned by the deep extraction classifier."""

    NEW_RFQ = "NEW_RFQ"
    FOLLOW_UP_ORDER = "FOLLOW_UP_ORDER"
    NEW_RFQ_AFTER_PREVIOUS = "NEW_RFQ_AFTER_PREVIOUS"
    CANCELLATION = "CANCELLATION"
    OTHER_INQUIRY = "OTHER_INQUIRY"
    FAILURE_REVIEW_NEEDED = "FAILURE_REVIEW_NEEDED"


class BoardBasis(str, Enum):
    """Meal plan included with a stay."""

    ROOM_ONLY = "RO"
    BED_AND_BREAKFAST = "BB"
    HALF_BOARD = "HB"
    FULL_BOARD = "FB"
    ALL_INCLUSIVE = "AI"
    UNKNOWN = "UNKNOWN"


def _to_int(value: Any, default: int | None = 0) -> int | None:
    """Coerce classifier output to int, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class RawItem:
    """A single inbound email as fetched from the mailbox."""

    email_id: str
    sender_email: str = ""
    subject: str = ""
    raw_text: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def missing_fields(self) -> list[str]:
        """Names of required fields that are empty."""
        missing = []
        if not (self.email_id or "").strip():
            missing.append("email_id")
        if not (self.raw_text or "").strip():
            missing.append("raw_text")
        return missing

    @property
    def is_valid(self) -> bool:
        """True if the item may enter the pipeline."""
        return not self.missing_fields()

    def to_dict(self) -> dict[str, Any]:
        return {
            "email_id": self.email_id,
            "sender_email": self.sender_email,
            "subject": self.subject,
            "raw_text": self.raw_text,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawItem":
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            email_id=data.get("email_id") or "",
            sender_email=data.get("sender_email") or "",
            subject=data.get("subject") or "",
            raw_text=data.get("raw_text") or "",
            timestamp=timestamp or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class TriageVerdict:
    """Result of the fast first-pass classification."""

    is_reservation_lead: bool
    initial_intent_type: TriageIntent

    @classmethod
    def failure(cls) -> "TriageVerdict":
        """Safe default used when the classifier fails."""
        return cls(is_reservation_lead=False, initial_intent_type=TriageIntent.FAILURE)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TriageVerdict":
        """Create a verdict from classifier response dict."""
        return cls(
            is_reservation_lead=data.get("is_reservation_lead") is True,
            initial_intent_type=_to_enum(
                TriageIntent, data.get("initial_intent_type"), TriageIntent.OTHER
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_reservation_lead": self.is_reservation_lead,
            "initial_intent_type": self.initial_intent_type.value,
        }


@dataclass(frozen=True)
class CompositeJob:
    """A triaged lead waiting for deep extraction."""

    item: RawItem
    verdict: TriageVerdict

    @property
    def email_id(self) -> str:
        return self.item.email_id if self.item else ""


@dataclass
class StayDates:
    check_in_date: str | None = None  # YYYY-MM-DD
    check_out_date: str | None = None
    num_nights: int = 0


@dataclass
class Accommodation:
    num_people: int = 0
    num_rooms: int = 0
    board_basis: BoardBasis = BoardBasis.UNKNOWN


@dataclass
class HotelPreference:
    name: str | None = None
    star_rating: int | None = None


FAILURE_FULL_NAME = "ERROR"  # requester name carried by the extraction failure sentinel


@dataclass
class RequesterDetails:
    full_name: str = "UNKNOWN"
    organization: str | None = None


@dataclass
class ExtractionResult:
    """
    Structured booking fields extracted from a confirmed lead.

    All sections are always populated; missing values from the classifier
    are filled with neutral defaults. Only failure() sets the "ERROR"
    requester name.
    """

    intent: ExtractionIntent
    confidence_score: float = 0.0
    stay_dates: StayDates = field(default_factory=StayDates)
    accommodation: Accommodation = field(default_factory=Accommodation)
    hotel_preference: HotelPreference = field(default_factory=HotelPreference)
    requester_details: RequesterDetails = field(default_factory=RequesterDetails)

    @property
    def is_failure(self) -> bool:
        return self.intent == ExtractionIntent.FAILURE_REVIEW_NEEDED

    @classmethod
    def failure(cls) -> "ExtractionResult":
        """Sentinel returned when extraction fails; keeps the full schema."""
        return cls(
            intent=ExtractionIntent.FAILURE_REVIEW_NEEDED,
            requester_details=RequesterDetails(full_name=FAILURE_FULL_NAME),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractionResult":
        """Create ExtractionResult from classifier response dict."""
        stay = data.get("stay_dates") or {}
        accommodation = data.get("accommodation") or {}
        hotel = data.get("hotel_preference") or {}
        requester = data.get("requester_details") or {}

        try:
            confidence = float(data.get("confidence_score") or 0.0)
        except (TypeError, ValueError):
            confidence = 0.0

        return cls(
            intent=_to_enum(
                ExtractionIntent, data.get("intent"), ExtractionIntent.OTHER_INQUIRY
            ),
            confidence_score=confidence,
            stay_dates=StayDates(
                check_in_date=stay.get("check_in_date"),
                check_out_date=stay.get("check_out_date"),
                num_nights=_to_int(stay.get("num_nights")),
            ),
            accommodation=Accommodation(
                num_people=_to_int(accommodation.get("num_people")),
                num_rooms=_to_int(accommodation.get("num_rooms")),
                board_basis=_to_enum(
                    BoardBasis, accommodation.get("board_basis"), BoardBasis.UNKNOWN
                ),
            ),
            hotel_preference=HotelPreference(
                name=hotel.get("name"),
                star_rating=_to_int(hotel.get("star_rating"), default=None),
            ),
            requester_details=RequesterDetails(
                full_name=requester.get("full_name") or RequesterDetails.full_name,
                organization=requester.get("organization"),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON storage."""
        return {
            "intent": self.intent.value,
            "confidence_score": self.confidence_score,
            "stay_dates": {
                "check_in_date": self.stay_dates.check_in_date,
                "check_out_date": self.stay_dates.check_out_date,
                "num_nights": self.stay_dates.num_nights,
            },
            "accommodation": {
                "num_people": self.accommodation.num_people,
                "num_rooms": self.accommodation.num_rooms,
                "board_basis": self.accommodation.board_basis.value,
            },
            "hotel_preference": {
                "name": self.hotel_preference.name,
                "star_rating": self.hotel_preference.star_rating,
            },
            "requester_details": {
                "full_name": self.requester_details.full_name,
                "organization": self.requester_details.organization,
            },
        }


@dataclass
class ProcessingMetadata:
    """Post-processing facts attached to an extraction."""

    triage_intent: TriageIntent
    triage_decision: bool
    is_existing_customer: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "triage_intent": self.triage_intent.value,
            "triage_decision": self.triage_decision,
            "is_existing_customer": self.is_existing_customer,
        }


@dataclass
class FinalRecord:
    """The complete deal: raw email, triage verdict, extraction and metadata."""

    item: RawItem
    verdict: TriageVerdict
    extraction: ExtractionResult
    metadata: ProcessingMetadata

    @classmethod
    def assemble(
        cls,
        job: CompositeJob,
        extraction: ExtractionResult,
        is_existing_customer: bool,
    ) -> "FinalRecord":
        return cls(
            item=job.item,
            verdict=job.verdict,
            extraction=extraction,
            metadata=ProcessingMetadata(
                triage_intent=job.verdict.initial_intent_type,
                triage_decision=job.verdict.is_reservation_lead,
                is_existing_customer=is_existing_customer,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the record stream line format."""
        return {
            "email_id": self.item.email_id,
            "sender_email": self.item.sender_email,
            "subject": self.item.subject,
            "raw_text": self.item.raw_text,
            "ingestion_timestamp": self.item.timestamp.isoformat() if self.item.timestamp else None,
            "triage_record": self.verdict.to_dict(),
            "extracted_data": {
                **self.extraction.to_dict(),
                "processing_metadata": self.metadata.to_dict(),
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FinalRecord":
        """Rebuild a record read back from the record stream."""
        item = RawItem.from_dict({
            "email_id": data.get("email_id"),
            "sender_email": data.get("sender_email"),
            "subject": data.get("subject"),
            "raw_text": data.get("raw_text"),
            "timestamp": data.get("ingestion_timestamp"),
        })
        verdict = TriageVerdict.from_dict(data.get("triage_record") or {})
        extracted = dict(data.get("extracted_data") or {})
        meta = extracted.pop("processing_metadata", None) or {}

        return cls(
            item=item,
            verdict=verdict,
            extraction=ExtractionResult.from_dict(extracted),
            metadata=ProcessingMetadata(
                triage_intent=_to_enum(
                    TriageIntent, meta.get("triage_intent"), verdict.initial_intent_type
                ),
                triage_decision=bool(meta.get("triage_decision", verdict.is_reservation_lead)),
                is_existing_customer=bool(meta.get("is_existing_customer", False)),
            ),
        )
