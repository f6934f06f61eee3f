"""Unit tests for core models."""

import json

from lead_triage.core.models import (
    RawItem,
    TriageIntent,
    TriageVerdict,
    CompositeJob,
    ExtractionIntent,
    ExtractionResult,
    BoardBasis,
    FinalRecord,
)


class TestRawItem:
    """Tests for RawItem validation."""

    def test_valid_item(self, sample_item):
        assert sample_item.is_valid
        assert sample_item.missing_fields() == []

    def test_missing_id_and_body(self):
        item = RawItem(email_id="", raw_text="   ")
        assert not item.is_valid
        assert item.missing_fields() == ["email_id", "raw_text"]

    def test_round_trip(self, sample_item):
        assert RawItem.from_dict(sample_item.to_dict()) == sample_item


class TestTriageVerdict:
    """Tests for TriageVerdict."""

    def test_failure_default(self):
        verdict = TriageVerdict.failure()
        assert verdict.is_reservation_lead is False
        assert verdict.initial_intent_type == TriageIntent.FAILURE

    def test_from_dict(self):
        verdict = TriageVerdict.from_dict({"is_reservation_lead": True, "initial_intent_type": "FOLLOW_UP"})
        assert verdict.is_reservation_lead is True
        assert verdict.initial_intent_type == TriageIntent.FOLLOW_UP

    def test_from_dict_unknown_intent_defaults_to_other(self):
        verdict = TriageVerdict.from_dict({"is_reservation_lead": False, "initial_intent_type": "???"})
        assert verdict.initial_intent_type == TriageIntent.OTHER

    def test_truthy_strings_are_not_leads(self):
        verdict = TriageVerdict.from_dict({"is_reservation_lead": "yes"})
        assert verdict.is_reservation_lead is False


class TestExtractionResult:
    """Tests for ExtractionResult."""

    def test_failure_sentinel_fields(self):
        data = ExtractionResult.failure().to_dict()

        assert data == {
            "intent": "FAILURE_REVIEW_NEEDED",
            "confidence_score": 0.0,
            "stay_dates": {"check_in_date": None, "check_out_date": None, "num_nights": 0},
            "accommodation": {"num_people": 0, "num_rooms": 0, "board_basis": "UNKNOWN"},
            "hotel_preference": {"name": None, "star_rating": None},
            "requester_details": {"full_name": "ERROR", "organization": None},
        }

    def test_error_marker_only_on_failure_sentinel(self):
        assert ExtractionResult(intent=ExtractionIntent.NEW_RFQ).requester_details.full_name == "UNKNOWN"
        assert ExtractionResult.from_dict({"intent": "NEW_RFQ"}).requester_details.full_name == "UNKNOWN"
        assert ExtractionResult.failure().requester_details.full_name == "ERROR"

    def test_from_dict_fills_missing_sections(self):
        result = ExtractionResult.from_dict({"intent": "CANCELLATION"})

        assert result.intent == ExtractionIntent.CANCELLATION
        assert result.stay_dates.num_nights == 0
        assert result.accommodation.board_basis == BoardBasis.UNKNOWN
        assert result.requester_details.full_name == "UNKNOWN"

    def test_from_dict_coerces_numbers(self):
        result = ExtractionResult.from_dict({
            "intent": "NEW_RFQ",
            "confidence_score": "0.5",
            "accommodation": {"num_people": "4", "num_rooms": None, "board_basis": "HB"},
            "hotel_preference": {"star_rating": "five"},
        })

        assert result.confidence_score == 0.5
        assert result.accommodation.num_people == 4
        assert result.accommodation.num_rooms == 0
        assert result.accommodation.board_basis == BoardBasis.HALF_BOARD
        assert result.hotel_preference.star_rating is None


class TestFinalRecord:
    """Tests for the persisted record shape."""

    def test_to_dict_layout(self, sample_job, sample_extraction):
        record = FinalRecord.assemble(sample_job, sample_extraction, is_existing_customer=True)
        data = record.to_dict()

        assert data["email_id"] == "42"
        assert data["sender_email"] == "a@b.com"
        assert data["ingestion_timestamp"] == "2026-03-01T08:00:00+00:00"
        assert data["triage_record"] == {"is_reservation_lead": True, "initial_intent_type": "RFQ"}
        assert data["extracted_data"]["accommodation"]["board_basis"] == "BB"
        assert data["extracted_data"]["processing_metadata"] == {
            "triage_intent": "RFQ",
            "triage_decision": True,
            "is_existing_customer": True,
        }

    def test_json_round_trip(self, sample_job, sample_extraction):
        record = FinalRecord.assemble(sample_job, sample_extraction, is_existing_customer=False)
        restored = FinalRecord.from_dict(json.loads(json.dumps(record.to_dict())))

        assert restored == record

    def test_failure_sentinel_round_trip(self, sample_job):
        record = FinalRecord.assemble(sample_job, ExtractionResult.failure(), is_existing_customer=False)
        restored = FinalRecord.from_dict(json.loads(json.dumps(record.to_dict())))

        assert restored.extraction == ExtractionResult.failure()
        assert restored.extraction.is_failure


class TestCompositeJob:
    def test_email_id(self, sample_job):
        assert sample_job.email_id == "42"

    def test_email_id_without_item(self, lead_verdict):
        assert CompositeJob(item=None, verdict=lead_verdict).email_id == ""
