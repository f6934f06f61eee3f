"""Unit tests for the record sink and customer lookups."""

import json
from unittest.mock import MagicMock, patch

import pytest

from lead_triage.core.exceptions import PersistenceError
from lead_triage.core.models import CompositeJob, ExtractionResult, FinalRecord, RawItem
from lead_triage.services import (
    JsonlRecordSink,
    PostgresCustomerLookup,
    RecordStreamCustomerLookup,
    StaticCustomerLookup,
)
from lead_triage.services.customers import get_customer_lookup
from lead_triage.config import settings


@pytest.fixture
def sample_record(sample_job, sample_extraction) -> FinalRecord:
    return FinalRecord.assemble(sample_job, sample_extraction, is_existing_customer=False)


class TestJsonlRecordSink:
    """Tests for the append-only JSONL stream."""

    def test_append_writes_one_line_per_record(self, tmp_path, sample_record, sample_job):
        path = tmp_path / "out" / "records.jsonl"
        sink = JsonlRecordSink(path)

        sink.append(sample_record)
        sink.append(FinalRecord.assemble(sample_job, ExtractionResult.failure(), True))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["email_id"] == "42"
        assert json.loads(lines[1])["extracted_data"]["intent"] == "FAILURE_REVIEW_NEEDED"

    def test_read_records_round_trip(self, tmp_path, sample_record):
        sink = JsonlRecordSink(tmp_path / "records.jsonl")
        sink.append(sample_record)

        assert list(sink.read_records()) == [sample_record]

    def test_read_records_missing_file(self, tmp_path):
        assert list(JsonlRecordSink(tmp_path / "nope.jsonl").read_records()) == []

    def test_write_failure_raises_persistence_error(self, tmp_path, sample_record):
        # A directory cannot be opened for append
        sink = JsonlRecordSink(tmp_path)

        with pytest.raises(PersistenceError):
            sink.append(sample_record)

    def test_non_ascii_preserved(self, tmp_path, sample_job, sample_extraction):
        sink = JsonlRecordSink(tmp_path / "records.jsonl")
        sample_extraction.requester_details.full_name = "José Núñez"
        sink.append(FinalRecord.assemble(sample_job, sample_extraction, False))

        assert "José Núñez" in (tmp_path / "records.jsonl").read_text(encoding="utf-8")


class TestCustomerLookups:
    def test_static_lookup_is_case_insensitive(self):
        lookup = StaticCustomerLookup(["Guest@Hotel.com"])
        assert lookup.exists("guest@hotel.com") is True
        assert lookup.exists("other@hotel.com") is False
        assert lookup.exists(None) is False

    def test_record_stream_lookup(self, tmp_path, sample_record):
        path = tmp_path / "records.jsonl"
        lookup = RecordStreamCustomerLookup(path)
        assert lookup.exists("a@b.com") is False

        JsonlRecordSink(path).append(sample_record)

        assert lookup.exists("A@B.com") is True
        assert lookup.exists("c@d.com") is False

    def test_record_stream_lookup_skips_bad_lines(self, tmp_path):
        path = tmp_path / "records.jsonl"
        path.write_text('not json\n\n{"sender_email": "a@b.com"}\n', encoding="utf-8")

        assert RecordStreamCustomerLookup(path).exists("a@b.com") is True

    def test_record_stream_lookup_reads_only_new_lines(self, tmp_path, sample_record, sample_job, sample_extraction):
        path = tmp_path / "records.jsonl"
        sink = JsonlRecordSink(path)
        sink.append(sample_record)
        lookup = RecordStreamCustomerLookup(path)

        with patch("lead_triage.services.customers.json.loads", wraps=json.loads) as loads:
            assert lookup.exists("a@b.com") is True
            assert lookup.exists("c@d.com") is False
            assert loads.call_count == 1

            item = RawItem(email_id="50", sender_email="c@d.com", raw_text="hi")
            other = FinalRecord.assemble(CompositeJob(item=item, verdict=sample_job.verdict), sample_extraction, False)
            sink.append(other)

            assert lookup.exists("C@D.com") is True
            assert loads.call_count == 2

    def test_record_stream_lookup_waits_for_complete_line(self, tmp_path):
        path = tmp_path / "records.jsonl"
        path.write_text('{"sender_email": "a@b.com"}', encoding="utf-8")
        lookup = RecordStreamCustomerLookup(path)

        assert lookup.exists("a@b.com") is False

        with path.open("a", encoding="utf-8") as f:
            f.write("\n")
        assert lookup.exists("a@b.com") is True

    def test_record_stream_lookup_rereads_truncated_file(self, tmp_path):
        path = tmp_path / "records.jsonl"
        path.write_text('{"sender_email": "first-sender@example.com"}\n', encoding="utf-8")
        lookup = RecordStreamCustomerLookup(path)
        assert lookup.exists("first-sender@example.com") is True

        path.write_text('{"sender_email": "b@c.com"}\n', encoding="utf-8")

        assert lookup.exists("b@c.com") is True
        assert lookup.exists("first-sender@example.com") is False

    def test_postgres_lookup_found(self):
        conn = MagicMock()
        conn.execute.return_value.fetchone.return_value = {"?column?": 1}

        with patch("lead_triage.services.customers.psycopg.connect", return_value=conn) as connect:
            lookup = PostgresCustomerLookup("postgresql://u:p@db/crm")
            assert lookup.exists("a@b.com") is True

        connect.assert_called_once()
        assert conn.execute.call_args.args[1] == ("a@b.com",)
        conn.close.assert_called_once()

    def test_postgres_lookup_not_found(self):
        conn = MagicMock()
        conn.execute.return_value.fetchone.return_value = None

        with patch("lead_triage.services.customers.psycopg.connect", return_value=conn):
            assert PostgresCustomerLookup("postgresql://u:p@db/crm").exists("a@b.com") is False

    def test_postgres_lookup_requires_url(self, monkeypatch):
        monkeypatch.setattr(settings, "customer_db_url", None)
        with pytest.raises(ValueError):
            PostgresCustomerLookup()

    def test_factory_prefers_postgres_when_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "customer_db_url", "postgresql://u:p@db/crm")
        assert isinstance(get_customer_lookup(), PostgresCustomerLookup)

        monkeypatch.setattr(settings, "customer_db_url", None)
        assert isinstance(get_customer_lookup(), RecordStreamCustomerLookup)
