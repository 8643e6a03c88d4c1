from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import LINKEDIN_URL, make_record
from jobcapture.models import (
    DataQuality,
    JobPostingRecord,
    Platform,
    RelayAck,
    job_detected_message,
    placeholder_title,
    queued_entry,
)


def test_salary_bounds_are_swapped():
    record = make_record(salary_min=120000, salary_max=90000)
    assert record.salary_min == 90000
    assert record.salary_max == 120000


def test_good_quality_needs_title_company_and_description():
    assert make_record().data_quality is DataQuality.GOOD
    assert make_record(company=None).data_quality is DataQuality.POOR
    assert make_record(description="Too short").data_quality is DataQuality.POOR


def test_description_threshold_is_exclusive():
    assert make_record(description="x" * 100).data_quality is DataQuality.POOR
    assert make_record(description="x" * 101).data_quality is DataQuality.GOOD


@pytest.mark.parametrize("job_id", [None, "111"])
def test_placeholder_title_is_poor(job_id):
    record = make_record(title=placeholder_title(Platform.LINKEDIN, job_id))
    assert record.is_placeholder_title
    assert record.data_quality is DataQuality.POOR


def test_missing_id_or_title_is_rejected():
    with pytest.raises(ValidationError):
        make_record(job_id="")
    with pytest.raises(ValidationError):
        make_record(title="")


def test_empty_sets_become_none():
    record = make_record(skills=set(), benefits={"PTO", "PTO"})
    assert record.skills is None
    assert record.benefits == {"PTO"}


def test_wire_format_uses_camel_case():
    record = make_record(
        skills={"Python", "AWS"},
        detected_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
    wire = record.to_wire()
    assert wire["platformJobId"] == "111"
    assert wire["sourceUrl"] == LINKEDIN_URL
    assert wire["platform"] == "LinkedIn"
    assert wire["skills"] == ["AWS", "Python"]
    assert wire["dataQuality"] == "good"
    assert wire["detectedAt"].startswith("2024-05-01T12:00:00")


def test_wire_record_validates_back():
    record = make_record(salary_min=10, salary_max=20)
    again = JobPostingRecord.model_validate(record.to_wire())
    assert again.platform_job_id == record.platform_job_id
    assert again.salary_max == 20


def test_job_detected_message():
    message = job_detected_message(make_record())
    assert message["type"] == "JOB_DETECTED"
    assert message["job"]["title"] == "Platform Engineer"


def test_queued_entry_carries_capture_time():
    captured_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    entry = queued_entry(make_record(), captured_at)
    assert entry["capturedAt"] == "2024-01-02T03:04:05+00:00"
    assert entry["platformJobId"] == "111"


def test_relay_ack_omits_unset_fields():
    assert RelayAck(success=True, method="primary").to_dict() == {"success": True, "method": "primary"}
    assert RelayAck(success=False, reason="disabled").to_dict() == {"success": False, "reason": "disabled"}
