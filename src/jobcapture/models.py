"""
Data models for the capture agent
Defines the captured job record, relay acknowledgments and wire messages
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

JOB_DETECTED = "JOB_DETECTED"
GET_STATUS = "GET_STATUS"
TOGGLE_ENABLED = "TOGGLE_ENABLED"

# Descriptions at or below this length mark a record as poor quality
MIN_GOOD_DESCRIPTION = 100


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Platform(str, Enum):
    LINKEDIN = "LinkedIn"
    INDEED = "Indeed"
    GLASSDOOR = "Glassdoor"


class LocationType(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class SalaryPeriod(str, Enum):
    HOURLY = "hourly"
    ANNUAL = "annual"


class EducationLevel(str, Enum):
    ASSOCIATES = "associates"
    BACHELORS = "bachelors"
    MASTERS = "masters"
    PHD = "phd"


class DataQuality(str, Enum):
    GOOD = "good"
    POOR = "poor"


def placeholder_title(platform: Platform, job_id: Optional[str] = None) -> str:
    """Title synthesized when a posting exposes an id but no readable title."""
    if job_id:
        return f"{platform.value} Job {job_id}"
    return f"{platform.value} Job"


class JobPostingRecord(BaseModel):
    """A single captured job posting"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    platform_job_id: str = Field(min_length=1)
    source_url: str
    platform: Platform
    title: str = Field(min_length=1)
    company: Optional[str] = None
    location: Optional[str] = None
    location_type: Optional[LocationType] = None
    description: Optional[str] = None

    salary: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_period: Optional[SalaryPeriod] = None

    employment_type: Optional[str] = None
    seniority_level: Optional[str] = None
    experience_years: Optional[int] = None
    education_level: Optional[EducationLevel] = None
    skills: Optional[Set[str]] = None
    benefits: Optional[Set[str]] = None

    detected_at: datetime = Field(default_factory=_utc_now)
    data_quality: DataQuality = DataQuality.POOR

    @field_validator("skills", "benefits")
    @classmethod
    def _empty_set_is_none(cls, value: Optional[Set[str]]) -> Optional[Set[str]]:
        return value or None

    @model_validator(mode="after")
    def _normalize(self) -> "JobPostingRecord":
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            self.salary_min, self.salary_max = self.salary_max, self.salary_min
        self.data_quality = assess_quality(self)
        return self

    @property
    def is_placeholder_title(self) -> bool:
        return self.title in (
            placeholder_title(self.platform, self.platform_job_id),
            placeholder_title(self.platform),
        )

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict using the camelCase wire names."""
        payload = self.model_dump(mode="json", by_alias=True)
        for key in ("skills", "benefits"):
            if payload.get(key) is not None:
                payload[key] = sorted(payload[key])
        return payload

    def __str__(self) -> str:
        return f"{self.title} at {self.company or 'Unknown Company'} ({self.platform.value} {self.platform_job_id})"


def assess_quality(record: JobPostingRecord) -> DataQuality:
    """Good means a real title, a company and a substantial description."""
    has_description = bool(record.description) and len(record.description) > MIN_GOOD_DESCRIPTION
    if not record.is_placeholder_title and record.company and has_description:
        return DataQuality.GOOD
    return DataQuality.POOR


class RelayAck(BaseModel):
    """Acknowledgment returned for a JOB_DETECTED message"""

    success: bool
    method: Optional[str] = None  # "primary" | "local"
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def job_detected_message(record: JobPostingRecord) -> Dict[str, Any]:
    return {"type": JOB_DETECTED, "job": record.to_wire()}


def queued_entry(record: JobPostingRecord, captured_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Fallback queue entry: the wire record tagged with its capture time."""
    entry = record.to_wire()
    entry["capturedAt"] = (captured_at or _utc_now()).isoformat()
    return entry
