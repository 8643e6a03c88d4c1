"""
Field extractor base - document to JobPostingRecord, or None when not ready
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Pattern, Tuple
from urllib.parse import parse_qs, urlparse

from pydantic import ValidationError

from jobcapture.document import Document
from jobcapture.heuristics import (
    BENEFIT_VOCABULARY,
    SKILL_VOCABULARY,
    education_level,
    experience_years,
)
from jobcapture.models import DataQuality, JobPostingRecord, Platform, placeholder_title
from jobcapture.salary import SalaryInfo

logger = logging.getLogger(__name__)


def query_param(url: str, *names: str) -> Optional[str]:
    """First non-empty query parameter among names."""
    query = parse_qs(urlparse(url).query)
    for name in names:
        value = (query.get(name) or [None])[0]
        if value and value.strip():
            return value.strip()
    return None


class FieldExtractor(ABC):
    """Stateless extractor for one job board."""

    platform: Platform
    host_patterns: Tuple[str, ...] = ()
    posting_url_patterns: Tuple[Pattern, ...] = ()
    # DOM markers that identify a posting view even when the URL does not
    posting_markers: Tuple[str, ...] = ()
    # Containers whose presence means the detail content has rendered
    ready_markers: Tuple[str, ...] = ()
    # Synthesize "<Platform> Job" instead of waiting when no title is readable
    placeholder_when_untitled: bool = False

    def matches_host(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(host == pattern or host.endswith("." + pattern) for pattern in self.host_patterns)

    def is_posting_view(self, document: Document) -> bool:
        """URL pattern OR posting-indicator DOM marker; either suffices."""
        url = document.url or ""
        if any(pattern.search(url) for pattern in self.posting_url_patterns):
            return True
        return any(document.select_one(marker) is not None for marker in self.posting_markers)

    def is_ready(self, document: Document) -> bool:
        if not self.ready_markers:
            return True
        return any(document.select_one(marker) is not None for marker in self.ready_markers)

    @abstractmethod
    def job_id(self, document: Document) -> Optional[str]:
        """Platform-assigned posting id from the URL or the DOM."""

    @abstractmethod
    def extract_fields(self, document: Document, job_id: str) -> Dict[str, Any]:
        """Best-effort field values keyed by JobPostingRecord attribute names."""

    def extract(self, document: Document) -> Optional[JobPostingRecord]:
        """Return a record, or None so the caller retries."""
        try:
            job_id = self.job_id(document)
            if not job_id:
                logger.debug("%s: no job id in %s", self.platform.value, document.url)
                return None
            if not self.is_ready(document):
                logger.debug("%s: main content not rendered yet", self.platform.value)
                return None

            fields = self.extract_fields(document, job_id)
            if not fields.get("title"):
                if not self.placeholder_when_untitled:
                    logger.debug("%s: no title yet for job %s", self.platform.value, job_id)
                    return None
                fields["title"] = placeholder_title(self.platform)

            record = JobPostingRecord(
                platform_job_id=job_id,
                source_url=document.url,
                platform=self.platform,
                **fields,
            )
        except ValidationError as exc:
            logger.warning("%s: extracted data failed validation: %s", self.platform.value, exc)
            return None
        except Exception:
            logger.exception("%s job extraction error", self.platform.value)
            return None

        if record.data_quality is DataQuality.POOR:
            description_len = len(record.description or "")
            logger.warning(
                "%s: limited data quality for job %s (title=%s, company=%s, description=%d chars)",
                self.platform.value,
                job_id,
                "generic" if record.is_placeholder_title else "ok",
                "ok" if record.company else "missing",
                description_len,
            )
        return record

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def salary_fields(info: Optional[SalaryInfo]) -> Dict[str, Any]:
        if not info:
            return {}
        return {
            "salary": info.raw or None,
            "salary_min": info.minimum,
            "salary_max": info.maximum,
            "salary_period": info.period,
        }

    @staticmethod
    def text_fields(text: Optional[str]) -> Dict[str, Any]:
        """Fields mined from free text: experience, education, skills, benefits."""
        if not text:
            return {}
        return {
            "experience_years": experience_years(text),
            "education_level": education_level(text),
            "skills": SKILL_VOCABULARY.find(text) or None,
            "benefits": BENEFIT_VOCABULARY.find(text) or None,
        }


def url_pattern(expression: str) -> Pattern:
    return re.compile(expression, re.IGNORECASE)
