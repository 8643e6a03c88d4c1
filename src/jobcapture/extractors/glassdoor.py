"""
Glassdoor extractor
"""

import logging
import re
from typing import Any, Dict, Optional

from jobcapture.document import Document
from jobcapture.extractors.base import FieldExtractor, query_param, url_pattern
from jobcapture.heuristics import (
    INNER_TEXT,
    Strategy,
    chain,
    employment_type_from_json_ld,
    employment_type_from_text,
    first_match,
    json_ld_job_posting,
    location_type_from_text,
)
from jobcapture.models import Platform, SalaryPeriod
from jobcapture.salary import find_salary_in_description, parse_salary_text, salary_from_json_ld

logger = logging.getLogger(__name__)

JV_RE = re.compile(r"JV_(\w+)")

TITLE = chain(
    "title",
    "[data-test='job-title']",
    "h1[class*='JobDetails_jobTitle']",
    ".e1tk4kwz4",
    max_len=199,
)

COMPANY = chain(
    "company",
    "[data-test='employer-name']",
    "[class*='EmployerProfile_employerName']",
    ".e1tk4kwz5",
    max_len=99,
)

LOCATION = chain(
    "location",
    "[data-test='location']",
    "[class*='JobDetails_location']",
    max_len=120,
)

DESCRIPTION = chain(
    "description",
    Strategy("[data-test='jobDescriptionContent']", INNER_TEXT),
    Strategy("[class*='JobDetails_jobDescription']", INNER_TEXT),
    Strategy("#JobDescriptionContainer", INNER_TEXT),
)

SALARY_SELECTOR = "[data-test='detailSalary']"


class GlassdoorExtractor(FieldExtractor):
    platform = Platform.GLASSDOOR
    host_patterns = ("glassdoor.com",)
    posting_url_patterns = (url_pattern(r"JV_"), url_pattern(r"/job-listing/"), url_pattern(r"[?&]jl="))
    posting_markers = ("[data-test='jobDescriptionContent']", "[data-test='job-title']")
    ready_markers = (
        "[data-test='job-title']",
        "[data-test='jobDescriptionContent']",
        "[class*='JobDetails_jobDescription']",
        "#JobDescriptionContainer",
    )
    placeholder_when_untitled = True

    def job_id(self, document: Document) -> Optional[str]:
        url = document.url or ""
        job_id = query_param(url, "jl", "jobListingId")
        if job_id:
            return job_id
        match = JV_RE.search(url)
        return match.group(1) if match else None

    def extract_fields(self, document: Document, job_id: str) -> Dict[str, Any]:
        posting = json_ld_job_posting(document)
        description = first_match(document, DESCRIPTION)
        location = first_match(document, LOCATION)

        title = first_match(document, TITLE)
        if not title and posting:
            title = (posting.get("title") or "").strip() or None

        salary_element = document.select_one(SALARY_SELECTOR)
        salary = parse_salary_text(salary_element.text) if salary_element is not None else None
        if salary and salary.period is None:
            # Glassdoor shows bare ranges for annual pay
            salary.period = SalaryPeriod.ANNUAL
        salary = salary or salary_from_json_ld(posting) or find_salary_in_description(description)

        # Location text and description together; location alone implies on-site
        combined = " ".join(filter(None, [description, location]))
        fields: Dict[str, Any] = {
            "title": title,
            "company": first_match(document, COMPANY),
            "location": location,
            "location_type": location_type_from_text(combined, strict=False, onsite_default=bool(location)),
            "description": description,
            "employment_type": employment_type_from_json_ld(posting) or employment_type_from_text(combined),
        }
        fields.update(self.salary_fields(salary))
        fields.update(self.text_fields(combined))
        return fields
