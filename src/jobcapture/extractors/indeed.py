"""
Indeed extractor
"""

import logging
from typing import Any, Dict, Optional

from jobcapture.document import Document
from jobcapture.extractors.base import FieldExtractor, query_param, url_pattern
from jobcapture.heuristics import (
    INNER_TEXT,
    Strategy,
    chain,
    collect_texts,
    employment_type_from_insights,
    employment_type_from_json_ld,
    employment_type_from_text,
    first_match,
    json_ld_job_posting,
    location_type_from_insights,
    location_type_from_text,
)
from jobcapture.models import Platform
from jobcapture.salary import (
    find_salary_in_description,
    find_salary_in_insights,
    salary_from_json_ld,
)

logger = logging.getLogger(__name__)

TITLE = chain(
    "title",
    "h1.jobsearch-JobInfoHeader-title",
    "h2.jobsearch-JobInfoHeader-title",
    "[data-testid='jobsearch-JobInfoHeader-title']",
    ".jobsearch-JobComponent-title",
    max_len=199,
)

COMPANY = chain(
    "company",
    "[data-testid='inlineHeader-companyName']",
    "[data-company-name='true']",
    ".jobsearch-InlineCompanyRating-companyHeader a",
    ".jobsearch-CompanyInfoContainer a",
    max_len=99,
)

LOCATION = chain(
    "location",
    "[data-testid='inlineHeader-companyLocation']",
    Strategy(".jobsearch-JobInfoHeader-subtitle div", all_matches=True),
    "[data-testid='job-location']",
    max_len=120,
)

DESCRIPTION = chain(
    "description",
    Strategy("#jobDescriptionText", INNER_TEXT),
    Strategy(".jobsearch-jobDescriptionText", INNER_TEXT),
    Strategy("[data-testid='jobDescriptionText']", INNER_TEXT),
)

# Salary, job-type and remote pills in the header and details section
INSIGHT_SELECTORS = (
    "[data-testid='attribute_snippet_testid']",
    "#salaryInfoAndJobType span",
    ".jobsearch-JobMetadataHeader-item",
    "#jobDetailsSection [data-testid$='-tile'] li",
    "[data-testid='jobsearch-OtherJobDetailsContainer'] div",
)


class IndeedExtractor(FieldExtractor):
    platform = Platform.INDEED
    host_patterns = ("indeed.com",)
    posting_url_patterns = (url_pattern(r"/viewjob"), url_pattern(r"/rc/clk"), url_pattern(r"[?&]vjk="))
    posting_markers = ("#jobDescriptionText", ".jobsearch-JobComponent")
    ready_markers = (
        "#jobDescriptionText",
        ".jobsearch-JobComponent",
        ".jobsearch-JobInfoHeader-title",
        "[data-testid='jobsearch-JobInfoHeader-title']",
    )
    placeholder_when_untitled = True

    def job_id(self, document: Document) -> Optional[str]:
        return query_param(document.url or "", "jk", "vjk")

    def extract_fields(self, document: Document, job_id: str) -> Dict[str, Any]:
        posting = json_ld_job_posting(document)
        insights = collect_texts(document, INSIGHT_SELECTORS)
        description = first_match(document, DESCRIPTION)

        title = first_match(document, TITLE)
        if not title and posting:
            title = (posting.get("title") or "").strip() or None
        if not title:
            # The search query is the next best label for a title-less view
            title = query_param(document.url or "", "q")

        company = first_match(document, COMPANY)
        if not company and posting:
            organization = posting.get("hiringOrganization")
            if isinstance(organization, dict):
                company = (organization.get("name") or "").strip() or None

        salary = (
            find_salary_in_insights(insights)
            or salary_from_json_ld(posting)
            or find_salary_in_description(description)
        )
        location = first_match(document, LOCATION)

        fields: Dict[str, Any] = {
            "title": title,
            "company": company,
            "location": location,
            "location_type": (
                location_type_from_insights(insights)
                or location_type_from_text(" ".join(filter(None, [location, description])))
            ),
            "description": description,
            "employment_type": (
                employment_type_from_insights(insights)
                or employment_type_from_json_ld(posting)
                or employment_type_from_text(" ".join(insights))
            ),
        }
        fields.update(self.salary_fields(salary))
        fields.update(self.text_fields(description))
        return fields
