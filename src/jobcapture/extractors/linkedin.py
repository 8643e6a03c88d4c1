"""
LinkedIn extractor

Handles both /jobs/view/<id> pages and the split search view where the
selected posting is identified by ?currentJobId=<id>.
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
    collect_texts,
    employment_type_from_insights,
    first_match,
    location_type_from_insights,
    location_type_from_text,
    seniority_from_insights,
)
from jobcapture.models import Platform
from jobcapture.salary import find_salary_in_description, find_salary_in_insights

logger = logging.getLogger(__name__)

VIEW_ID_RE = re.compile(r"/jobs/view/(\d+)")

MAIN_CONTAINERS = (
    ".jobs-details",
    ".job-details",
    "[class*='jobs-unified-top-card']",
    "[class*='job-details-jobs-unified-top-card']",
    "main",
    "[role='main']",
)

INSIGHT_SELECTORS = (
    ".jobs-unified-top-card__job-insight",
    "li.jobs-unified-top-card__job-insight-view-model-secondary",
    ".job-details-jobs-unified-top-card__job-insight",
    ".job-details-fit-level-preferences button",
    ".job-details-fit-level-preferences span",
    ".job-details-preferences-and-skills span",
    "span.ui-label",
    ".artdeco-pill",
)

SENIORITY_SELECTORS = (
    ".job-details-jobs-unified-top-card__job-insight",
    ".jobs-unified-top-card__job-insight",
)

TITLE = chain(
    "title",
    ".job-details-jobs-unified-top-card__job-title",
    ".jobs-unified-top-card__job-title",
    "h1.t-24",
    ".jobs-details-top-card__job-title",
    "h1[class*='job-title']",
    "h2[class*='job-title']",
    "[class*='jobs-unified-top-card'] h1",
    "[class*='job-details'] h1",
    "h1[class*='t-']",
    "main h1",
    "[role='main'] h1",
    Strategy("h1", all_matches=True),
    min_len=6,
    max_len=199,
    exclude=("LinkedIn",),
)

COMPANY = chain(
    "company",
    ".job-details-jobs-unified-top-card__company-name",
    ".jobs-unified-top-card__company-name",
    ".jobs-details-top-card__company-name a",
    "a[class*='company-name']",
    "[class*='jobs-unified-top-card'] a[href*='/company/']",
    "[class*='job-details'] a[href*='/company/']",
    ".jobs-company a",
    Strategy("a[href*='/company/']", all_matches=True),
    max_len=99,
)

LOCATION = chain(
    "location",
    Strategy(".job-details-jobs-unified-top-card__bullet", all_matches=True),
    Strategy(".jobs-unified-top-card__bullet", all_matches=True),
    Strategy(".jobs-details-top-card__location", all_matches=True),
    Strategy(".job-details-jobs-unified-top-card__primary-description-container span", all_matches=True),
    max_len=120,
    require=lambda text: "," in text,
)

DESCRIPTION = chain(
    "description",
    Strategy(".jobs-description-content__text", INNER_TEXT),
    Strategy(".jobs-description__content", INNER_TEXT),
    Strategy("#job-details", INNER_TEXT),
    Strategy("[class*='jobs-description']", INNER_TEXT),
    Strategy(".jobs-box__html-content", INNER_TEXT),
    Strategy("[class*='job-details'] article", INNER_TEXT),
    Strategy(".show-more-less-html__markup", INNER_TEXT),
    Strategy("[class*='description-content']", INNER_TEXT),
    min_len=51,
)

DESCRIPTION_FALLBACK = chain(
    "description (generic)",
    Strategy("article, [role='article'], div[class*='description']", INNER_TEXT, all_matches=True),
    min_len=101,
)


def _clean_title(title: str) -> str:
    cleaned = title.replace(" with verification", "").replace(" With Verification", "")
    # Strip "| $XX/hr - $YY/hr - Remote" suffixes
    pipe_match = re.search(
        r'\s*\|\s*\$[\d,./\-\s]+(?:hr|yr|hour|year)?(?:\s*-\s*(?:Remote|Hybrid|On-site))?.*$',
        cleaned,
        re.IGNORECASE,
    )
    if pipe_match:
        cleaned = cleaned[:pipe_match.start()]
    # "Title Title" -> "Title" (screen-reader duplicates)
    tokens = cleaned.split()
    if len(tokens) >= 2 and len(tokens) % 2 == 0:
        half = len(tokens) // 2
        if tokens[:half] == tokens[half:]:
            cleaned = " ".join(tokens[:half])
    return cleaned.strip()


class LinkedInExtractor(FieldExtractor):
    platform = Platform.LINKEDIN
    host_patterns = ("linkedin.com",)
    posting_url_patterns = (url_pattern(r"/jobs/view/"), url_pattern(r"[?&]currentJobId="))
    posting_markers = (".jobs-details", "[data-job-id]")
    ready_markers = MAIN_CONTAINERS

    def job_id(self, document: Document) -> Optional[str]:
        match = VIEW_ID_RE.search(document.url or "")
        if match:
            return match.group(1)
        job_id = query_param(document.url or "", "currentJobId")
        if job_id:
            return job_id
        element = document.select_one("[data-job-id]")
        if element is not None:
            return (element.get("data-job-id") or "").strip() or None
        return None

    def extract_fields(self, document: Document, job_id: str) -> Dict[str, Any]:
        insights = collect_texts(document, INSIGHT_SELECTORS)
        logger.debug("LinkedIn: %d insight fragments: %s", len(insights), insights)

        title = first_match(document, TITLE)
        description = first_match(document, DESCRIPTION) or first_match(document, DESCRIPTION_FALLBACK)

        salary = find_salary_in_insights(insights) or find_salary_in_description(description)
        location_type = location_type_from_insights(insights) or location_type_from_text(description)

        fields: Dict[str, Any] = {
            "title": _clean_title(title) if title else None,
            "company": first_match(document, COMPANY),
            "location": first_match(document, LOCATION),
            "location_type": location_type,
            "description": description,
            "employment_type": employment_type_from_insights(insights),
            "seniority_level": seniority_from_insights(collect_texts(document, SENIORITY_SELECTORS)),
        }
        fields.update(self.salary_fields(salary))
        fields.update(self.text_fields(description))
        return fields
