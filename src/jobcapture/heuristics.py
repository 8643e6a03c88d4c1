"""
Extraction heuristics - ordered selector chains and free-text classifiers

Every platform extractor describes its fields as data (FieldChain) and lets
first_match() walk the chain: most specific selectors first, generic
structural fallbacks last, first plausible candidate wins.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from jobcapture.document import Document, Element
from jobcapture.models import EducationLevel, LocationType

logger = logging.getLogger(__name__)

TEXT = "text"
INNER_TEXT = "inner_text"
ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class Strategy:
    """One way of reading a field: a CSS selector plus how to read the match."""

    selector: str
    read: str = TEXT
    attribute: Optional[str] = None
    all_matches: bool = False  # examine every match instead of only the first

    def candidates(self, document: Document) -> List[str]:
        elements = document.select(self.selector) if self.all_matches else [
            e for e in [document.select_one(self.selector)] if e is not None
        ]
        return [read_element(e, self.read, self.attribute) for e in elements]


@dataclass(frozen=True)
class FieldChain:
    """Ordered strategies plus the plausibility filter every candidate must pass."""

    name: str
    strategies: Tuple[Strategy, ...]
    min_len: int = 1
    max_len: Optional[int] = None
    exclude: Tuple[str, ...] = ()
    require: Optional[Callable[[str], bool]] = None

    def accepts(self, value: str) -> bool:
        if not value or len(value) < self.min_len:
            return False
        if self.max_len is not None and len(value) > self.max_len:
            return False
        if any(token in value for token in self.exclude):
            return False
        if self.require is not None and not self.require(value):
            return False
        return True


def chain(name: str, *strategies, **filters) -> FieldChain:
    """Build a FieldChain; bare strings become first-match text strategies."""
    built = tuple(s if isinstance(s, Strategy) else Strategy(s) for s in strategies)
    return FieldChain(name=name, strategies=built, **filters)


def read_element(element: Element, read: str = TEXT, attribute: Optional[str] = None) -> str:
    if read == ATTRIBUTE:
        return (element.get(attribute or "") or "").strip()
    if read == INNER_TEXT:
        return read_description(element)
    return element.text


def first_match(document: Document, field_chain: FieldChain) -> Optional[str]:
    """Walk the chain; return the first candidate passing the plausibility filter."""
    for strategy in field_chain.strategies:
        for candidate in strategy.candidates(document):
            if field_chain.accepts(candidate):
                logger.debug("%s: matched %r via %s", field_chain.name, candidate[:80], strategy.selector)
                return candidate
    logger.debug("%s: no plausible candidate", field_chain.name)
    return None


def first_element(document: Document, selectors: Sequence[str]) -> Optional[Element]:
    for selector in selectors:
        element = document.select_one(selector)
        if element is not None:
            return element
    return None


def collect_texts(document: Document, selectors: Sequence[str], max_len: int = 150) -> List[str]:
    """Ordered, de-duplicated short text fragments from every selector."""
    texts: List[str] = []
    seen: Set[str] = set()
    for selector in selectors:
        for element in document.select(selector):
            text = element.text
            if text and len(text) < max_len and text not in seen:
                seen.add(text)
                texts.append(text)
    return texts


_BLOCK_CHILDREN = "p, h1, h2, h3, h4, h5, h6, li, div.section, strong"


def read_description(element: Element) -> str:
    """Line-break-preserving text; rebuilt from block children when paragraphs were lost."""
    text = element.inner_text
    if "\n\n" in text:
        return text
    children = [c.text for c in element.select(_BLOCK_CHILDREN)]
    children = [c for c in children if c]
    if len(children) > 1:
        return "\n\n".join(children)
    return text


# ---------------------------------------------------------------------------
# Free-text classifiers
# ---------------------------------------------------------------------------

def _lower_all(fragments: Iterable[str]) -> List[str]:
    return [f.strip().lower() for f in fragments if f and f.strip()]


def location_type_from_insights(fragments: Iterable[str]) -> Optional[LocationType]:
    for text in _lower_all(fragments):
        if text == "remote" or ("remote" in text and "site" not in text):
            return LocationType.REMOTE
        if text == "hybrid":
            return LocationType.HYBRID
        if text in ("on-site", "onsite"):
            return LocationType.ONSITE
    return None


REMOTE_STRICT_RE = re.compile(r"\b(fully remote|100% remote|work from home|wfh)\b", re.IGNORECASE)
REMOTE_LOOSE_RE = re.compile(r"\b(remote|work from home|wfh)\b", re.IGNORECASE)


def location_type_from_text(text: str, *, strict: bool = True, onsite_default: bool = False) -> Optional[LocationType]:
    """Strict mode ignores a bare "remote" (prose often mentions remote teams)."""
    if not text:
        return None
    remote_re = REMOTE_STRICT_RE if strict else REMOTE_LOOSE_RE
    if remote_re.search(text):
        return LocationType.REMOTE
    if re.search(r"\bhybrid\b", text, re.IGNORECASE):
        return LocationType.HYBRID
    if re.search(r"\b(on-site|onsite|in-office|in office)\b", text, re.IGNORECASE) or onsite_default:
        return LocationType.ONSITE
    return None


EMPLOYMENT_TYPES = (
    (re.compile(r"\bfull[- ]?time\b", re.IGNORECASE), "Full-time"),
    (re.compile(r"\bpart[- ]?time\b", re.IGNORECASE), "Part-time"),
    (re.compile(r"\bcontract(or)?\b", re.IGNORECASE), "Contract"),
    (re.compile(r"\btemporary\b", re.IGNORECASE), "Temporary"),
    (re.compile(r"\bintern(ship)?\b", re.IGNORECASE), "Internship"),
)


def employment_type_from_insights(fragments: Iterable[str]) -> Optional[str]:
    """Exact pill match (e.g. a 'Full-time' chip), not a substring of prose."""
    for text in _lower_all(fragments):
        normalized = text.replace(" ", "").replace("-", "")
        for _, label in EMPLOYMENT_TYPES:
            if normalized == label.lower().replace("-", ""):
                return label
    return None


def employment_type_from_text(text: str) -> Optional[str]:
    if not text:
        return None
    for pattern, label in EMPLOYMENT_TYPES:
        if pattern.search(text):
            return label
    return None


SENIORITY_RE = re.compile(r"entry level|associate|mid-senior|director|executive", re.IGNORECASE)


def seniority_from_insights(fragments: Iterable[str]) -> Optional[str]:
    for text in fragments:
        if text and SENIORITY_RE.search(text):
            return text.strip()
    return None


EXPERIENCE_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)\s*(?:of\s*)?(?:\w+\s+)?experience", re.IGNORECASE)


def experience_years(text: str) -> Optional[int]:
    if not text:
        return None
    match = EXPERIENCE_RE.search(text)
    return int(match.group(1)) if match else None


# Highest degree first; abbreviations are matched case-sensitively
EDUCATION_PATTERNS = (
    (re.compile(r"\b(ph\.?d|doctorate|doctoral)\b", re.IGNORECASE), None, EducationLevel.PHD),
    (re.compile(r"\bmaster'?s?\b|\bmba\b", re.IGNORECASE), re.compile(r"\b(?:MS|MA)\b|\bM\.[SA]\."), EducationLevel.MASTERS),
    (re.compile(r"\bbachelor'?s?\b", re.IGNORECASE), re.compile(r"\b(?:BS|BA)\b|\bB\.[SA]\."), EducationLevel.BACHELORS),
    (re.compile(r"\bassociate'?s degree\b", re.IGNORECASE), None, EducationLevel.ASSOCIATES),
)


def education_level(text: str) -> Optional[EducationLevel]:
    if not text:
        return None
    for words, abbreviations, level in EDUCATION_PATTERNS:
        if words.search(text) or (abbreviations is not None and abbreviations.search(text)):
            return level
    return None


SKILLS = (
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Ruby", "PHP", "Go", "Rust",
    "Swift", "Kotlin", "React", "Angular", "Vue", "Node.js", "Django", "Flask", "Spring", ".NET",
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "Redis", "DynamoDB",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "CI/CD", "Git", "Jenkins",
    "Machine Learning", "Data Science", "TensorFlow", "PyTorch", "Agile", "Scrum",
)

BENEFITS = (
    "401k", "Health insurance", "Dental", "Vision", "PTO", "Paid time off",
    "Stock options", "Equity", "Bonus", "Parental leave", "Flexible hours",
    "Remote work", "Wellness", "Tuition",
)


@dataclass
class Vocabulary:
    """Fixed term list matched case-insensitively on whole words."""

    terms: Sequence[str]
    _patterns: List[Tuple[str, re.Pattern]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        # Lookarounds instead of \b so terms ending in symbols (C++, C#) still match
        self._patterns = [
            (term, re.compile(rf"(?<![\w.+#]){re.escape(term)}(?![\w+#])", re.IGNORECASE))
            for term in self.terms
        ]

    def find(self, text: str) -> Set[str]:
        if not text:
            return set()
        return {term for term, pattern in self._patterns if pattern.search(text)}


SKILL_VOCABULARY = Vocabulary(SKILLS)
BENEFIT_VOCABULARY = Vocabulary(BENEFITS)


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------

def json_ld_job_posting(document: Document) -> Optional[dict]:
    """First schema.org JobPosting object embedded as JSON-LD, if any."""
    for script in document.select("script[type='application/ld+json']"):
        raw = script.raw_text
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        if isinstance(data, dict):
            items = data.get("@graph") or [data]
        else:
            items = data if isinstance(data, list) else []
        for item in items:
            if isinstance(item, dict) and item.get("@type") == "JobPosting":
                return item
    return None


JOB_TYPE_LABELS = {
    "full-time": "Full-time",
    "part-time": "Part-time",
    "contract": "Contract",
    "contractor": "Contract",
    "temporary": "Temporary",
    "intern": "Internship",
    "internship": "Internship",
    "seasonal": "Seasonal",
    "apprenticeship": "Apprenticeship",
}


def normalize_job_type_value(value: str) -> Optional[str]:
    if not value:
        return None
    normalized = value.strip().replace("_", "-").lower()
    if normalized in JOB_TYPE_LABELS:
        return JOB_TYPE_LABELS[normalized]
    return normalized.replace("-", " ").title()


def employment_type_from_json_ld(posting: Optional[dict]) -> Optional[str]:
    if not posting:
        return None
    employment = posting.get("employmentType")
    if not employment:
        return None
    entries = employment if isinstance(employment, list) else [employment]
    labels: List[str] = []
    for entry in entries:
        label = normalize_job_type_value(str(entry))
        if label and label not in labels:
            labels.append(label)
    return ", ".join(labels) if labels else None
