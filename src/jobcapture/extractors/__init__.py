"""
Platform extractors and the host registry
"""

from typing import List, Optional

from jobcapture.extractors.base import FieldExtractor
from jobcapture.extractors.glassdoor import GlassdoorExtractor
from jobcapture.extractors.indeed import IndeedExtractor
from jobcapture.extractors.linkedin import LinkedInExtractor

EXTRACTORS: List[FieldExtractor] = [
    LinkedInExtractor(),
    IndeedExtractor(),
    GlassdoorExtractor(),
]


def extractor_for_url(url: str) -> Optional[FieldExtractor]:
    """Extractor whose host matches url, or None for unsupported sites."""
    for extractor in EXTRACTORS:
        if extractor.matches_host(url or ""):
            return extractor
    return None


__all__ = [
    "EXTRACTORS",
    "FieldExtractor",
    "GlassdoorExtractor",
    "IndeedExtractor",
    "LinkedInExtractor",
    "extractor_for_url",
]
