from conftest import GLASSDOOR_URL, INDEED_URL, LINKEDIN_URL, fixture_html
from jobcapture.document import HtmlDocument
from jobcapture.extractors import (
    GlassdoorExtractor,
    IndeedExtractor,
    LinkedInExtractor,
    extractor_for_url,
)
from jobcapture.models import DataQuality, EducationLevel, LocationType, Platform, SalaryPeriod


def test_registry_picks_extractor_by_host():
    assert isinstance(extractor_for_url(LINKEDIN_URL), LinkedInExtractor)
    assert isinstance(extractor_for_url("https://uk.indeed.com/viewjob?jk=1"), IndeedExtractor)
    assert isinstance(extractor_for_url(GLASSDOOR_URL), GlassdoorExtractor)
    assert extractor_for_url("https://example.com/jobs/view/1") is None
    assert extractor_for_url("https://notlinkedin.com/jobs/view/1") is None


def test_linkedin_full_record(linkedin_document):
    record = LinkedInExtractor().extract(linkedin_document)

    assert record.platform is Platform.LINKEDIN
    assert record.platform_job_id == "3912345678"
    assert record.source_url == LINKEDIN_URL
    assert record.title == "Senior Python Developer"
    assert record.company == "Acme Corp"
    assert record.location == "San Francisco, CA"
    assert record.location_type is LocationType.REMOTE
    assert record.salary == "$150K/yr - $190K/yr"
    assert (record.salary_min, record.salary_max) == (150000, 190000)
    assert record.salary_period is SalaryPeriod.ANNUAL
    assert record.employment_type == "Full-time"
    assert record.seniority_level == "Mid-Senior level"
    assert record.experience_years == 5
    assert record.education_level is EducationLevel.BACHELORS
    assert record.skills == {"Python", "Django", "AWS", "Docker", "Kubernetes", "PostgreSQL", "Redis"}
    assert record.benefits == {"401k", "Dental", "Vision", "PTO"}
    assert record.data_quality is DataQuality.GOOD


def test_linkedin_description_keeps_line_breaks(linkedin_document):
    record = LinkedInExtractor().extract(linkedin_document)
    assert record.description.startswith("About the role\n\nWe are looking for")
    assert "\nExperience with PostgreSQL and Redis" in record.description


def test_linkedin_id_from_search_view_query():
    document = HtmlDocument(
        "https://www.linkedin.com/jobs/search/?keywords=python&currentJobId=4000000001",
        fixture_html("linkedin_job.html"),
    )
    assert LinkedInExtractor().extract(document).platform_job_id == "4000000001"


def test_linkedin_id_from_dom_marker():
    document = HtmlDocument("https://www.linkedin.com/jobs/collections/", fixture_html("linkedin_job.html"))
    assert LinkedInExtractor().job_id(document) == "3912345678"


def test_linkedin_not_ready_before_content_renders():
    document = HtmlDocument(LINKEDIN_URL, "<html><body><div class='spinner'></div></body></html>")
    assert LinkedInExtractor().extract(document) is None


def test_linkedin_without_title_waits():
    html = "<main><div class='jobs-details'><p>Loading job details</p></div></main>"
    assert LinkedInExtractor().extract(HtmlDocument(LINKEDIN_URL, html)) is None


def test_linkedin_generic_heading_fallback():
    html = (
        "<header><h1>LinkedIn</h1></header>"
        "<main><section><h1>Machine Learning Engineer</h1>"
        "<a href='/company/globex/'>Globex</a></section></main>"
    )
    record = LinkedInExtractor().extract(HtmlDocument(LINKEDIN_URL, html))
    assert record.title == "Machine Learning Engineer"
    assert record.company == "Globex"
    assert record.data_quality is DataQuality.POOR


def test_linkedin_title_cleanup():
    html = (
        "<main><h1 class='t-24'>Data Analyst Data Analyst</h1></main>"
        "<div class='jobs-details'></div>"
    )
    record = LinkedInExtractor().extract(HtmlDocument(LINKEDIN_URL, html))
    assert record.title == "Data Analyst"


def test_linkedin_salary_from_description_when_no_pill():
    html = (
        "<main><h1 class='t-24'>Support Engineer</h1>"
        "<div class='jobs-description__content'><p>Pay is $30 - $35 per hour.</p>"
        "<p>Shifts rotate weekly across our three support centers.</p></div></main>"
    )
    record = LinkedInExtractor().extract(HtmlDocument(LINKEDIN_URL, html))
    assert (record.salary_min, record.salary_max) == (30, 35)
    assert record.salary_period is SalaryPeriod.HOURLY


def test_posting_view_by_url_or_marker():
    extractor = LinkedInExtractor()
    assert extractor.is_posting_view(HtmlDocument(LINKEDIN_URL, ""))
    assert extractor.is_posting_view(
        HtmlDocument("https://www.linkedin.com/jobs/search/", "<div class='jobs-details'></div>")
    )
    assert not extractor.is_posting_view(HtmlDocument("https://www.linkedin.com/feed/", "<div></div>"))


def test_indeed_full_record(indeed_document):
    record = IndeedExtractor().extract(indeed_document)

    assert record.platform is Platform.INDEED
    assert record.platform_job_id == "abc123def456"
    assert record.title == "Backend Engineer"
    assert record.company == "Globex"
    assert record.location == "Austin, TX"
    assert record.location_type is LocationType.HYBRID
    assert (record.salary_min, record.salary_max) == (45, 60)
    assert record.salary_period is SalaryPeriod.HOURLY
    assert record.employment_type == "Part-time"
    assert record.experience_years == 3
    assert record.education_level is EducationLevel.MASTERS
    assert record.skills == {"Go", "Java"}
    assert record.data_quality is DataQuality.GOOD


def test_indeed_vjk_parameter():
    document = HtmlDocument("https://www.indeed.com/jobs?q=python&vjk=ffee00", fixture_html("indeed_job.html"))
    assert IndeedExtractor().extract(document).platform_job_id == "ffee00"


def test_indeed_title_falls_back_to_search_query_then_placeholder():
    html = "<div id='jobDescriptionText'><p>Short.</p></div>"
    with_query = IndeedExtractor().extract(
        HtmlDocument("https://www.indeed.com/viewjob?jk=zz9&q=data+analyst", html)
    )
    assert with_query.title == "data analyst"

    placeholder = IndeedExtractor().extract(HtmlDocument("https://www.indeed.com/viewjob?jk=zz9", html))
    assert placeholder.title == "Indeed Job"
    assert placeholder.is_placeholder_title
    assert placeholder.data_quality is DataQuality.POOR


def test_indeed_without_job_id_is_not_ready():
    assert IndeedExtractor().extract(HtmlDocument("https://www.indeed.com/viewjob", "")) is None


def test_glassdoor_full_record(glassdoor_document):
    record = GlassdoorExtractor().extract(glassdoor_document)

    assert record.platform is Platform.GLASSDOOR
    assert record.platform_job_id == "1009123456789"
    assert record.title == "Data Engineer"
    assert record.company == "Initech"
    assert record.location == "Remote"
    assert record.location_type is LocationType.REMOTE
    assert record.salary == "$97.6K - $100K (Employer provided)"
    assert (record.salary_min, record.salary_max) == (97600, 100000)
    assert record.salary_period is SalaryPeriod.ANNUAL
    assert record.employment_type == "Full-time"
    assert record.experience_years == 4
    assert record.education_level is EducationLevel.BACHELORS
    assert record.skills == {"Python", "SQL"}
    assert record.benefits == {"Health insurance", "Bonus"}
    assert record.data_quality is DataQuality.GOOD


def test_glassdoor_id_from_jv_token():
    document = HtmlDocument(
        "https://www.glassdoor.com/job-listing/x-JV_KO0,5_KE6,12.htm",
        "<h1 data-test='job-title'>Analyst</h1>",
    )
    assert GlassdoorExtractor().job_id(document) == "KO0"


def test_glassdoor_location_only_implies_onsite():
    html = (
        "<h1 data-test='job-title'>Nurse</h1>"
        "<div data-test='location'>Denver, CO</div>"
        "<div data-test='jobDescriptionContent'><p>Care for patients.</p></div>"
    )
    record = GlassdoorExtractor().extract(HtmlDocument(GLASSDOOR_URL, html))
    assert record.location_type is LocationType.ONSITE


def test_extraction_errors_mean_not_ready(monkeypatch, linkedin_document):
    extractor = LinkedInExtractor()

    def boom(document, job_id):
        raise RuntimeError("detached node")

    monkeypatch.setattr(extractor, "extract_fields", boom)
    assert extractor.extract(linkedin_document) is None


def test_unsupported_url_for_extractor_is_not_ready():
    assert IndeedExtractor().extract(HtmlDocument(INDEED_URL.replace("jk=", "x="), "")) is None
