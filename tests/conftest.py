from concurrent.futures import Executor, Future
from pathlib import Path

import pytest

from jobcapture.control import ControlSurface, SettingsStore
from jobcapture.document import HtmlDocument
from jobcapture.errors import TransportError
from jobcapture.fallback import FallbackQueue
from jobcapture.models import JobPostingRecord, Platform
from jobcapture.notify import Notifier
from jobcapture.relay import Relay
from jobcapture.scheduling import TimerQueue
from jobcapture.transport import Transport

FIXTURES = Path(__file__).parent / "fixtures"

LINKEDIN_URL = "https://www.linkedin.com/jobs/view/3912345678/"
INDEED_URL = "https://www.indeed.com/viewjob?jk=abc123def456"
GLASSDOOR_URL = (
    "https://www.glassdoor.com/job-listing/data-engineer-initech-JV_IC1147401_KO0,13_KE14,21.htm"
    "?jl=1009123456789"
)

LONG_DESCRIPTION = (
    "We are hiring an engineer to build and operate data services. "
    "You will design APIs, review code and mentor teammates across the platform group."
)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class ImmediateExecutor(Executor):
    """Runs submitted work inline so relay futures are already resolved."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class MemoryTransport(Transport):
    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.sent = []

    def send(self, message):
        if not self.reachable:
            raise TransportError("connection refused")
        self.sent.append(message)
        return {"success": True}

    def ping(self) -> bool:
        return self.reachable


class RecordingNotifier(Notifier):
    def __init__(self):
        self.records = []

    def captured(self, record):
        self.records.append(record)


class ScriptedExtractor:
    """Not ready for the first `not_ready` attempts, then returns `record`."""

    platform = Platform.LINKEDIN

    def __init__(self, record=None, not_ready: int = 0, raises: int = 0):
        self.record = record
        self.not_ready = not_ready
        self.raises = raises
        self.calls = 0

    def is_posting_view(self, document) -> bool:
        return True

    def extract(self, document):
        self.calls += 1
        if self.raises:
            self.raises -= 1
            raise RuntimeError("page changed underneath us")
        if self.calls <= self.not_ready:
            return None
        return self.record


def make_record(job_id: str = "111", url: str = LINKEDIN_URL, **fields) -> JobPostingRecord:
    values = {
        "platform_job_id": job_id,
        "source_url": url,
        "platform": Platform.LINKEDIN,
        "title": "Platform Engineer",
        "company": "Acme Corp",
        "description": LONG_DESCRIPTION,
    }
    values.update(fields)
    return JobPostingRecord(**values)


def fixture_html(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return TimerQueue(clock=clock)


@pytest.fixture
def run_for(clock, scheduler):
    """Advance fake time, firing timers in order as they come due."""

    def _run_for(seconds: float) -> None:
        target = clock.now + seconds
        while True:
            delay = scheduler.next_delay()
            if delay is None or clock.now + delay > target:
                break
            clock.now += delay
            scheduler.run_due()
        clock.now = target
        scheduler.run_due()

    return _run_for


@pytest.fixture
def linkedin_document():
    return HtmlDocument(LINKEDIN_URL, fixture_html("linkedin_job.html"))


@pytest.fixture
def indeed_document():
    return HtmlDocument(INDEED_URL, fixture_html("indeed_job.html"))


@pytest.fixture
def glassdoor_document():
    return HtmlDocument(GLASSDOOR_URL, fixture_html("glassdoor_job.html"))


@pytest.fixture
def transport():
    return MemoryTransport()


@pytest.fixture
def fallback_queue(tmp_path):
    return FallbackQueue(tmp_path / "pending_jobs.json", max_size=100)


@pytest.fixture
def relay(transport, fallback_queue):
    relay = Relay(transport, fallback_queue, executor=ImmediateExecutor())
    yield relay
    relay.shutdown()


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def control(settings, relay):
    return ControlSurface(settings, relay)


@pytest.fixture
def notifier():
    return RecordingNotifier()
