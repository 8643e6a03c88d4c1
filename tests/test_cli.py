import json

import pytest
import yaml

from conftest import FIXTURES, LINKEDIN_URL
from jobcapture.cli import main, parse_args
from jobcapture.fallback import FallbackQueue


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("JOBCAPTURE_ENDPOINT", raising=False)
    return tmp_path


@pytest.fixture
def config_file(workdir):
    path = workdir / "agent.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "fallback": {"path": str(workdir / "state" / "pending.json")},
                "settings": {"path": str(workdir / "state" / "settings.json")},
                "logging": {"log_file": str(workdir / "logs" / "test.log")},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        parse_args([])


def test_extract_prints_wire_record(workdir, capsys):
    code = main(["extract", str(FIXTURES / "linkedin_job.html"), "--url", LINKEDIN_URL])

    assert code == 0
    record = json.loads(capsys.readouterr().out)
    assert record["platformJobId"] == "3912345678"
    assert record["platform"] == "LinkedIn"
    assert record["dataQuality"] == "good"


def test_extract_unsupported_site(workdir):
    assert main(["extract", str(FIXTURES / "linkedin_job.html"), "--url", "https://example.com/job/1"]) == 1


def test_extract_not_ready(workdir):
    empty = workdir / "empty.html"
    empty.write_text("<html><body></body></html>", encoding="utf-8")
    assert main(["extract", str(empty), "--url", LINKEDIN_URL]) == 1


def test_missing_config_file(workdir):
    assert main(["--config", str(workdir / "missing.yaml"), "status"]) == 1


def test_toggle_persists(config_file, workdir, capsys):
    assert main(["--config", str(config_file), "toggle"]) == 0
    assert json.loads(capsys.readouterr().out) == {"enabled": False}

    stored = json.loads((workdir / "state" / "settings.json").read_text())
    assert stored == {"enabled": False}


def test_status_includes_pending(config_file, workdir, capsys, monkeypatch):
    monkeypatch.setattr("jobcapture.transport.HttpTransport.ping", lambda self: False)
    FallbackQueue(workdir / "state" / "pending.json").append({"platformJobId": "9"})

    assert main(["--config", str(config_file), "status"]) == 0
    assert json.loads(capsys.readouterr().out) == {"enabled": True, "connected": False, "pending": 1}


def test_queue_drain_to_file(config_file, workdir):
    queue = FallbackQueue(workdir / "state" / "pending.json")
    queue.append({"platformJobId": "1"})
    queue.append({"platformJobId": "2"})
    output = workdir / "export" / "jobs.json"

    assert main(["--config", str(config_file), "queue", "--drain", "--output", str(output)]) == 0

    assert [e["platformJobId"] for e in json.loads(output.read_text())] == ["1", "2"]
    assert queue.entries() == []
