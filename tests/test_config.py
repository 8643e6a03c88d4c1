import pytest
import yaml

from jobcapture.config_loader import STATE_ROOT, ConfigLoader, load_config
from jobcapture.errors import ConfigValidationError


def write_config(tmp_path, data) -> str:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv("JOBCAPTURE_ENDPOINT", raising=False)
    config = load_config(None)

    assert config.get_initial_delay() == 4.0
    assert config.get_retry_delay() == 3.0
    assert config.get_max_retries() == 5
    assert config.get_debounce() == 0.3
    assert config.get_relay_endpoint() == "http://127.0.0.1:45782"
    assert config.get_fallback_max_size() == 100
    assert config.get_fallback_path() == STATE_ROOT / "pending_jobs.json"
    assert config.get_settings_path() == STATE_ROOT / "settings.json"


def test_values_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("JOBCAPTURE_ENDPOINT", raising=False)
    config = ConfigLoader(
        write_config(
            tmp_path,
            {
                "capture": {"initial_delay": 1.5, "retry_delay": 0.5, "max_retries": 2},
                "relay": {"endpoint": "http://localhost:9000/"},
                "fallback": {"path": str(tmp_path / "q.json"), "max_size": 10},
                "logging": {"level": "debug", "log_file": str(tmp_path / "run_{timestamp}.log")},
            },
        )
    )

    assert config.get_initial_delay() == 1.5
    assert config.get_max_retries() == 2
    assert config.get_relay_endpoint() == "http://localhost:9000"
    assert config.get_fallback_path() == tmp_path / "q.json"
    assert config.get_log_level() == "DEBUG"
    assert "{timestamp}" not in config.get_log_file().name


def test_environment_overrides_endpoint(tmp_path, monkeypatch):
    monkeypatch.setenv("JOBCAPTURE_ENDPOINT", "http://10.0.0.5:8080/")
    config = ConfigLoader(write_config(tmp_path, {"relay": {"endpoint": "http://localhost:9000"}}))
    assert config.get_relay_endpoint() == "http://10.0.0.5:8080"


@pytest.mark.parametrize(
    "data",
    [
        {"capture": {"initial_delay": -1}},
        {"capture": {"max_retries": -2}},
        {"fallback": {"max_size": 0}},
        {"relay": {"timeout": 0}},
        {"relay": {"endpoint": "localhost:45782"}},
    ],
)
def test_invalid_values_are_rejected(tmp_path, monkeypatch, data):
    monkeypatch.delenv("JOBCAPTURE_ENDPOINT", raising=False)
    with pytest.raises(ConfigValidationError):
        ConfigLoader(write_config(tmp_path, data))


def test_validation_error_is_a_value_error(tmp_path):
    with pytest.raises(ValueError):
        ConfigLoader(write_config(tmp_path, {"watcher": {"debounce": -0.1}}))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path / "nope.yaml"))


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader(str(path)).get_max_retries() == 5
