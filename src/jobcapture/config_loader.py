"""
Configuration loader for the capture agent
Reads and validates settings.yaml
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from jobcapture.errors import ConfigValidationError
from jobcapture.transport import DEFAULT_ENDPOINT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"
STATE_ROOT = Path.home() / ".job-capture-agent"


def _validate_non_negative(value: Any, field: str) -> None:
    """Validate that a numeric value is non-negative."""
    if value is not None and float(value) < 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be non-negative, got {value}"
        )


def _validate_positive(value: Any, field: str) -> None:
    """Validate that a numeric value is positive (> 0)."""
    if value is not None and float(value) <= 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be positive (> 0), got {value}"
        )


class ConfigLoader:
    """Loads and validates configuration from a YAML file"""

    def __init__(self, config_path: Optional[str] = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path) if config_path else None
        self.config: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load config from YAML file, falling back to defaults when no path is given"""
        if self.config_path is None:
            logger.debug("No config file given; using defaults")
            self._validate_invariants()
            return

        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Config loaded from {self.config_path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            raise

        self._validate_invariants()

    def _validate_invariants(self) -> None:
        """Validate configuration invariants. Raises ConfigValidationError on failure."""
        _validate_non_negative(self.get('capture.initial_delay'), 'capture.initial_delay')
        _validate_non_negative(self.get('capture.retry_delay'), 'capture.retry_delay')
        _validate_non_negative(self.get('capture.max_retries'), 'capture.max_retries')
        _validate_non_negative(self.get('watcher.debounce'), 'watcher.debounce')

        _validate_positive(self.get('relay.timeout'), 'relay.timeout')
        _validate_positive(self.get('relay.ping_timeout'), 'relay.ping_timeout')
        _validate_positive(self.get('fallback.max_size'), 'fallback.max_size')

        endpoint = self.get_relay_endpoint()
        if not endpoint.startswith(("http://", "https://")):
            raise ConfigValidationError(
                f"Invalid config: 'relay.endpoint' must be an http(s) URL, got {endpoint!r}"
            )

        logger.debug("Config invariants validated")

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by dot notation (e.g., 'capture.max_retries')"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, default)
            else:
                return default

        return value

    # === Capture Config ===

    def get_initial_delay(self) -> float:
        """Seconds to wait after arming before the first extraction attempt"""
        return float(self.get('capture.initial_delay', 4.0))

    def get_retry_delay(self) -> float:
        """Seconds to wait between extraction retries"""
        return float(self.get('capture.retry_delay', 3.0))

    def get_max_retries(self) -> int:
        """Get max extraction retries per navigation"""
        return int(self.get('capture.max_retries', 5))

    def get_debounce(self) -> float:
        """Seconds to let the URL settle before classifying a navigation"""
        return float(self.get('watcher.debounce', 0.3))

    # === Relay Config ===

    def get_relay_endpoint(self) -> str:
        """Get the desktop application endpoint (env JOBCAPTURE_ENDPOINT wins)"""
        env_endpoint = (os.getenv("JOBCAPTURE_ENDPOINT") or "").strip()
        if env_endpoint:
            return env_endpoint.rstrip("/")
        return (self.get('relay.endpoint', DEFAULT_ENDPOINT) or DEFAULT_ENDPOINT).rstrip("/")

    def get_relay_timeout(self) -> float:
        """Get the overall delivery timeout in seconds"""
        return float(self.get('relay.timeout', 5))

    def get_ping_timeout(self) -> float:
        """Get the connectivity probe timeout in seconds"""
        return float(self.get('relay.ping_timeout', 1))

    # === Storage Config ===

    def get_fallback_path(self) -> Path:
        """Get the fallback queue file path"""
        path = self.get('fallback.path', '')
        return Path(path) if path else STATE_ROOT / "pending_jobs.json"

    def get_fallback_max_size(self) -> int:
        """Get the fallback queue cap"""
        return int(self.get('fallback.max_size', 100))

    def get_settings_path(self) -> Path:
        """Get the persisted settings file path"""
        path = self.get('settings.path', '')
        return Path(path) if path else STATE_ROOT / "settings.json"

    # === Browser Config ===

    def is_headless(self) -> bool:
        """Check if browser should run in headless mode"""
        return bool(self.get('browser.headless', False))

    def get_browser_channel(self) -> str:
        """Get Playwright browser channel override"""
        return self.get('browser.channel', '') or ''

    def get_user_data_dir(self) -> Path:
        """Get the persistent browser profile directory"""
        path = self.get('browser.user_data_dir', '')
        return Path(path) if path else STATE_ROOT / "browser-profile"

    # === Logging Config ===

    def get_log_level(self) -> str:
        """Get logging level"""
        return str(self.get('logging.level', 'INFO')).upper()

    def get_log_file(self) -> Path:
        """Get log file path with timestamp"""
        template = self.get('logging.log_file', 'logs/job_capture.log')
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = template.replace('{timestamp}', timestamp)
        return Path(filename)

    def get_metrics_template(self) -> str:
        """Get the capture metrics output path template"""
        return self.get('metrics.output', 'output/capture_metrics_{timestamp}.json')

    def __repr__(self) -> str:
        return (
            f"<Config: endpoint={self.get_relay_endpoint()}, "
            f"max_retries={self.get_max_retries()}>"
        )


# Convenience function
def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> ConfigLoader:
    """Load configuration from file (None for built-in defaults)"""
    return ConfigLoader(config_path)
