import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "radicle_home": "~/.radicle",
    "radicle_httpd_url": "http://127.0.0.1:8080",
    "workflows_start_lag_secs": 60,
    "workflows_poll_interval_secs": 30,
    "workflows_poll_timeout_secs": 30 * 60,
    "scratch_dir": None,  # None = system temp directory
    "log_level": "info",
}

# Environment variable -> config key. Duration variables are integers in seconds.
_ENV_STRINGS = {
    "RAD_HOME": "radicle_home",
    "RAD_HTTPD_URL": "radicle_httpd_url",
    "LOG_LEVEL": "log_level",
}
_ENV_DURATIONS = {
    "WORKFLOWS_START_LAG_SECS": "workflows_start_lag_secs",
    "WORKFLOWS_POLL_INTERVAL_SECS": "workflows_poll_interval_secs",
    "WORKFLOWS_POLL_TIMEOUT_SECS": "workflows_poll_timeout_secs",
}


def _duration(value, default: int) -> int:
    """Parse a positive number of seconds; anything else (including 0) means the default."""
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return default
    return seconds if seconds > 0 else default


def load_config(config_path: str = ".radci.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .radci.yml in the current directory
      3. Environment variables (RAD_HOME, WORKFLOWS_POLL_TIMEOUT_SECS, ...)
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for var, key in _ENV_STRINGS.items():
        value = os.environ.get(var)
        if value:
            config[key] = value
    for var, key in _ENV_DURATIONS.items():
        value = os.environ.get(var)
        if value is not None:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    for key in _ENV_DURATIONS.values():
        config[key] = _duration(config[key], DEFAULT_CONFIG[key])
    config["radicle_home"] = os.path.expanduser(config["radicle_home"])

    # The session token only ever comes from the environment. The GitHub
    # token is resolved by the CLI, which also consults the gh CLI session.
    config["radicle_session_token"] = os.environ.get("RAD_SESSION_TOKEN", "")

    return config
