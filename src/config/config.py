"""FTP client configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Server connection and credentials
- Transfer tuning (chunk size, keep-alive command, transient retry policy)
- Logging settings

Environment variables ARE supported using ${VAR_NAME} and ${VAR_NAME:-default}
syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.resilience.retry import TRANSIENT_CHUNK_RETRY, RetryConfig

# Configure module logger
logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _as_bool(value: Any) -> bool:
    # bool('false') is True, so strings from env expansion need parsing
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# Default config file: config.yaml next to this module
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


@dataclass
class LoggingConfig:
    """Logging settings passed to core.logging.setup_logging."""

    log_dir: str = "logs"
    json_format: bool = True
    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_to_stdout: bool = False


@dataclass
class FtpClientConfig:
    """FTP client configuration.

    Configuration structure:
        ftp:
          host, port, username, password     # Server and credentials
          timeout_seconds, verbose, encoding  # Control connection
          chunk_size, keepalive_command       # Chunked download
          keepalive_interval_seconds
          local_directory                     # Default download target
          remove_partial_on_failure           # Chunked download cleanup
          transient_retry: {...}              # RetryConfig fields
        logging: {...}                        # LoggingConfig fields

    All timing values in seconds.
    """

    # =========================================================================
    # CONNECTION SETTINGS
    # =========================================================================
    host: str = ""
    port: int = 21
    username: str = "anonymous"
    password: str = ""
    timeout_seconds: float = 3600.0  # 1 hour idle timeout on the control connection
    verbose: bool = True
    encoding: str = "utf-8"

    # =========================================================================
    # TRANSFER SETTINGS
    # =========================================================================
    chunk_size: int = 8192
    keepalive_command: str = "PWD"
    keepalive_interval_seconds: float = 30.0
    local_directory: str = "downloads"
    remove_partial_on_failure: bool = False
    transient_retry: RetryConfig = field(
        default_factory=lambda: RetryConfig(
            max_attempts=TRANSIENT_CHUNK_RETRY.max_attempts,
            base_delay=TRANSIENT_CHUNK_RETRY.base_delay,
            max_delay=TRANSIENT_CHUNK_RETRY.max_delay,
        )
    )

    # =========================================================================
    # LOGGING
    # =========================================================================
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.port = int(self.port)
        self.timeout_seconds = float(self.timeout_seconds)
        self.chunk_size = int(self.chunk_size)
        self.keepalive_interval_seconds = float(self.keepalive_interval_seconds)
        self.verbose = _as_bool(self.verbose)
        self.remove_partial_on_failure = _as_bool(self.remove_partial_on_failure)
        self.logging.json_format = _as_bool(self.logging.json_format)
        self.logging.log_to_stdout = _as_bool(self.logging.log_to_stdout)

    def validate(self) -> None:
        """Validate configuration for correctness and constraints."""
        if not self.host:
            raise ValueError("host is required in ftp section")

        if not (1 <= self.port <= 65535):
            raise ValueError(f"ftp: port must be between 1 and 65535, got {self.port}")

        if self.timeout_seconds <= 0:
            raise ValueError(f"ftp: timeout_seconds must be > 0, got {self.timeout_seconds}")

        if self.chunk_size <= 0:
            raise ValueError(f"ftp: chunk_size must be > 0, got {self.chunk_size}")

        if not self.keepalive_command.strip():
            raise ValueError("ftp: keepalive_command must not be empty")

        if self.keepalive_interval_seconds < 0:
            raise ValueError(
                f"ftp: keepalive_interval_seconds must be >= 0, "
                f"got {self.keepalive_interval_seconds}"
            )

        if self.transient_retry.max_attempts < 0:
            raise ValueError(
                f"ftp.transient_retry: max_attempts must be >= 0, "
                f"got {self.transient_retry.max_attempts}"
            )


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> FtpClientConfig:
    """Load FTP client configuration from a config.yaml file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
    `overrides` is deep-merged over the `ftp:` section (CLI flags use this).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info(f"Loading configuration from file: {config_path}")
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if "ftp" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'ftp:' section\n"
            "See config/config.yaml for correct structure"
        )

    ftp_config = yaml_data["ftp"] or {}

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        ftp_config = _deep_merge(ftp_config, overrides)

    retry_settings = ftp_config.get("transient_retry", {}) or {}
    logging_settings = yaml_data.get("logging", {}) or {}

    config = FtpClientConfig(
        host=ftp_config.get("host", ""),
        port=ftp_config.get("port", 21),
        username=ftp_config.get("username", "anonymous"),
        password=ftp_config.get("password", ""),
        timeout_seconds=ftp_config.get("timeout_seconds", 3600),
        verbose=ftp_config.get("verbose", True),
        encoding=ftp_config.get("encoding", "utf-8"),
        chunk_size=ftp_config.get("chunk_size", 8192),
        keepalive_command=ftp_config.get("keepalive_command", "PWD"),
        keepalive_interval_seconds=ftp_config.get("keepalive_interval_seconds", 30),
        local_directory=ftp_config.get("local_directory", "downloads"),
        remove_partial_on_failure=ftp_config.get("remove_partial_on_failure", False),
        transient_retry=RetryConfig(
            max_attempts=retry_settings.get("max_attempts", TRANSIENT_CHUNK_RETRY.max_attempts),
            base_delay=retry_settings.get("base_delay", TRANSIENT_CHUNK_RETRY.base_delay),
            max_delay=retry_settings.get("max_delay", TRANSIENT_CHUNK_RETRY.max_delay),
        ),
        logging=LoggingConfig(
            log_dir=logging_settings.get("log_dir", "logs"),
            json_format=logging_settings.get("json_format", True),
            console_level=logging_settings.get("console_level", "INFO"),
            file_level=logging_settings.get("file_level", "DEBUG"),
            log_to_stdout=logging_settings.get("log_to_stdout", False),
        ),
    )

    logger.debug(f"Configuration loaded: host={config.host}, port={config.port}")

    config.validate()
    return config

