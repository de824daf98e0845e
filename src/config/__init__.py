"""Configuration loading for the FTP client.

Configuration is read from config/config.yaml (``ftp:`` and ``logging:``
sections). ``${VAR}`` and ``${VAR:-default}`` references are expanded from
the environment, so credentials can stay out of the file.

Usage Examples
--------------

    >>> from config import load_config
    >>>
    >>> config = load_config()            # config/config.yaml
    >>> config.host, config.port
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    FtpClientConfig,
    LoggingConfig,
    load_config,
    load_yaml,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "FtpClientConfig",
    "LoggingConfig",
    "load_config",
    "load_yaml",
]
