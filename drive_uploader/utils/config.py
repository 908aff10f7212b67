"""
Environment configuration loader for drive-uploader.

Loads endpoint, timeout, logging and metrics settings from a .env file or
environment variables. Holds no per-invocation state: credentials and
folder ids always travel with the UploadRequest.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from dotenv import load_dotenv

from drive_uploader.errors import ConfigError

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class UploaderConfig:
    """Uploader environment configuration."""

    # Google endpoints
    token_url: str = DEFAULT_TOKEN_URL
    # Overrides the Drive API root (e.g. a local emulator); None uses Google's
    api_endpoint: Optional[str] = None

    # None leaves the transport defaults in place
    request_timeout_seconds: Optional[float] = None

    # Fallback credential bundle when the action omits base64Credentials
    base64_credentials: Optional[str] = None

    # Ambient settings
    log_level: str = "INFO"
    metrics_enabled: bool = True

    @classmethod
    def from_env(cls) -> "UploaderConfig":
        """
        Load configuration from environment variables.

        Loads the project .env file first if one exists.

        Returns:
            UploaderConfig instance with loaded values

        Raises:
            ConfigError: If DRIVE_REQUEST_TIMEOUT is not a positive number
        """
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        timeout_raw = os.getenv("DRIVE_REQUEST_TIMEOUT")
        timeout: Optional[float] = None
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise ConfigError(
                    f"DRIVE_REQUEST_TIMEOUT must be a number of seconds, got: {timeout_raw!r}"
                ) from None
            if timeout <= 0:
                raise ConfigError(
                    f"DRIVE_REQUEST_TIMEOUT must be positive, got: {timeout_raw!r}"
                )

        return cls(
            token_url=os.getenv("DRIVE_TOKEN_URL", DEFAULT_TOKEN_URL),
            api_endpoint=os.getenv("DRIVE_API_ENDPOINT") or None,
            request_timeout_seconds=timeout,
            base64_credentials=os.getenv("DRIVE_BASE64_CREDENTIALS") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            metrics_enabled=os.getenv("METRICS_ENABLED", "true").lower() == "true",
        )


# Global config instance (lazy-loaded)
_config: Optional[UploaderConfig] = None


def get_config() -> UploaderConfig:
    """
    Get or create the process-level uploader configuration.

    Example:
        >>> config = get_config()
        >>> print(config.token_url)
        https://oauth2.googleapis.com/token
    """
    global _config
    if _config is None:
        _config = UploaderConfig.from_env()
    return _config
