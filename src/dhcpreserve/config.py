"""
Configuration management for dhcpreserve.

Loads backend selection and credentials from environment variables or a
.env file.
"""

import os
import platform
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Check common locations for .env
ENV_LOCATIONS = [
    Path.home() / ".dhcpreserve" / ".env",
    Path.home() / ".config" / "dhcpreserve" / ".env",
    Path.cwd() / ".env",
]

DEFAULT_DESCRIPTION = "Reservation created via automation"


def _default_powershell() -> str:
    return "powershell.exe" if platform.system() == "Windows" else "pwsh"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_env_files() -> Path | None:
    """Load the first .env file found. Returns its path, if any."""
    for env_path in ENV_LOCATIONS:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


@dataclass
class ReservationConfig:
    """Backend and workflow configuration."""

    # Which backend to use: powershell or rest
    backend: str = "powershell"

    # PowerShell backend
    powershell_executable: str = "pwsh"

    # REST backend
    api_url: str = ""
    api_token: str = ""
    verify_ssl: bool = True

    # Per remote call, in seconds
    timeout: float = 30.0

    description: str = DEFAULT_DESCRIPTION

    @classmethod
    def from_env(cls) -> "ReservationConfig":
        """Load configuration from environment variables.

        Raises:
            ValueError: If DHCPRESERVE_TIMEOUT is set but is not a number
        """
        timeout = os.getenv("DHCPRESERVE_TIMEOUT", "").strip()
        try:
            timeout_seconds = float(timeout) if timeout else 30.0
        except ValueError:
            raise ValueError(f"DHCPRESERVE_TIMEOUT must be a number of seconds, got {timeout!r}") from None
        return cls(
            backend=os.getenv("DHCPRESERVE_BACKEND", "powershell").strip().lower(),
            powershell_executable=os.getenv("DHCPRESERVE_POWERSHELL", _default_powershell()),
            api_url=os.getenv("DHCPRESERVE_API_URL", ""),
            api_token=os.getenv("DHCPRESERVE_API_TOKEN", ""),
            verify_ssl=_env_bool("DHCPRESERVE_VERIFY_SSL", True),
            timeout=timeout_seconds,
            description=os.getenv("DHCPRESERVE_DESCRIPTION", DEFAULT_DESCRIPTION),
        )


# Global config instance
_config: ReservationConfig | None = None


def get_config() -> ReservationConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        load_env_files()
        _config = ReservationConfig.from_env()
    return _config


def set_config(config: ReservationConfig | None) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
