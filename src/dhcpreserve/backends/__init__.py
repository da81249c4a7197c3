"""
DHCP server backends.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.backends.powershell import PowerShellBackend
from dhcpreserve.backends.rest import RestBackend
from dhcpreserve.config import ReservationConfig, get_config

BACKENDS = ("powershell", "rest")


def get_backend(name: str | None = None, config: ReservationConfig | None = None) -> DHCPBackend:
    """Create a backend by name using the given (or global) configuration.

    Raises:
        ValueError: If the name is unknown or the backend is not configured
    """
    config = config or get_config()
    name = (name or config.backend).lower()

    if name == "powershell":
        return PowerShellBackend(
            executable=config.powershell_executable,
            timeout=config.timeout,
        )
    if name == "rest":
        if not config.api_url:
            raise ValueError("REST backend requires DHCPRESERVE_API_URL")
        return RestBackend(
            base_url=config.api_url,
            token=config.api_token or None,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )
    raise ValueError(f"Unknown backend: {name} (choose from {', '.join(BACKENDS)})")


__all__ = [
    "BACKENDS",
    "DHCPBackend",
    "PowerShellBackend",
    "RestBackend",
    "get_backend",
]
