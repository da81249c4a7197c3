"""
Windows DHCP Server backend using the DhcpServer PowerShell module.

Each operation runs one cmdlet against ``-ComputerName <server>`` in a
non-interactive PowerShell process and reads the result back as JSON.
Works from Windows PowerShell or from ``pwsh`` with the RSAT DhcpServer
module installed.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import json
import logging
import subprocess
from typing import Any

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.errors import BackendError, ErrorKind
from dhcpreserve.models import Lease, Reservation, Scope

logger = logging.getLogger(__name__)

# Substrings of DhcpServer cmdlet errors, matched case-insensitively
CONFLICT_MARKERS = (
    "already exists",
    "alreadyexists",
    "currently taken",
    "is already reserved",
)
CONNECTIVITY_MARKERS = (
    "rpc server is unavailable",
    "failed to get version of the dhcp server",
    "dhcp server service is not running",
    "access is denied",
)

# Calculated properties flatten System.Net.IPAddress values to strings
SCOPE_FIELDS = (
    "@{n='ScopeId';e={$_.ScopeId.IPAddressToString}}, "
    "@{n='StartRange';e={$_.StartRange.IPAddressToString}}, "
    "@{n='EndRange';e={$_.EndRange.IPAddressToString}}, "
    "@{n='SubnetMask';e={$_.SubnetMask.IPAddressToString}}, "
    "Name, @{n='State';e={\"$($_.State)\"}}"
)
LEASE_FIELDS = (
    "@{n='IPAddress';e={$_.IPAddress.IPAddressToString}}, "
    "@{n='ScopeId';e={$_.ScopeId.IPAddressToString}}, "
    "ClientId, HostName, @{n='AddressState';e={\"$($_.AddressState)\"}}"
)
RESERVATION_FIELDS = (
    "@{n='IPAddress';e={$_.IPAddress.IPAddressToString}}, "
    "@{n='ScopeId';e={$_.ScopeId.IPAddressToString}}, "
    "ClientId, Name, Description"
)


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def _as_json_array(pipeline: str, fields: str) -> str:
    return f"ConvertTo-Json -Compress -Depth 3 -InputObject @({pipeline} | Select-Object {fields})"


class PowerShellBackend(DHCPBackend):
    """DHCP backend driving the Windows DhcpServer cmdlets."""

    name = "powershell"

    def __init__(self, executable: str = "powershell.exe", timeout: float = 30.0):
        self.executable = executable
        self.timeout = timeout

    def _run(self, script: str) -> str:
        """Run a PowerShell script and return its stdout.

        Raises:
            BackendError: If PowerShell cannot be started, times out or the
                cmdlet fails
        """
        cmd = [
            self.executable, "-NoProfile", "-NonInteractive",
            "-Command", f"$ErrorActionPreference = 'Stop'; {script}",
        ]
        logger.debug(f"Running: {script}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise BackendError(
                f"PowerShell executable not found: {self.executable}",
                kind=ErrorKind.CONNECTIVITY,
                cause=str(e),
            ) from e
        except subprocess.TimeoutExpired as e:
            raise BackendError(
                f"PowerShell command timed out after {self.timeout}s",
                kind=ErrorKind.CONNECTIVITY,
                cause=str(e),
            ) from e

        if result.returncode != 0:
            stderr = (result.stderr or result.stdout or "").strip()
            lowered = stderr.lower()
            if any(marker in lowered for marker in CONFLICT_MARKERS):
                kind = ErrorKind.REMOTE_CONFLICT
            elif any(marker in lowered for marker in CONNECTIVITY_MARKERS):
                kind = ErrorKind.CONNECTIVITY
            else:
                kind = ErrorKind.TRANSPORT
            raise BackendError(
                f"PowerShell command failed with exit code {result.returncode}",
                kind=kind,
                cause=stderr,
            )

        return result.stdout

    def _run_json(self, script: str) -> list[Any]:
        output = self._run(script).strip()
        if not output:
            return []
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise BackendError(
                "Could not parse PowerShell output as JSON",
                kind=ErrorKind.TRANSPORT,
                cause=output[:200],
            ) from e
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise BackendError(
                "Unexpected PowerShell output",
                kind=ErrorKind.TRANSPORT,
                cause=output[:200],
            )
        return data

    def list_scopes(self, server: str) -> list[Scope]:
        pipeline = f"Get-DhcpServerv4Scope -ComputerName {ps_quote(server)}"
        return [Scope.from_dict(item) for item in self._run_json(_as_json_array(pipeline, SCOPE_FIELDS))]

    def list_leases(
        self,
        server: str,
        scope_id: str | None = None,
        ip_address: str | None = None,
    ) -> list[Lease]:
        pipeline = f"Get-DhcpServerv4Lease -ComputerName {ps_quote(server)}"
        if scope_id is not None:
            pipeline += f" -ScopeId {ps_quote(scope_id)}"
            script = _as_json_array(pipeline, LEASE_FIELDS)
        elif ip_address is not None:
            pipeline += f" -IPAddress {ps_quote(ip_address)}"
            # A missing lease is an ObjectNotFound error, not an empty result
            script = (
                f"try {{ {_as_json_array(pipeline, LEASE_FIELDS)} }} "
                "catch { if ($_.CategoryInfo.Category -eq 'ObjectNotFound') { '[]' } else { throw } }"
            )
        else:
            # All leases across every scope on the server
            pipeline = (
                f"Get-DhcpServerv4Scope -ComputerName {ps_quote(server)} | "
                f"Get-DhcpServerv4Lease -ComputerName {ps_quote(server)}"
            )
            script = _as_json_array(pipeline, LEASE_FIELDS)
        return [Lease.from_dict(item) for item in self._run_json(script)]

    def list_reservations(self, server: str, scope_id: str) -> list[Reservation]:
        pipeline = f"Get-DhcpServerv4Reservation -ComputerName {ps_quote(server)} -ScopeId {ps_quote(scope_id)}"
        return [
            Reservation.from_dict(item)
            for item in self._run_json(_as_json_array(pipeline, RESERVATION_FIELDS))
        ]

    def create_reservation(
        self,
        server: str,
        scope_id: str,
        ip_address: str,
        client_id: str,
        description: str,
    ) -> None:
        self._run(
            f"Add-DhcpServerv4Reservation -ComputerName {ps_quote(server)} "
            f"-ScopeId {ps_quote(scope_id)} -IPAddress {ps_quote(ip_address)} "
            f"-ClientId {ps_quote(client_id)} -Description {ps_quote(description)}"
        )

    def delete_reservation(self, server: str, scope_id: str, ip_address: str) -> None:
        # The IPAddress parameter set of Remove-DhcpServerv4Reservation takes no scope
        self._run(
            f"Remove-DhcpServerv4Reservation -ComputerName {ps_quote(server)} "
            f"-IPAddress {ps_quote(ip_address)} -Confirm:$false"
        )
