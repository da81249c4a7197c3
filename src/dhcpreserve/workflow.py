"""
Reserve and remove workflows.

Each workflow runs its steps in order and stops at the first failed step,
with no retries and nothing to roll back. The outcome is a single
``WorkflowResult`` that the caller renders and turns into an exit status.

Reserve:  Idle -> ConnectivityChecked -> ScopeResolved -> LeaseResolved -> ReservationCreated
Remove:   Idle -> ConnectivityChecked -> ReservationVerified -> ReservationRemoved

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.config import DEFAULT_DESCRIPTION
from dhcpreserve.errors import AddressParseError, DHCPReserveError, ErrorKind
from dhcpreserve.lease import resolve_client_id
from dhcpreserve.models import Scope, parse_address
from dhcpreserve.reservation import create_reservation, remove_reservation, verify_reservation
from dhcpreserve.result import Err, Ok, Result
from dhcpreserve.scope import find_scope

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    """Last state reached by a workflow."""
    IDLE = "Idle"
    CONNECTIVITY_CHECKED = "ConnectivityChecked"
    SCOPE_RESOLVED = "ScopeResolved"
    LEASE_RESOLVED = "LeaseResolved"
    RESERVATION_CREATED = "ReservationCreated"
    RESERVATION_VERIFIED = "ReservationVerified"
    RESERVATION_REMOVED = "ReservationRemoved"
    FAILED = "Failed"


@dataclass
class WorkflowResult:
    """Terminal outcome of a workflow run."""
    success: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: ErrorKind | None = None
    state: WorkflowState = WorkflowState.IDLE
    failed_at: WorkflowState | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {
                "status": "success",
                "message": self.message,
                "details": self.details,
            }
        return {
            "status": "failure",
            "message": self.message,
            "error": self.error,
            "details": self.details,
        }


def _failure(message: str, err: Err, details: dict[str, Any], reached: WorkflowState) -> WorkflowResult:
    logger.warning(f"{message}: {err.error}")
    return WorkflowResult(
        success=False,
        message=message,
        error=err.error,
        error_kind=err.kind,
        details=details,
        state=WorkflowState.FAILED,
        failed_at=reached,
    )


def _validate_inputs(addresses: tuple[str, ...] = ("ip_address",), **params: str | None) -> Err | None:
    """Check required parameters are present and the named addresses parse."""
    for name, value in params.items():
        if value is None or not str(value).strip():
            return Err(ErrorKind.INPUT_VALIDATION, f"Missing required parameter: {name}")
    try:
        for name in addresses:
            parse_address(params[name])
    except AddressParseError as e:
        return Err.from_exception(e)
    return None


def _list_scopes(backend: DHCPBackend, server: str) -> Result[list[Scope]]:
    try:
        return Ok(backend.list_scopes(server))
    except AddressParseError as e:
        return Err(ErrorKind.ADDRESS_PARSE, f"Malformed scope record from {server}: {e.message}", cause=e.cause)
    except DHCPReserveError as e:
        return Err(ErrorKind.TRANSPORT, f"Failed to list scopes on {server}", cause=e.cause or e.message)


def check_connectivity(backend: DHCPBackend, server: str) -> Result[int]:
    """Check the server answers and serves at least one lease.

    Returns:
        Ok(number of leases), Err(CONNECTIVITY), or Err(ADDRESS_PARSE) when
        the server returns a malformed lease record
    """
    try:
        leases = backend.list_leases(server)
    except AddressParseError as e:
        return Err(ErrorKind.ADDRESS_PARSE, f"Malformed lease record from {server}: {e.message}", cause=e.cause)
    except DHCPReserveError as e:
        return Err(
            ErrorKind.CONNECTIVITY,
            f"Cannot query DHCP server {server}",
            cause=e.cause or e.message,
        )
    if not leases:
        return Err(ErrorKind.CONNECTIVITY, f"DHCP server {server} returned no leases")
    logger.debug(f"{server} is reachable ({len(leases)} leases)")
    return Ok(len(leases))


def reserve(
    backend: DHCPBackend,
    server: str,
    ip_address: str,
    description: str | None = None,
) -> WorkflowResult:
    """Promote the current lease of ``ip_address`` to a reservation.

    Args:
        backend: DHCP backend
        server: DHCP server name or address
        ip_address: Address to reserve
        description: Reservation description

    Returns:
        WorkflowResult; on success details hold reservation_ip,
        mac_address, scope_id and server
    """
    description = description or DEFAULT_DESCRIPTION
    failure_details = {"reservation_ip": ip_address, "server": server}
    failed_msg = f"Failed to create reservation for {ip_address}"

    invalid = _validate_inputs(server=server, ip_address=ip_address)
    if invalid:
        return _failure(failed_msg, invalid, failure_details, WorkflowState.IDLE)

    logger.info(f"Reserving {ip_address} on {server} via {backend.name}")

    connected = check_connectivity(backend, server)
    if isinstance(connected, Err):
        return _failure(failed_msg, connected, failure_details, WorkflowState.IDLE)

    scopes = _list_scopes(backend, server)
    if isinstance(scopes, Err):
        return _failure(failed_msg, scopes, failure_details, WorkflowState.CONNECTIVITY_CHECKED)
    scope = find_scope(scopes.value, ip_address)
    if isinstance(scope, Err):
        return _failure(failed_msg, scope, failure_details, WorkflowState.CONNECTIVITY_CHECKED)
    scope = scope.value
    failure_details["subnet"] = scope.scope_id

    client_id = resolve_client_id(backend, server, ip_address, scope)
    if isinstance(client_id, Err):
        return _failure(failed_msg, client_id, failure_details, WorkflowState.SCOPE_RESOLVED)

    created = create_reservation(backend, server, scope, ip_address, client_id.value, description)
    if isinstance(created, Err):
        return _failure(failed_msg, created, failure_details, WorkflowState.LEASE_RESOLVED)

    details = created.value
    logger.info(f"Reserved {details.ip_address} for {details.client_id} in scope {details.scope_id}")
    return WorkflowResult(
        success=True,
        message=f"Reservation created for {details.ip_address}",
        details=details.to_dict(),
        state=WorkflowState.RESERVATION_CREATED,
    )


def remove(
    backend: DHCPBackend,
    server: str,
    ip_address: str,
    scope_id: str,
) -> WorkflowResult:
    """Remove the reservation for ``ip_address`` from ``scope_id``.

    Returns:
        WorkflowResult; on success details hold reservation_ip, scope_id
        and server
    """
    failure_details = {"reservation_ip": ip_address, "server": server, "subnet": scope_id}
    failed_msg = f"Failed to remove reservation for {ip_address}"

    invalid = _validate_inputs(
        addresses=("ip_address", "scope_id"),
        server=server,
        ip_address=ip_address,
        scope_id=scope_id,
    )
    if invalid:
        return _failure(failed_msg, invalid, failure_details, WorkflowState.IDLE)
    scope_id = str(parse_address(scope_id))

    logger.info(f"Removing reservation {ip_address} from scope {scope_id} on {server} via {backend.name}")

    connected = check_connectivity(backend, server)
    if isinstance(connected, Err):
        return _failure(failed_msg, connected, failure_details, WorkflowState.IDLE)

    removed = remove_reservation(backend, server, scope_id, ip_address)
    if isinstance(removed, Err):
        reached = (
            WorkflowState.CONNECTIVITY_CHECKED
            if removed.kind in (ErrorKind.RESERVATION_NOT_FOUND, ErrorKind.ADDRESS_PARSE)
            else WorkflowState.RESERVATION_VERIFIED
        )
        return _failure(failed_msg, removed, failure_details, reached)

    details = removed.value
    logger.info(f"Removed reservation {details.ip_address} from scope {details.scope_id}")
    return WorkflowResult(
        success=True,
        message=f"Reservation removed for {details.ip_address}",
        details=details.to_dict(),
        state=WorkflowState.RESERVATION_REMOVED,
    )


def lookup(backend: DHCPBackend, server: str, ip_address: str) -> WorkflowResult:
    """Resolve the scope and client of ``ip_address`` without changing anything.

    Also reports whether a reservation already exists for the address.
    """
    failure_details = {"reservation_ip": ip_address, "server": server}
    failed_msg = f"Failed to look up {ip_address}"

    invalid = _validate_inputs(server=server, ip_address=ip_address)
    if invalid:
        return _failure(failed_msg, invalid, failure_details, WorkflowState.IDLE)

    scopes = _list_scopes(backend, server)
    if isinstance(scopes, Err):
        return _failure(failed_msg, scopes, failure_details, WorkflowState.IDLE)
    scope = find_scope(scopes.value, ip_address)
    if isinstance(scope, Err):
        return _failure(failed_msg, scope, failure_details, WorkflowState.IDLE)
    scope = scope.value
    failure_details["subnet"] = scope.scope_id

    client_id = resolve_client_id(backend, server, ip_address, scope)
    if isinstance(client_id, Err):
        return _failure(failed_msg, client_id, failure_details, WorkflowState.SCOPE_RESOLVED)

    existing = verify_reservation(backend, server, scope.scope_id, ip_address)
    if isinstance(existing, Err) and existing.kind != ErrorKind.RESERVATION_NOT_FOUND:
        return _failure(failed_msg, existing, failure_details, WorkflowState.LEASE_RESOLVED)

    return WorkflowResult(
        success=True,
        message=f"{ip_address} is leased to {client_id.value} in scope {scope.scope_id}",
        details={
            "reservation_ip": str(parse_address(ip_address)),
            "mac_address": client_id.value,
            "scope_id": scope.scope_id,
            "server": server,
            "reserved": isinstance(existing, Ok),
        },
        state=WorkflowState.LEASE_RESOLVED,
    )
