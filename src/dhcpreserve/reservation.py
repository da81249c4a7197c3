"""
Reservation management: create, verify and remove DHCP reservations.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.errors import AddressParseError, BackendError, ErrorKind
from dhcpreserve.models import (
    RemovalDetails,
    Reservation,
    ReservationDetails,
    Scope,
    parse_address,
)
from dhcpreserve.result import Err, Ok, Result

logger = logging.getLogger(__name__)


def _remote_error(e: BackendError, message: str) -> Err:
    """Map a backend failure to a result, keeping the remote text as cause."""
    kind = ErrorKind.REMOTE_CONFLICT if e.kind == ErrorKind.REMOTE_CONFLICT else ErrorKind.TRANSPORT
    return Err(kind, message, cause=e.cause or e.message)


def create_reservation(
    backend: DHCPBackend,
    server: str,
    scope: Scope,
    target_ip: str,
    client_id: str,
    description: str,
) -> Result[ReservationDetails]:
    """Create a reservation binding ``client_id`` to ``target_ip``.

    This is a single create call. An existing reservation for the address is
    not absorbed: the server's conflict error comes back as
    ``REMOTE_CONFLICT``.
    """
    try:
        ip = str(parse_address(target_ip))
    except AddressParseError as e:
        return Err.from_exception(e)

    logger.info(f"Creating reservation {ip} -> {client_id} in scope {scope.scope_id} on {server}")
    try:
        backend.create_reservation(server, scope.scope_id, ip, client_id, description)
    except BackendError as e:
        return _remote_error(e, f"Failed to create reservation for {ip} in scope {scope.scope_id}")

    return Ok(ReservationDetails(
        ip_address=ip,
        client_id=client_id,
        scope_id=scope.scope_id,
        server=server,
    ))


def verify_reservation(
    backend: DHCPBackend,
    server: str,
    scope_id: str,
    target_ip: str,
) -> Result[Reservation]:
    """Return the reservation for ``target_ip`` in ``scope_id`` if one exists."""
    try:
        target = parse_address(target_ip)
        reservations = backend.list_reservations(server, scope_id)
    except AddressParseError as e:
        return Err.from_exception(e)
    except BackendError as e:
        return _remote_error(e, f"Failed to query reservations in scope {scope_id}")

    for reservation in reservations:
        if parse_address(reservation.ip_address) == target:
            return Ok(reservation)

    return Err(
        ErrorKind.RESERVATION_NOT_FOUND,
        f"No reservation found for {target} in scope {scope_id}",
    )


def remove_reservation(
    backend: DHCPBackend,
    server: str,
    scope_id: str,
    target_ip: str,
) -> Result[RemovalDetails]:
    """Remove the reservation for ``target_ip`` from ``scope_id``.

    Existence is checked first; the delete call is only issued when a
    matching reservation was found.
    """
    found = verify_reservation(backend, server, scope_id, target_ip)
    if isinstance(found, Err):
        return found

    reservation = found.value
    logger.info(f"Removing reservation {reservation.ip_address} ({reservation.client_id}) from scope {scope_id} on {server}")
    try:
        backend.delete_reservation(server, scope_id, reservation.ip_address)
    except BackendError as e:
        return _remote_error(e, f"Failed to remove reservation for {reservation.ip_address} in scope {scope_id}")

    return Ok(RemovalDetails(
        ip_address=reservation.ip_address,
        scope_id=scope_id,
        server=server,
    ))
