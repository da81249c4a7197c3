"""
Lease resolution: find the client currently leasing an address.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.errors import AddressParseError, BackendError, ErrorKind
from dhcpreserve.models import Scope, parse_address
from dhcpreserve.result import Err, Ok, Result

logger = logging.getLogger(__name__)


def resolve_client_id(
    backend: DHCPBackend,
    server: str,
    target_ip: str,
    scope: Scope | None = None,
) -> Result[str]:
    """Resolve the client identifier of the device leasing ``target_ip``.

    With a scope, leases in that scope are listed and filtered by address.
    Without one, the server is queried by address directly. The first
    matching lease wins; a lease without a client id counts as no lease.

    Args:
        backend: DHCP backend to query
        server: DHCP server name or address
        target_ip: Address to resolve
        scope: Scope already known to contain the address

    Returns:
        Ok(client_id), or Err with ``NO_LEASE_FOUND``, ``TRANSPORT`` or
        ``ADDRESS_PARSE``
    """
    try:
        target = parse_address(target_ip)
        if scope is not None:
            leases = backend.list_leases(server, scope_id=scope.scope_id)
        else:
            leases = backend.list_leases(server, ip_address=str(target))
    except AddressParseError as e:
        return Err.from_exception(e)
    except BackendError as e:
        return Err(
            ErrorKind.TRANSPORT,
            f"Failed to query leases for {target_ip} on {server}",
            cause=e.cause or e.message,
        )

    for lease in leases:
        if parse_address(lease.ip_address) != target:
            continue
        if not lease.client_id:
            logger.debug(f"Lease for {target} on {server} has no client id")
            break
        logger.info(f"{target} is leased to {lease.client_id}")
        return Ok(lease.client_id)

    where = f"scope {scope.scope_id}" if scope is not None else f"server {server}"
    return Err(ErrorKind.NO_LEASE_FOUND, f"No active lease found for {target} in {where}")
