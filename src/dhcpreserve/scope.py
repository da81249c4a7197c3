"""
Scope location: map an address to the DHCP scope whose range contains it.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from typing import Iterable

from netaddr import IPAddress

from dhcpreserve.errors import AddressParseError, ErrorKind
from dhcpreserve.models import Scope, parse_address
from dhcpreserve.result import Err, Ok, Result

logger = logging.getLogger(__name__)


def address_in_range(address: IPAddress, start: IPAddress, end: IPAddress) -> bool:
    """Check ``start <= address <= end`` on the fixed-width byte forms.

    The packed forms are big-endian and equal length within one family, so
    comparing them byte-wise is numeric range containment.

    Raises:
        AddressParseError: If the three addresses are not the same family
    """
    if not (address.version == start.version == end.version):
        raise AddressParseError(
            f"Address family mismatch: {address} (IPv{address.version}) "
            f"vs range {start} - {end} (IPv{start.version}/IPv{end.version})"
        )
    return start.packed <= address.packed <= end.packed


def find_scope(scopes: Iterable[Scope], target_ip: str) -> Result[Scope]:
    """Find the scope containing ``target_ip``.

    Scopes are checked in the order given and the first match wins. If
    ranges overlap, that is the earliest containing scope in the input.
    Scopes of the other address family are skipped; the target is only
    rejected for its family when the server has no scope of that family.

    Returns:
        Ok(scope) on a match, otherwise Err with ``NO_SCOPES_AVAILABLE``,
        ``NO_MATCHING_SCOPE`` or ``ADDRESS_PARSE``
    """
    scopes = list(scopes)
    if not scopes:
        return Err(ErrorKind.NO_SCOPES_AVAILABLE, "No scopes available on the DHCP server")

    try:
        target = parse_address(target_ip)
    except AddressParseError as e:
        return Err.from_exception(e)

    same_family = [s for s in scopes if s.start_address.version == target.version]
    if not same_family:
        families = sorted({f"IPv{s.start_address.version}" for s in scopes})
        return Err(
            ErrorKind.ADDRESS_PARSE,
            f"Address family mismatch: {target} is IPv{target.version} "
            f"but the server only has {'/'.join(families)} scopes",
        )

    try:
        for scope in same_family:
            if address_in_range(target, scope.start_address, scope.end_address):
                logger.debug(f"{target} is within scope {scope.scope_id} ({scope.start} - {scope.end})")
                return Ok(scope)
    except AddressParseError as e:
        return Err.from_exception(e)

    return Err(
        ErrorKind.NO_MATCHING_SCOPE,
        f"No scope contains {target} (checked {len(same_family)} IPv{target.version} scope(s))",
    )
