"""
Data models for DHCP scopes, leases and reservations.

Records returned by a DHCP backend are parsed eagerly into these dataclasses
so malformed data fails at the boundary instead of deeper in a workflow.
Both the Windows ``DhcpServer`` cmdlet field names (``ScopeId``,
``StartRange``, ``ClientId``...) and snake_case API names are accepted.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dataclasses import dataclass
from typing import Any

from netaddr import EUI, AddrFormatError, IPAddress

from dhcpreserve.errors import AddressParseError, BackendError, ErrorKind


def parse_address(value: Any) -> IPAddress:
    """Parse an IPv4/IPv6 address string.

    Raises:
        AddressParseError: If the value is not a valid address
    """
    if isinstance(value, dict):
        # DhcpServer cmdlets serialise System.Net.IPAddress as an object
        value = value.get("IPAddressToString") or value.get("Address")
    if not isinstance(value, str) or not value.strip():
        raise AddressParseError(f"Invalid IP address: {value!r}")
    try:
        return IPAddress(value.strip())
    except (AddrFormatError, ValueError) as e:
        raise AddressParseError(f"Invalid IP address: {value!r}", cause=str(e)) from e


def normalize_client_id(value: Any) -> str | None:
    """Normalise a client identifier.

    48-bit MAC addresses in any common notation become ``AA-BB-CC-DD-EE-FF``.
    Other non-empty tokens are returned stripped; empty values become None.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return str(EUI(text)).upper()
    except (AddrFormatError, ValueError, TypeError):
        return text


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _require_mapping(data: Any, record: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise BackendError(
            f"Malformed {record} record from DHCP server",
            kind=ErrorKind.TRANSPORT,
            cause=repr(data),
        )
    return data


@dataclass(frozen=True)
class Scope:
    """A DHCP scope: an inclusive address range keyed by its network address."""
    scope_id: str
    start: str
    end: str
    name: str | None = None
    subnet_mask: str | None = None
    state: str | None = None

    @property
    def start_address(self) -> IPAddress:
        return parse_address(self.start)

    @property
    def end_address(self) -> IPAddress:
        return parse_address(self.end)

    @classmethod
    def from_dict(cls, data: Any) -> "Scope":
        data = _require_mapping(data, "scope")
        scope_id = _pick(data, "scope_id", "ScopeId")
        start = _pick(data, "start", "start_range", "StartRange")
        end = _pick(data, "end", "end_range", "EndRange")
        if scope_id is None or start is None or end is None:
            raise BackendError(
                "Scope record is missing scope id or range",
                kind=ErrorKind.TRANSPORT,
                cause=repr(data),
            )

        scope_addr = parse_address(scope_id)
        start_addr = parse_address(start)
        end_addr = parse_address(end)
        if start_addr.version != end_addr.version:
            raise AddressParseError(
                f"Scope {scope_addr} mixes address families ({start_addr} - {end_addr})"
            )
        if start_addr.packed > end_addr.packed:
            raise BackendError(
                f"Scope {scope_addr} has start {start_addr} after end {end_addr}",
                kind=ErrorKind.TRANSPORT,
            )

        mask = _pick(data, "subnet_mask", "SubnetMask")
        return cls(
            scope_id=str(scope_addr),
            start=str(start_addr),
            end=str(end_addr),
            name=_pick(data, "name", "Name"),
            subnet_mask=str(parse_address(mask)) if mask is not None else None,
            state=_pick(data, "state", "State"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope_id": self.scope_id,
            "start": self.start,
            "end": self.end,
            "name": self.name,
            "subnet_mask": self.subnet_mask,
            "state": self.state,
        }


@dataclass(frozen=True)
class Lease:
    """An active lease of an address to a client."""
    ip_address: str
    client_id: str | None
    scope_id: str | None = None
    hostname: str | None = None
    address_state: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Lease":
        data = _require_mapping(data, "lease")
        ip = _pick(data, "ip_address", "IPAddress")
        if ip is None:
            raise BackendError(
                "Lease record is missing its IP address",
                kind=ErrorKind.TRANSPORT,
                cause=repr(data),
            )
        scope_id = _pick(data, "scope_id", "ScopeId")
        return cls(
            ip_address=str(parse_address(ip)),
            client_id=normalize_client_id(_pick(data, "client_id", "ClientId")),
            scope_id=str(parse_address(scope_id)) if scope_id is not None else None,
            hostname=_pick(data, "hostname", "HostName"),
            address_state=_pick(data, "address_state", "AddressState"),
        )


@dataclass(frozen=True)
class Reservation:
    """A durable binding of an address to a client within a scope."""
    ip_address: str
    client_id: str
    scope_id: str
    description: str | None = None
    name: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Reservation":
        data = _require_mapping(data, "reservation")
        ip = _pick(data, "ip_address", "IPAddress")
        client_id = normalize_client_id(_pick(data, "client_id", "ClientId"))
        scope_id = _pick(data, "scope_id", "ScopeId")
        if ip is None or client_id is None or scope_id is None:
            raise BackendError(
                "Reservation record is missing address, client id or scope",
                kind=ErrorKind.TRANSPORT,
                cause=repr(data),
            )
        return cls(
            ip_address=str(parse_address(ip)),
            client_id=client_id,
            scope_id=str(parse_address(scope_id)),
            description=_pick(data, "description", "Description"),
            name=_pick(data, "name", "Name"),
        )


@dataclass(frozen=True)
class ReservationDetails:
    """What was reserved, and where."""
    ip_address: str
    client_id: str
    scope_id: str
    server: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_ip": self.ip_address,
            "mac_address": self.client_id,
            "scope_id": self.scope_id,
            "server": self.server,
        }


@dataclass(frozen=True)
class RemovalDetails:
    """What was removed, and where."""
    ip_address: str
    scope_id: str
    server: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_ip": self.ip_address,
            "scope_id": self.scope_id,
            "server": self.server,
        }
