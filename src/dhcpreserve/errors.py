"""
Error taxonomy for DHCP reservation workflows.

Components report failures as ``Err`` results tagged with an ``ErrorKind``.
Exceptions are only raised at the edges: backends raise ``BackendError`` when
the remote DHCP service fails, and record parsing raises
``AddressParseError`` for malformed addresses.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported by the reservation workflows."""
    INPUT_VALIDATION = "InputValidationError"
    ADDRESS_PARSE = "AddressParseError"
    CONNECTIVITY = "ConnectivityError"
    NO_SCOPES_AVAILABLE = "NoScopesAvailable"
    NO_MATCHING_SCOPE = "NoMatchingScope"
    NO_LEASE_FOUND = "NoLeaseFound"
    RESERVATION_NOT_FOUND = "ReservationNotFound"
    TRANSPORT = "TransportError"
    REMOTE_CONFLICT = "RemoteConflictError"


class DHCPReserveError(Exception):
    """Base exception carrying an error kind and the remote cause text."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        cause: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.cause = cause


class AddressParseError(DHCPReserveError):
    """Raised when an address string cannot be parsed."""

    kind = ErrorKind.ADDRESS_PARSE


class BackendError(DHCPReserveError):
    """Raised by a DHCP backend when a remote call fails.

    ``kind`` is one of ``TRANSPORT``, ``REMOTE_CONFLICT`` or
    ``CONNECTIVITY``; ``cause`` holds the remote service's own error text.
    """
