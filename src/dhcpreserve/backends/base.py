"""
Base class for DHCP server backends.

A backend is the remote administrative API of a DHCP server. It exposes the
five operations the reservation workflows need and raises ``BackendError``
for every remote failure.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from abc import ABC, abstractmethod

from dhcpreserve.models import Lease, Reservation, Scope


class DHCPBackend(ABC):
    """Abstract base class for DHCP server management backends."""

    name: str = "base"

    @abstractmethod
    def list_scopes(self, server: str) -> list[Scope]:
        """List the scopes configured on a server.

        Args:
            server: DHCP server name or address

        Returns:
            List of scopes, in the order the server returns them
        """
        pass

    @abstractmethod
    def list_leases(
        self,
        server: str,
        scope_id: str | None = None,
        ip_address: str | None = None,
    ) -> list[Lease]:
        """List leases, restricted to a scope or looked up by address.

        Args:
            server: DHCP server name or address
            scope_id: Only return leases in this scope
            ip_address: Only return the lease for this address
        """
        pass

    @abstractmethod
    def list_reservations(self, server: str, scope_id: str) -> list[Reservation]:
        """List the reservations in a scope."""
        pass

    @abstractmethod
    def create_reservation(
        self,
        server: str,
        scope_id: str,
        ip_address: str,
        client_id: str,
        description: str,
    ) -> None:
        """Create a reservation in a scope."""
        pass

    @abstractmethod
    def delete_reservation(self, server: str, scope_id: str, ip_address: str) -> None:
        """Delete a reservation without interactive confirmation."""
        pass

    def close(self) -> None:
        """Release any transport resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
