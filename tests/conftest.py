"""Shared fixtures: an in-memory DHCP backend."""

import pytest

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.config import set_config
from dhcpreserve.errors import BackendError, ErrorKind
from dhcpreserve.models import Lease, Reservation, Scope


class FakeBackend(DHCPBackend):
    """DHCP backend holding scopes, leases and reservations in memory."""

    name = "fake"

    def __init__(self, scopes=None, leases=None, reservations=None):
        self.scopes = list(scopes or [])
        self.leases = list(leases or [])
        self.reservations = list(reservations or [])
        self.calls = []
        self.failures = {}

    def fail(self, operation, kind=ErrorKind.TRANSPORT, cause="remote failure"):
        self.failures[operation] = BackendError(f"{operation} failed", kind=kind, cause=cause)

    def _record(self, operation, *args):
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    def call_names(self):
        return [call[0] for call in self.calls]

    def list_scopes(self, server):
        self._record("list_scopes", server)
        return list(self.scopes)

    def list_leases(self, server, scope_id=None, ip_address=None):
        self._record("list_leases", server, scope_id, ip_address)
        leases = self.leases
        if scope_id is not None:
            leases = [l for l in leases if l.scope_id == scope_id]
        if ip_address is not None:
            leases = [l for l in leases if l.ip_address == ip_address]
        return list(leases)

    def list_reservations(self, server, scope_id):
        self._record("list_reservations", server, scope_id)
        return [r for r in self.reservations if r.scope_id == scope_id]

    def create_reservation(self, server, scope_id, ip_address, client_id, description):
        self._record("create_reservation", server, scope_id, ip_address, client_id, description)
        if any(r.ip_address == ip_address for r in self.reservations):
            raise BackendError(
                "create_reservation failed",
                kind=ErrorKind.REMOTE_CONFLICT,
                cause=f"Reservation for {ip_address} already exists",
            )
        self.reservations.append(Reservation(ip_address, client_id, scope_id, description))

    def delete_reservation(self, server, scope_id, ip_address):
        self._record("delete_reservation", server, scope_id, ip_address)
        self.reservations = [r for r in self.reservations if r.ip_address != ip_address]


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    for var in (
        "DHCPRESERVE_BACKEND",
        "DHCPRESERVE_POWERSHELL",
        "DHCPRESERVE_API_URL",
        "DHCPRESERVE_API_TOKEN",
        "DHCPRESERVE_TIMEOUT",
        "DHCPRESERVE_VERIFY_SSL",
        "DHCPRESERVE_DESCRIPTION",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("dhcpreserve.config.load_env_files", lambda: None)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def scope():
    return Scope(scope_id="10.0.0.0", start="10.0.0.1", end="10.0.0.254", name="Office")


@pytest.fixture
def backend(scope):
    return FakeBackend(
        scopes=[
            Scope(scope_id="192.168.1.0", start="192.168.1.10", end="192.168.1.200"),
            scope,
        ],
        leases=[
            Lease("10.0.0.50", "AA-BB-CC-DD-EE-FF", "10.0.0.0", hostname="laptop"),
            Lease("10.0.0.70", None, "10.0.0.0"),
            Lease("192.168.1.20", "11-22-33-44-55-66", "192.168.1.0"),
        ],
    )
