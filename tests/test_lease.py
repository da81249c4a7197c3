from dhcpreserve.errors import ErrorKind
from dhcpreserve.lease import resolve_client_id
from dhcpreserve.result import Err, Ok


def test_scoped_lookup(backend, scope):
    result = resolve_client_id(backend, "dhcp01", "10.0.0.50", scope)
    assert isinstance(result, Ok)
    assert result.value == "AA-BB-CC-DD-EE-FF"
    assert backend.calls == [("list_leases", "dhcp01", "10.0.0.0", None)]


def test_unscoped_lookup_queries_by_address(backend):
    result = resolve_client_id(backend, "dhcp01", "192.168.1.20")
    assert result.value == "11-22-33-44-55-66"
    assert backend.calls == [("list_leases", "dhcp01", None, "192.168.1.20")]


def test_no_lease(backend, scope):
    result = resolve_client_id(backend, "dhcp01", "10.0.0.51", scope)
    assert isinstance(result, Err)
    assert result.kind == ErrorKind.NO_LEASE_FOUND
    assert "10.0.0.51" in result.message


def test_lease_without_client_id_counts_as_missing(backend, scope):
    result = resolve_client_id(backend, "dhcp01", "10.0.0.70", scope)
    assert result.kind == ErrorKind.NO_LEASE_FOUND


def test_lease_in_other_scope_is_not_matched(backend, scope):
    # 192.168.1.20 is leased, but not in the 10.0.0.0 scope
    result = resolve_client_id(backend, "dhcp01", "192.168.1.20", scope)
    assert result.kind == ErrorKind.NO_LEASE_FOUND


def test_transport_error_keeps_remote_cause(backend, scope):
    backend.fail("list_leases", cause="The RPC server is unavailable")
    result = resolve_client_id(backend, "dhcp01", "10.0.0.50", scope)
    assert result.kind == ErrorKind.TRANSPORT
    assert result.cause == "The RPC server is unavailable"


def test_malformed_address_makes_no_remote_call(backend, scope):
    result = resolve_client_id(backend, "dhcp01", "not-an-ip", scope)
    assert result.kind == ErrorKind.ADDRESS_PARSE
    assert backend.calls == []
