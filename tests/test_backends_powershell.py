import json
import subprocess

import pytest

from dhcpreserve.backends.powershell import PowerShellBackend, ps_quote
from dhcpreserve.errors import BackendError, ErrorKind


class FakeRun:
    """Stands in for subprocess.run and records the scripts it was given."""

    def __init__(self, stdout="", stderr="", returncode=0, exc=None):
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        self.exc = exc
        self.commands = []

    def __call__(self, cmd, capture_output, text, timeout):
        self.commands.append(cmd)
        if self.exc:
            raise self.exc
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)

    @property
    def script(self):
        return self.commands[-1][-1]


@pytest.fixture
def run(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr("dhcpreserve.backends.powershell.subprocess.run", fake)
    return fake


def test_quote_escapes_single_quotes():
    assert ps_quote("it's") == "'it''s'"


def test_list_scopes(run):
    run.stdout = json.dumps([
        {"ScopeId": "10.0.0.0", "StartRange": "10.0.0.1", "EndRange": "10.0.0.254",
         "SubnetMask": "255.255.255.0", "Name": "Office", "State": "Active"},
    ])
    scopes = PowerShellBackend("pwsh").list_scopes("dhcp01")

    assert [s.scope_id for s in scopes] == ["10.0.0.0"]
    assert run.commands[-1][:4] == ["pwsh", "-NoProfile", "-NonInteractive", "-Command"]
    assert "Get-DhcpServerv4Scope -ComputerName 'dhcp01'" in run.script


def test_single_object_output_is_wrapped(run):
    run.stdout = json.dumps({"IPAddress": "10.0.0.50", "ClientId": "aa-bb-cc-dd-ee-ff", "ScopeId": "10.0.0.0"})
    leases = PowerShellBackend().list_leases("dhcp01", scope_id="10.0.0.0")
    assert leases[0].client_id == "AA-BB-CC-DD-EE-FF"
    assert "-ScopeId '10.0.0.0'" in run.script


def test_lease_lookup_by_address_tolerates_not_found(run):
    run.stdout = "[]"
    assert PowerShellBackend().list_leases("dhcp01", ip_address="10.0.0.51") == []
    assert "-IPAddress '10.0.0.51'" in run.script
    assert "ObjectNotFound" in run.script


def test_all_leases_pipes_through_scopes(run):
    run.stdout = ""
    assert PowerShellBackend().list_leases("dhcp01") == []
    assert "Get-DhcpServerv4Scope -ComputerName 'dhcp01' | Get-DhcpServerv4Lease" in run.script


def test_create_reservation_command(run):
    PowerShellBackend().create_reservation("dhcp01", "10.0.0.0", "10.0.0.50", "AA-BB-CC-DD-EE-FF", "Bob's laptop")
    script = run.script
    assert "Add-DhcpServerv4Reservation -ComputerName 'dhcp01'" in script
    assert "-ClientId 'AA-BB-CC-DD-EE-FF'" in script
    assert "-Description 'Bob''s laptop'" in script


def test_delete_reservation_skips_confirmation(run):
    PowerShellBackend().delete_reservation("dhcp01", "10.0.0.0", "10.0.0.50")
    assert "Remove-DhcpServerv4Reservation -ComputerName 'dhcp01' -IPAddress '10.0.0.50' -Confirm:$false" in run.script


def test_existing_reservation_is_a_conflict(run):
    run.returncode = 1
    run.stderr = "Add-DhcpServerv4Reservation : Failed to add reservation 10.0.0.50. The object already exists."
    with pytest.raises(BackendError) as exc:
        PowerShellBackend().create_reservation("dhcp01", "10.0.0.0", "10.0.0.50", "AA-BB-CC-DD-EE-FF", "x")
    assert exc.value.kind == ErrorKind.REMOTE_CONFLICT
    assert "already exists" in exc.value.cause


def test_rpc_failure_is_connectivity(run):
    run.returncode = 1
    run.stderr = "Get-DhcpServerv4Scope : Failed to get version of the DHCP server dhcp01."
    with pytest.raises(BackendError) as exc:
        PowerShellBackend().list_scopes("dhcp01")
    assert exc.value.kind == ErrorKind.CONNECTIVITY


def test_other_failure_is_transport(run):
    run.returncode = 1
    run.stderr = "Something unexpected"
    with pytest.raises(BackendError) as exc:
        PowerShellBackend().list_reservations("dhcp01", "10.0.0.0")
    assert exc.value.kind == ErrorKind.TRANSPORT
    assert exc.value.cause == "Something unexpected"


def test_missing_executable(run):
    run.exc = FileNotFoundError("pwsh")
    with pytest.raises(BackendError) as exc:
        PowerShellBackend("pwsh").list_scopes("dhcp01")
    assert exc.value.kind == ErrorKind.CONNECTIVITY


def test_timeout(run):
    run.exc = subprocess.TimeoutExpired(cmd="pwsh", timeout=5)
    with pytest.raises(BackendError) as exc:
        PowerShellBackend(timeout=5).list_scopes("dhcp01")
    assert exc.value.kind == ErrorKind.CONNECTIVITY


def test_garbage_output(run):
    run.stdout = "WARNING: not json"
    with pytest.raises(BackendError) as exc:
        PowerShellBackend().list_scopes("dhcp01")
    assert exc.value.kind == ErrorKind.TRANSPORT
