"""
HTTP JSON API backend for DHCP management services.

Talks to a REST front end for the DHCP server (for example an IPAM or a
management gateway) that exposes scopes, leases and reservations per server.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from dhcpreserve.backends.base import DHCPBackend
from dhcpreserve.errors import BackendError, ErrorKind
from dhcpreserve.models import Lease, Reservation, Scope

logger = logging.getLogger(__name__)


class RestBackend(DHCPBackend):
    """DHCP backend for an HTTP JSON management API."""

    name = "rest"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                verify=self.verify_ssl,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        client = self._get_client()
        logger.debug(f"{method} {self.base_url}{path} params={params}")
        try:
            resp = client.request(method, path, params=params, json=json_body)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            kind = ErrorKind.REMOTE_CONFLICT if e.response.status_code == 409 else ErrorKind.TRANSPORT
            raise BackendError(
                f"HTTP {e.response.status_code} from {method} {path}",
                kind=kind,
                cause=e.response.text,
            ) from e
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise BackendError(
                f"Cannot reach DHCP API at {self.base_url}",
                kind=ErrorKind.CONNECTIVITY,
                cause=str(e),
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(
                f"Request failed: {method} {path}",
                kind=ErrorKind.TRANSPORT,
                cause=str(e),
            ) from e
        return resp

    def _get_items(self, path: str, params: dict[str, str] | None = None) -> list[Any]:
        resp = self._request("GET", path, params=params)
        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError(
                f"Invalid JSON from GET {path}",
                kind=ErrorKind.TRANSPORT,
                cause=resp.text[:200],
            ) from e
        if isinstance(data, dict) and "items" in data:
            data = data["items"]
        if not isinstance(data, list):
            raise BackendError(
                f"Expected a list from GET {path}",
                kind=ErrorKind.TRANSPORT,
                cause=resp.text[:200],
            )
        return data

    @staticmethod
    def _server_path(server: str) -> str:
        return f"/servers/{quote(server, safe='')}"

    def list_scopes(self, server: str) -> list[Scope]:
        return [Scope.from_dict(item) for item in self._get_items(f"{self._server_path(server)}/scopes")]

    def list_leases(
        self,
        server: str,
        scope_id: str | None = None,
        ip_address: str | None = None,
    ) -> list[Lease]:
        params = {}
        if scope_id is not None:
            params["scope_id"] = scope_id
        if ip_address is not None:
            params["ip_address"] = ip_address
        items = self._get_items(f"{self._server_path(server)}/leases", params=params or None)
        return [Lease.from_dict(item) for item in items]

    def list_reservations(self, server: str, scope_id: str) -> list[Reservation]:
        path = f"{self._server_path(server)}/scopes/{quote(scope_id, safe='')}/reservations"
        return [Reservation.from_dict(item) for item in self._get_items(path)]

    def create_reservation(
        self,
        server: str,
        scope_id: str,
        ip_address: str,
        client_id: str,
        description: str,
    ) -> None:
        path = f"{self._server_path(server)}/scopes/{quote(scope_id, safe='')}/reservations"
        self._request("POST", path, json_body={
            "ip_address": ip_address,
            "client_id": client_id,
            "description": description,
        })

    def delete_reservation(self, server: str, scope_id: str, ip_address: str) -> None:
        path = (
            f"{self._server_path(server)}/scopes/{quote(scope_id, safe='')}"
            f"/reservations/{quote(ip_address, safe='')}"
        )
        self._request("DELETE", path)
