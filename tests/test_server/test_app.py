"""Tests for agent_names.server.app — HTTP handler integration."""
from __future__ import annotations

import json
import threading
import urllib.error
import urllib.request
from http.server import HTTPServer
from typing import Iterator

import pytest

from agent_names.access.roles import AccessControl
from agent_names.registry.name_registry import NameRegistry
from agent_names.server import routes
from agent_names.server.app import PRINCIPAL_HEADER, AgentNamesHandler, create_server

SOUL_HEX = "ab" * 32


@pytest.fixture()
def base_url() -> Iterator[str]:
    """Serve a fresh registry on an ephemeral port for the test."""
    routes.reset_state(NameRegistry(AccessControl(admin="admin", operators=["op"])))
    server = create_server(host="127.0.0.1", port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _request(
    url: str,
    method: str = "GET",
    body: object | None = None,
    principal: str | None = None,
    raw: bytes | None = None,
) -> tuple[int, dict[str, object]]:
    data = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
    request = urllib.request.Request(url, data=data, method=method)
    request.add_header("Content-Type", "application/json")
    if principal is not None:
        request.add_header(PRINCIPAL_HEADER, principal)
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, json.loads(response.read())
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read())


class TestCreateServer:
    def test_create_server_returns_http_server(self) -> None:
        server = create_server(host="127.0.0.1", port=0)
        try:
            assert isinstance(server, HTTPServer)
            assert server.RequestHandlerClass is AgentNamesHandler
        finally:
            server.server_close()


class TestHttpRoundTrip:
    def test_health(self, base_url: str) -> None:
        status, data = _request(f"{base_url}/health")
        assert status == 200
        assert data["service"] == "agent-names"

    def test_register_then_resolve(self, base_url: str) -> None:
        status, data = _request(
            f"{base_url}/names",
            "POST",
            {"name": "alice", "owner": "0xa", "soul_hash": SOUL_HEX, "payment_address": "0xa"},
            principal="op",
        )
        assert status == 201
        token_id = data["token_id"]

        status, data = _request(f"{base_url}/names/alice")
        assert status == 200
        assert data["owner"] == "0xa"

        status, data = _request(f"{base_url}/tokens/{token_id}")
        assert data["name"] == "alice"

    def test_missing_principal_forbidden(self, base_url: str) -> None:
        status, data = _request(
            f"{base_url}/names", "POST", {"name": "alice", "owner": "0xa", "soul_hash": SOUL_HEX, "payment_address": "0xa"}
        )
        assert status == 403
        assert data["code"] == "not_operator"

    def test_put_soul(self, base_url: str) -> None:
        _request(
            f"{base_url}/names",
            "POST",
            {"name": "alice", "owner": "0xa", "soul_hash": SOUL_HEX, "payment_address": "0xa"},
            principal="op",
        )
        status, _ = _request(
            f"{base_url}/names/alice/soul", "PUT", {"soul_hash": "cd" * 32}, principal="op"
        )
        assert status == 200

    def test_available_and_price(self, base_url: str) -> None:
        status, data = _request(f"{base_url}/names/alice/available")
        assert status == 200
        assert data["available"] is True
        status, data = _request(f"{base_url}/names/alice/price")
        assert data["price"] == 5_000_000

    def test_pause_via_admin_route(self, base_url: str) -> None:
        status, _ = _request(f"{base_url}/admin/pause", "POST", {}, principal="admin")
        assert status == 200
        status, data = _request(
            f"{base_url}/names",
            "POST",
            {"name": "alice", "owner": "0xa", "soul_hash": SOUL_HEX, "payment_address": "0xa"},
            principal="op",
        )
        assert status == 503

    def test_invalid_json_400(self, base_url: str) -> None:
        status, data = _request(f"{base_url}/names", "POST", raw=b"{not json", principal="op")
        assert status == 400
        assert data["error"] == "Invalid JSON"

    def test_unknown_route_404(self, base_url: str) -> None:
        status, data = _request(f"{base_url}/nowhere")
        assert status == 404
        assert data["error"] == "Not found"

    def test_events_bad_since(self, base_url: str) -> None:
        status, _ = _request(f"{base_url}/events?since=abc")
        assert status == 422
